# fastapi_rest_query/sorting.py

import logging
from collections.abc import Mapping
from typing import Optional

from .descriptor import Order
from .metadata import SortPolicy

logger = logging.getLogger(__name__)


def resolve_sort(policy: Optional[SortPolicy], params: Mapping) -> Optional[Order]:
    """
    Resolve the `sort` parameter against a sort policy.

    `sort=name` sorts ascending and `sort=-name` descending. A requested field
    must be listed in `allowed_fields`; anything else yields no ordering.
    """
    if policy is None:
        return None
    sort = params.get("sort")
    if not (sort and isinstance(sort, str)):
        if not policy.default_field:
            return None
        return Order(field=policy.default_field, direction=policy.default_direction)

    if sort.startswith("-"):
        field, direction = sort[1:], "DESC"
    else:
        field, direction = sort, "ASC"

    if not policy.allowed_fields or field not in policy.allowed_fields:
        logger.debug("Dropping sort on non-allowed field %r", field)
        return None
    return Order(field=field, direction=direction)
