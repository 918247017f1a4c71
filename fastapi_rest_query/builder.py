# fastapi_rest_query/builder.py

import logging
from collections.abc import Mapping
from typing import Optional

from .descriptor import CountDescriptor, QueryDescriptor, RelationInclude, Where
from .filters import active_condition, build_where, to_conditions, wants_deleted
from .includes import resolve_includes
from .metadata import ModelMetadata
from .pagination import resolve_pagination
from .search import merge_search, search_conditions
from .sorting import resolve_sort

logger = logging.getLogger(__name__)


def _build_where(metadata: ModelMetadata, params: Mapping) -> tuple[Where, tuple[RelationInclude, ...]]:
    # Relations first, their search columns join the primary model's search
    includes, relation_searches = resolve_includes(metadata, params)

    # Filters
    where = build_where(metadata.filter_fields(), params)
    if metadata.soft_delete_field and not wants_deleted(params):
        active = active_condition(metadata.soft_delete_field)
        where[active.field] = {active.op: active.value}

    # Search
    primary_search = search_conditions(metadata, params.get("_searchs"), params.get("q"))
    search = merge_search([primary_search, *relation_searches])

    return Where(conditions=to_conditions(where), search=search), includes


def resolve_attributes(metadata: ModelMetadata, params: Mapping) -> Optional[tuple[str, ...]]:
    """Known field names requested by `attrs=a,b`; None when nothing usable was asked for."""
    raw = params.get("attrs")
    if not isinstance(raw, str):
        return None
    attrs = tuple(x for x in raw.split(",") if x in metadata.fields)
    return attrs or None


def build_count_descriptor(metadata: ModelMetadata, params: Mapping) -> CountDescriptor:
    where, includes = _build_where(metadata, params)
    return CountDescriptor(where=where, relations=includes)


def build_query_descriptor(metadata: ModelMetadata, params: Mapping, paginate: bool = True) -> QueryDescriptor:
    """
    Turn request parameters into a QueryDescriptor for `metadata`.

    Args:
        metadata: Model the request targets
        params: Flat request parameters, relation filters nested under their alias
        paginate: Resolve `limit`/`offset`; False fetches every matching row

    Returns:
        QueryDescriptor
    """
    where, includes = _build_where(metadata, params)

    offset = limit = None
    if paginate:
        offset, limit = resolve_pagination(metadata.pagination_policy, params)

    descriptor = QueryDescriptor(
        where=where,
        relations=includes,
        order=resolve_sort(metadata.sort_policy, params),
        attributes=resolve_attributes(metadata, params),
        limit=limit,
        offset=offset,
    )
    logger.debug(
        "Resolved %s query: %d condition(s), %d include(s), search=%s",
        metadata.name, len(where.conditions), len(includes), where.search is not None,
    )
    return descriptor
