# fastapi_rest_query/projection.py

from collections.abc import Mapping, Sequence
from typing import Any, Optional


def _get(item: Any, attr: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(attr)
    return getattr(item, attr, None)


def project_item(item: Any, allow_attrs: Optional[Sequence[str]]) -> Any:
    """Keep only `allow_attrs` of a single item, in allowlist order."""
    if allow_attrs is None:
        return item
    return {attr: _get(item, attr) for attr in allow_attrs}


def project_items(items: Sequence[Any], allow_attrs: Optional[Sequence[str]]) -> Sequence[Any]:
    if allow_attrs is None:
        return items
    return [project_item(x, allow_attrs) for x in items]


def project(data: Any, allow_attrs: Optional[Sequence[str]]) -> Any:
    """Project either a list of items or a single item."""
    if isinstance(data, list):
        return project_items(data, allow_attrs)
    return project_item(data, allow_attrs)
