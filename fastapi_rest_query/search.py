# fastapi_rest_query/search.py
"""
Multi-keyword search over several columns.

For `q="alice bob"` on searchable columns `name` and `email` the result is

    (name ~ alice OR email ~ alice) AND (name ~ bob OR email ~ bob)

i.e. every keyword has to match some column. Columns of included relations
join the same per-keyword OR groups.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Optional

from .descriptor import SearchCondition, SearchExpression
from .metadata import ModelMetadata
from .settings import get_settings

# One entry per keyword: the OR-ed conditions of one column for that keyword
FieldDisjunctions = list[tuple[SearchCondition, ...]]


def split_keywords(q: Any) -> tuple[str, ...]:
    if not isinstance(q, str):
        return ()
    return tuple(q.split()[: get_settings().MAX_SEARCH_KEYWORDS])


def split_restriction(restrict_to: Any) -> Optional[tuple[str, ...]]:
    if not isinstance(restrict_to, str) or not restrict_to:
        return None
    return tuple(restrict_to.split(","))


def search_conditions(
    metadata: ModelMetadata,
    restrict_to: Any,
    q: Any,
    scope: Optional[str] = None,
) -> list[FieldDisjunctions]:
    """
    Build the per-column, per-keyword search conditions for one model.

    Args:
        metadata: Model whose `searchable_fields` are searched
        restrict_to: Comma separated column allowlist (the `_searchs` parameter)
        q: Raw search string
        scope: Relation alias when searching an included relation. Relation
            columns only take part when `restrict_to` names them as `alias.column`.

    Returns:
        One FieldDisjunctions per participating column
    """
    keywords = split_keywords(q)
    if not keywords or not metadata.searchable_fields:
        return []
    allowed = split_restriction(restrict_to)
    if scope and allowed is None:
        return []

    result = []
    for field, spec in metadata.searchable_fields.items():
        qualified = f"{scope}.{field}" if scope else field
        if allowed is not None and qualified not in allowed:
            continue
        result.append([
            tuple(
                SearchCondition(scope=scope, field=field, op=spec.op, value=value)
                for value in spec.render(keyword)
            )
            for keyword in keywords
        ])
    return result


def merge_search(field_lists: Iterable[Sequence[FieldDisjunctions]]) -> Optional[SearchExpression]:
    """Transpose column-major disjunctions into one AND-of-ORs, keyword by keyword."""
    groups: list[list[SearchCondition]] = []
    for per_model in field_lists:
        for per_field in per_model:
            for index, disjunction in enumerate(per_field):
                while len(groups) <= index:
                    groups.append([])
                groups[index].extend(disjunction)
    groups = [x for x in groups if x]
    if not groups:
        return None
    return SearchExpression(groups=tuple(tuple(x) for x in groups))
