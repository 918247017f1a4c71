# fastapi_rest_query/filters.py

from collections.abc import Iterable, Mapping
from typing import Any

from .descriptor import FilterCondition
from .operators import SUFFIX_OPERATORS, FilterOperator, ValueKind
from .settings import get_settings

_MISSING = object()

# field -> operator -> value, in insertion order
FilterAccumulator = dict[str, dict[FilterOperator, Any]]


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _null_or_text(value: str) -> Any:
    value = value.strip()
    if value == get_settings().NULL_SENTINEL:
        return None
    return value


def parse_value(kind: ValueKind, raw: Any) -> Any:
    """Return the condition value for a raw parameter, or _MISSING to skip it."""
    if kind is ValueKind.SCALAR:
        if isinstance(raw, str):
            return _null_or_text(raw)
        if is_number(raw):
            return raw
    elif kind is ValueKind.TEXT:
        if isinstance(raw, str):
            return _null_or_text(raw)
    elif kind is ValueKind.LIST:
        if isinstance(raw, str):
            return tuple(raw.strip().split(","))
    elif kind is ValueKind.PATTERN:
        if isinstance(raw, str):
            return raw.strip().replace("*", "%")
    elif kind is ValueKind.RANGE:
        if isinstance(raw, str):
            return raw.strip()
        if is_number(raw):
            return raw
    return _MISSING


def build_field_filters(name: str, params: Any, where: FilterAccumulator, col: str | None = None) -> None:
    """
    Collect the filter conditions `params` asks for on one field.

    Args:
        name: Parameter base name (e.g. "age" reads age, ages, ages!, age!, age_gt, ...)
        params: Request parameters; anything but a mapping is ignored
        where: Accumulator the conditions are added to, keyed by field
        col: Field the conditions apply to, defaults to `name`
    """
    if not isinstance(params, Mapping):
        return
    col = col or name
    for rule in SUFFIX_OPERATORS:
        raw = params.get(rule.key(name), _MISSING)
        if raw is _MISSING:
            continue
        value = parse_value(rule.kind, raw)
        if value is _MISSING:
            continue
        where.setdefault(col, {})[rule.operator] = value


def to_conditions(where: FilterAccumulator) -> tuple[FilterCondition, ...]:
    return tuple(
        FilterCondition(field=field, op=op, value=value)
        for field, ops in where.items()
        for op, value in ops.items()
    )


def build_where(fields: Iterable[str], params: Any) -> FilterAccumulator:
    where: FilterAccumulator = {}
    for name in fields:
        build_field_filters(name, params, where)
    return where


def wants_deleted(params: Mapping) -> bool:
    """True when `showDelete` asks for soft-deleted rows to be kept."""
    value = params.get("showDelete")
    if isinstance(value, str):
        return bool(value)
    return is_number(value) and value != 0


def active_condition(field: str) -> FilterCondition:
    return FilterCondition(field=field, op=FilterOperator.EQ, value=get_settings().SOFT_DELETE_ACTIVE_VALUE)
