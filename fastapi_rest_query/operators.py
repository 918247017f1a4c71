# fastapi_rest_query/operators.py

from enum import Enum
from typing import NamedTuple

from sqlalchemy.sql import operators


class FilterOperator(str, Enum):
    EQ = "eq"
    IN = "in"
    NOT_IN = "notIn"
    NE = "ne"
    LIKE = "like"
    NOT_LIKE = "notLike"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


class ValueKind(str, Enum):
    # string (trimmed, null sentinel honoured) or number
    SCALAR = "scalar"
    # string only, null sentinel honoured
    TEXT = "text"
    # comma separated string
    LIST = "list"
    # string with `*` wildcards
    PATTERN = "pattern"
    # string (trimmed) or number
    RANGE = "range"


class SuffixRule(NamedTuple):
    suffix: str
    operator: FilterOperator
    kind: ValueKind

    def key(self, name: str) -> str:
        return f"{name}{self.suffix}"


# Wire convention for per-field filter parameters. Order is significant: it is
# the order conditions are emitted in for a single field.
SUFFIX_OPERATORS: tuple[SuffixRule, ...] = (
    SuffixRule("", FilterOperator.EQ, ValueKind.SCALAR),
    SuffixRule("s", FilterOperator.IN, ValueKind.LIST),
    SuffixRule("s!", FilterOperator.NOT_IN, ValueKind.LIST),
    SuffixRule("!", FilterOperator.NE, ValueKind.TEXT),
    SuffixRule("_like", FilterOperator.LIKE, ValueKind.PATTERN),
    SuffixRule("_notLike", FilterOperator.NOT_LIKE, ValueKind.PATTERN),
    SuffixRule("_gt", FilterOperator.GT, ValueKind.RANGE),
    SuffixRule("_gte", FilterOperator.GTE, ValueKind.RANGE),
    SuffixRule("_lt", FilterOperator.LT, ValueKind.RANGE),
    SuffixRule("_lte", FilterOperator.LTE, ValueKind.RANGE),
)


class SearchOperator(str, Enum):
    LIKE = "like"
    ILIKE = "ilike"
    EQ = "eq"
    CONTAINS = "contains"


def _eq_operator(column, value):
    if value is None:
        return column.is_(None)
    return operators.eq(column, value)


def _ne_operator(column, value):
    if value is None:
        return column.is_not(None)
    return operators.ne(column, value)


COMPARISON_OPERATORS = {
    FilterOperator.EQ: _eq_operator,
    FilterOperator.NE: _ne_operator,
    FilterOperator.IN: lambda col, v: col.in_(list(v)),
    FilterOperator.NOT_IN: lambda col, v: col.not_in(list(v)),
    FilterOperator.LIKE: lambda col, v: col.like(v),
    FilterOperator.NOT_LIKE: lambda col, v: col.not_like(v),
    FilterOperator.GT: operators.gt,
    FilterOperator.GTE: operators.ge,
    FilterOperator.LT: operators.lt,
    FilterOperator.LTE: operators.le,
}

SEARCH_OPERATORS = {
    SearchOperator.LIKE: lambda col, v: col.like(v),
    SearchOperator.ILIKE: lambda col, v: col.ilike(v),
    SearchOperator.EQ: operators.eq,
    SearchOperator.CONTAINS: lambda col, v: col.contains(v),
}

# Operators whose values are patterns and must reach the column untyped.
PATTERN_OPERATORS = {FilterOperator.LIKE, FilterOperator.NOT_LIKE}
