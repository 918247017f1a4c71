# fastapi_rest_query/descriptor.py
"""Structured, storage independent description of what a request asks for."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict

from .metadata import ModelMetadata
from .operators import FilterOperator, SearchOperator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class FilterCondition(_Frozen):
    field: str
    op: FilterOperator
    # scalar, None, or a tuple for in / notIn
    value: Any = None


class SearchCondition(_Frozen):
    # relation alias, None for the primary model
    scope: Optional[str] = None
    field: str
    op: SearchOperator
    value: str


class SearchExpression(_Frozen):
    """AND over `groups`, OR within each group. One group per keyword."""

    groups: tuple[tuple[SearchCondition, ...], ...]


class Where(_Frozen):
    conditions: tuple[FilterCondition, ...] = ()
    any_of: tuple[tuple[FilterCondition, ...], ...] = ()
    search: Optional[SearchExpression] = None


class RelationInclude(_Frozen):
    alias: str
    related_model: ModelMetadata
    where: Where = Where()
    attributes: Optional[tuple[str, ...]] = None
    required: bool = False


class Order(_Frozen):
    field: str
    direction: Literal["ASC", "DESC"] = "ASC"


class CountDescriptor(_Frozen):
    where: Where = Where()
    relations: tuple[RelationInclude, ...] = ()


class QueryDescriptor(CountDescriptor):
    order: Optional[Order] = None
    attributes: Optional[tuple[str, ...]] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def count_descriptor(self) -> CountDescriptor:
        return CountDescriptor(where=self.where, relations=self.relations)
