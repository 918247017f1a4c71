# fastapi_rest_query/core.py
"""Compile query descriptors into SQLAlchemy statements."""

import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import HTTPException
from sqlalchemy import String, and_, asc, cast, desc, distinct, false, func, or_, select
from sqlalchemy.orm import RelationshipProperty, aliased, contains_eager, load_only
from sqlalchemy.sql import Select

from .descriptor import CountDescriptor, FilterCondition, QueryDescriptor, SearchCondition, SearchExpression, Where
from .errors import MetadataError
from .metadata import FieldKind, ModelMetadata
from .operators import COMPARISON_OPERATORS, PATTERN_OPERATORS, SEARCH_OPERATORS, SearchOperator

_TEXT_KINDS = {FieldKind.STRING, FieldKind.OTHER}
_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


def _bad_filter_value(field: str, kind: FieldKind) -> HTTPException:
    return HTTPException(status_code=400, detail=f'Invalid filter value for field "{field}" ({kind.value})')


def _coerce_scalar(field: str, kind: FieldKind, value: Any) -> Any:
    if value is None or kind in _TEXT_KINDS or kind in (FieldKind.ENUM, FieldKind.JSON):
        return value
    if kind is FieldKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise _bad_filter_value(field, kind)

    text = str(value).strip()
    try:
        if kind is FieldKind.INTEGER:
            return value if isinstance(value, int) else int(text)
        if kind is FieldKind.FLOAT:
            return float(text)
        if kind is FieldKind.DECIMAL:
            return Decimal(text)
        if kind is FieldKind.DATE:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        if kind is FieldKind.DATETIME:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        if kind is FieldKind.UUID:
            return uuid.UUID(text)
    except (ValueError, TypeError, InvalidOperation):
        raise _bad_filter_value(field, kind)
    return value


def coerce_value(metadata: ModelMetadata, field: str, value: Any) -> Any:
    """
    Convert a raw filter value to the Python type of `field`.

    Raises:
        HTTPException: 400 when the value does not parse as the field's type
    """
    spec = metadata.fields.get(field)
    if spec is None:
        return value
    if isinstance(value, tuple):
        return tuple(_coerce_scalar(field, spec.kind, x) for x in value)
    return _coerce_scalar(field, spec.kind, value)


def _resolve_column(entity, metadata: ModelMetadata, field: str):
    column = getattr(entity, field, None)
    if column is None:
        raise MetadataError(f"Field '{field}' of '{metadata.name}' is not a mapped attribute")
    return column


def _filter_clause(entity, metadata: ModelMetadata, condition: FilterCondition):
    column = _resolve_column(entity, metadata, condition.field)
    value = condition.value
    if condition.op not in PATTERN_OPERATORS:
        value = coerce_value(metadata, condition.field, value)
    return COMPARISON_OPERATORS[condition.op](column, value)


def _where_clauses(entity, metadata: ModelMetadata, where: Where) -> list:
    clauses = [_filter_clause(entity, metadata, c) for c in where.conditions]
    for group in where.any_of:
        clauses.append(or_(*[_filter_clause(entity, metadata, c) for c in group]))
    return clauses


def _search_clause(targets: dict, condition: SearchCondition):
    entity, metadata = targets[condition.scope]
    column = _resolve_column(entity, metadata, condition.field)
    spec = metadata.fields.get(condition.field)
    kind = spec.kind if spec else FieldKind.STRING

    if condition.op is SearchOperator.EQ:
        # A keyword that is not a valid value for the column simply cannot match it
        try:
            value = _coerce_scalar(condition.field, kind, condition.value)
        except HTTPException:
            return false()
        return SEARCH_OPERATORS[condition.op](column, value)

    if kind is not FieldKind.STRING:
        column = cast(column, String)
    return SEARCH_OPERATORS[condition.op](column, condition.value)


def _search_expression(targets: dict, expression: SearchExpression):
    return and_(*[
        or_(*[_search_clause(targets, c) for c in group])
        for group in expression.groups
    ])


def _relationship(cls, metadata: ModelMetadata, alias: str):
    spec = metadata.relations.get(alias)
    rel_name = spec.relationship_name(alias) if spec else alias
    relationship = getattr(cls, rel_name, None)
    if relationship is None or not isinstance(getattr(relationship, "property", None), RelationshipProperty):
        raise MetadataError(f"Relation '{alias}' is not a relationship of '{cls.__name__}'")
    return relationship


def _apply_relations_and_where(cls, metadata: ModelMetadata, descriptor: CountDescriptor, stmt: Select):
    targets = {None: (cls, metadata)}
    loaders = []
    clauses = _where_clauses(cls, metadata, descriptor.where)

    for include in descriptor.relations:
        relationship = _relationship(cls, metadata, include.alias)
        alias = aliased(relationship.property.mapper.class_)
        target = relationship.of_type(alias)
        targets[include.alias] = (alias, include.related_model)
        relation_clauses = _where_clauses(alias, include.related_model, include.where)
        if include.required:
            stmt = stmt.join(target)
            clauses.extend(relation_clauses)
        else:
            # an optional related row that does not match must not remove its parent
            stmt = stmt.outerjoin(target.and_(*relation_clauses) if relation_clauses else target)

        loader = contains_eager(target)
        if include.attributes:
            loader = loader.load_only(
                *[_resolve_column(alias, include.related_model, x) for x in include.attributes]
            )
        loaders.append(loader)

    if descriptor.where.search is not None:
        clauses.append(_search_expression(targets, descriptor.where.search))

    if clauses:
        stmt = stmt.where(*clauses)
    return stmt, loaders


def compile_select(cls: Any, metadata: ModelMetadata, descriptor: QueryDescriptor) -> Select:
    stmt, loaders = _apply_relations_and_where(cls, metadata, descriptor, select(cls))
    if loaders:
        stmt = stmt.options(*loaders)

    if descriptor.attributes:
        stmt = stmt.options(load_only(*[_resolve_column(cls, metadata, x) for x in descriptor.attributes]))

    # Sorting
    if descriptor.order is not None:
        column = getattr(cls, descriptor.order.field, None)
        if column is None:
            raise HTTPException(status_code=400, detail=f"Invalid sort field: {descriptor.order.field}")
        stmt = stmt.order_by(asc(column) if descriptor.order.direction == "ASC" else desc(column))

    if descriptor.limit is not None:
        stmt = stmt.limit(descriptor.limit)
    if descriptor.offset:
        stmt = stmt.offset(descriptor.offset)
    return stmt


def compile_count(cls: Any, metadata: ModelMetadata, descriptor: CountDescriptor) -> Select:
    """Count the distinct primary keys matching a descriptor's where and joins."""
    pk = _resolve_column(cls, metadata, metadata.primary_key)
    stmt = select(func.count(distinct(pk))).select_from(cls)
    stmt, _ = _apply_relations_and_where(cls, metadata, descriptor, stmt)
    return stmt
