# fastapi_rest_query/metadata.py

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import JSON, Boolean, Date, DateTime, Float, Integer, Numeric, String, Uuid, inspect
from sqlalchemy import Enum as SAEnum

from .errors import MetadataError
from .operators import SearchOperator
from .settings import get_settings

SEARCH_PLACEHOLDER = "{1}"


class FieldKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    ENUM = "enum"
    JSON = "json"
    UUID = "uuid"
    OTHER = "other"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class FieldSpec(_Frozen):
    kind: FieldKind = FieldKind.STRING
    nullable: bool = True
    default: Any = None


class SearchSpec(_Frozen):
    """How one column takes part in `q` search.

    Every template in `match` has the keyword substituted for `{1}` and is
    compared to the column with `op`; the rendered conditions are OR-ed.
    """

    match: tuple[str, ...] = ("%" + SEARCH_PLACEHOLDER + "%",)
    op: SearchOperator = SearchOperator.LIKE

    def render(self, keyword: str) -> tuple[str, ...]:
        return tuple(template.replace(SEARCH_PLACEHOLDER, keyword) for template in self.match)


class SortPolicy(_Frozen):
    default_field: Optional[str] = None
    default_direction: Literal["ASC", "DESC"] = "ASC"
    allowed_fields: Optional[tuple[str, ...]] = None


class PaginationPolicy(_Frozen):
    default_page_size: int = Field(default_factory=lambda: get_settings().DEFAULT_PAGE_SIZE)
    max_page_size: int = Field(default_factory=lambda: get_settings().MAX_PAGE_SIZE)
    max_offset: int = Field(default_factory=lambda: get_settings().MAX_OFFSET)


class RelationSpec(_Frozen):
    model: ModelMetadata
    required: bool = False
    # ORM relationship attribute; the include alias when unset
    attribute: Optional[str] = None

    def relationship_name(self, alias: str) -> str:
        return self.attribute or alias


class ModelMetadata(_Frozen):
    name: str
    fields: dict[str, FieldSpec]
    primary_key: str = "id"
    filterable_fields: Optional[tuple[str, ...]] = None
    searchable_fields: dict[str, SearchSpec] = Field(default_factory=dict)
    sort_policy: Optional[SortPolicy] = None
    pagination_policy: Optional[PaginationPolicy] = None
    relations: dict[str, RelationSpec] = Field(default_factory=dict)
    soft_delete_field: Optional[str] = None
    allowed_relation_attributes: Optional[tuple[str, ...]] = None

    @model_validator(mode="after")
    def _check_field_names(self) -> ModelMetadata:
        unknown = _unknown_fields(self.fields, dict(self))
        if unknown:
            raise ValueError(f"Unknown field(s) for '{self.name}': {', '.join(unknown)}")
        return self

    def filter_fields(self) -> tuple[str, ...]:
        if self.filterable_fields is None:
            return tuple(self.fields)
        return self.filterable_fields


RelationSpec.model_rebuild()


def _unknown_fields(fields: Any, values: dict) -> list[str]:
    """Field names referenced by ModelMetadata `values` that are not keys of `fields`."""
    named = list(values.get("filterable_fields") or ()) + list(values.get("searchable_fields") or ())
    named += list(values.get("allowed_relation_attributes") or ())
    if values.get("soft_delete_field"):
        named.append(values["soft_delete_field"])

    sort_policy = values.get("sort_policy")
    if isinstance(sort_policy, dict):
        sort_policy = SortPolicy.model_validate(sort_policy)
    if sort_policy is not None:
        if sort_policy.default_field:
            named.append(sort_policy.default_field)
        named += list(sort_policy.allowed_fields or ())

    unknown = []
    for name in named:
        if name not in fields and name not in unknown:
            unknown.append(name)
    return unknown


def column_kind(column) -> FieldKind:
    """Classify a SQLAlchemy column by its type."""
    col_type = column.type
    # Enum derives from String, so it has to be checked first
    if isinstance(col_type, SAEnum):
        return FieldKind.ENUM
    if isinstance(col_type, JSON):
        return FieldKind.JSON
    if isinstance(col_type, String):
        return FieldKind.STRING
    if isinstance(col_type, Boolean):
        return FieldKind.BOOLEAN
    if isinstance(col_type, Integer):
        return FieldKind.INTEGER
    if isinstance(col_type, Float):
        return FieldKind.FLOAT
    if isinstance(col_type, Numeric):
        return FieldKind.DECIMAL
    if isinstance(col_type, DateTime):
        return FieldKind.DATETIME
    if isinstance(col_type, Date):
        return FieldKind.DATE
    if isinstance(col_type, Uuid):
        return FieldKind.UUID
    return FieldKind.OTHER


def _scalar_default(column) -> Any:
    default = column.default
    if default is None or not getattr(default, "is_scalar", False):
        return None
    return default.arg


def metadata_from_model(cls: Any, *, name: Optional[str] = None, exclude: tuple[str, ...] = (), **overrides: Any) -> ModelMetadata:
    """
    Build ModelMetadata for a SQLAlchemy mapped class.

    Args:
        cls: The mapped class
        name: Entity name, defaults to the table name
        exclude: Column attributes to leave out of `fields`
        **overrides: Any other ModelMetadata field (policies, relations, ...)

    Returns:
        ModelMetadata describing the class
    """
    mapper = inspect(cls)

    fields = {}
    for attr in mapper.column_attrs:
        if attr.key in exclude:
            continue
        column = attr.columns[0]
        fields[attr.key] = FieldSpec(
            kind=column_kind(column),
            nullable=bool(column.nullable),
            default=_scalar_default(column),
        )

    for alias, spec in (overrides.get("relations") or {}).items():
        rel_name = spec.relationship_name(alias) if isinstance(spec, RelationSpec) else spec.get("attribute") or alias
        if rel_name not in mapper.relationships:
            raise MetadataError(
                f"Relation '{alias}' does not resolve to a relationship on '{cls.__name__}'"
            )

    unknown = _unknown_fields(fields, overrides)
    if unknown:
        raise MetadataError(f"Unknown field(s) for '{cls.__name__}': {', '.join(unknown)}")

    if "primary_key" not in overrides:
        overrides["primary_key"] = mapper.get_property_by_column(mapper.primary_key[0]).key

    return ModelMetadata(name=name or mapper.local_table.name, fields=fields, **overrides)
