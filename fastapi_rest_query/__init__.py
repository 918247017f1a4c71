"""fastapi-rest-query: REST list query parameters to SQLAlchemy queries."""

from .builder import build_count_descriptor, build_query_descriptor  # noqa: F401
from .core import compile_count, compile_select  # noqa: F401
from .dependencies import RestParams, RestQuery  # noqa: F401
from .descriptor import (  # noqa: F401
    CountDescriptor,
    FilterCondition,
    Order,
    QueryDescriptor,
    RelationInclude,
    SearchCondition,
    SearchExpression,
    Where,
)
from .errors import MetadataError, RestQueryError  # noqa: F401
from .listing import ListResult, alist_resources, detail_payload, list_resources  # noqa: F401
from .metadata import (  # noqa: F401
    FieldKind,
    FieldSpec,
    ModelMetadata,
    PaginationPolicy,
    RelationSpec,
    SearchSpec,
    SortPolicy,
    metadata_from_model,
)
from .operators import FilterOperator, SearchOperator  # noqa: F401
from .params import QueryParams, parse_query_params  # noqa: F401
from .projection import project, project_item, project_items  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    # Descriptors
    "build_query_descriptor",
    "build_count_descriptor",
    "QueryDescriptor",
    "CountDescriptor",
    "Where",
    "FilterCondition",
    "SearchCondition",
    "SearchExpression",
    "RelationInclude",
    "Order",
    # Metadata
    "ModelMetadata",
    "FieldSpec",
    "FieldKind",
    "SearchSpec",
    "SortPolicy",
    "PaginationPolicy",
    "RelationSpec",
    "metadata_from_model",
    "FilterOperator",
    "SearchOperator",
    # SQLAlchemy
    "compile_select",
    "compile_count",
    # FastAPI
    "QueryParams",
    "parse_query_params",
    "RestParams",
    "RestQuery",
    "list_resources",
    "alist_resources",
    "ListResult",
    "detail_payload",
    # Projection
    "project",
    "project_item",
    "project_items",
    # Errors
    "RestQueryError",
    "MetadataError",
]
