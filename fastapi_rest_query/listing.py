# fastapi_rest_query/listing.py

import logging
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple, Optional

from fastapi import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from .builder import build_query_descriptor
from .core import compile_count, compile_select
from .descriptor import QueryDescriptor, RelationInclude
from .metadata import ModelMetadata
from .projection import project, project_items
from .settings import get_settings

logger = logging.getLogger(__name__)


class ListResult(NamedTuple):
    items: list
    # None when the caller opted out of counting
    total: Optional[int]


def serialize_row(
    obj: Any,
    metadata: ModelMetadata,
    attributes: Optional[Sequence[str]] = None,
    relations: Sequence[RelationInclude] = (),
) -> dict[str, Any]:
    """Plain dict of a loaded row and its included relations, keyed by alias."""
    data = {name: getattr(obj, name) for name in (attributes or metadata.fields)}
    for include in relations:
        spec = metadata.relations[include.alias]
        value = getattr(obj, spec.relationship_name(include.alias))
        related_attrs = include.attributes or tuple(include.related_model.fields)
        if value is None:
            data[include.alias] = None
        elif isinstance(value, (list, tuple, set)):
            data[include.alias] = [serialize_row(x, include.related_model, related_attrs) for x in value]
        else:
            data[include.alias] = serialize_row(value, include.related_model, related_attrs)
    return data


def _ignore_total(params: Mapping) -> bool:
    return params.get("_ignoreTotal") == get_settings().IGNORE_TOTAL_VALUE


def _set_total(response: Optional[Response], total: int) -> None:
    if response is not None:
        response.headers[get_settings().TOTAL_HEADER] = str(total)


def _finish(rows, metadata, descriptor, params, allow_attrs, apply_attrs) -> list:
    items = [serialize_row(x, metadata, descriptor.attributes, descriptor.relations) for x in rows]
    items = project_items(items, allow_attrs)
    if apply_attrs and isinstance(params.get("attrs"), str):
        items = project_items(items, params["attrs"].split(","))
    return items


def list_resources(
    session: Session,
    cls: Any,
    metadata: ModelMetadata,
    params: Mapping,
    allow_attrs: Optional[Sequence[str]] = None,
    response: Optional[Response] = None,
    descriptor: Optional[QueryDescriptor] = None,
    apply_attrs: bool = True,
) -> ListResult:
    """
    Fetch one page of `cls` rows for a request.

    The matching rows are counted first, unless `_ignoreTotal=yes`; a zero
    count returns an empty page without querying for rows. The total goes to
    the `X-Content-Record-Total` header when a response is given.

    Args:
        session: Database session
        cls: Mapped class
        metadata: Metadata for `cls`
        params: Request parameters
        allow_attrs: Attributes a caller is ever allowed to see
        response: Response to put the total header on
        descriptor: Pre-built descriptor, built from `params` when omitted
        apply_attrs: Project the rows on the request's `attrs` parameter

    Returns:
        ListResult
    """
    descriptor = descriptor or build_query_descriptor(metadata, params)

    total = None
    if not _ignore_total(params):
        total = session.execute(compile_count(cls, metadata, descriptor.count_descriptor())).scalar_one()
        if not total:
            logger.debug("No %s rows match, skipping the row query", metadata.name)
            _set_total(response, 0)
            return ListResult([], 0)

    rows = session.execute(compile_select(cls, metadata, descriptor)).unique().scalars().all()
    if total is not None:
        _set_total(response, total)
    return ListResult(_finish(rows, metadata, descriptor, params, allow_attrs, apply_attrs), total)


async def alist_resources(
    session: AsyncSession,
    cls: Any,
    metadata: ModelMetadata,
    params: Mapping,
    allow_attrs: Optional[Sequence[str]] = None,
    response: Optional[Response] = None,
    descriptor: Optional[QueryDescriptor] = None,
    apply_attrs: bool = True,
) -> ListResult:
    """Same as list_resources, on an AsyncSession."""
    descriptor = descriptor or build_query_descriptor(metadata, params)

    total = None
    if not _ignore_total(params):
        result = await session.execute(compile_count(cls, metadata, descriptor.count_descriptor()))
        total = result.scalar_one()
        if not total:
            logger.debug("No %s rows match, skipping the row query", metadata.name)
            _set_total(response, 0)
            return ListResult([], 0)

    result = await session.execute(compile_select(cls, metadata, descriptor))
    rows = result.unique().scalars().all()
    if total is not None:
        _set_total(response, total)
    return ListResult(_finish(rows, metadata, descriptor, params, allow_attrs, apply_attrs), total)


def detail_payload(
    item: Any,
    params: Mapping,
    attachments: Optional[Mapping[str, Any]] = None,
    attr_filter: bool = True,
) -> Any:
    """Response body for a single resource: attachments merged in, then `attrs` applied."""
    ret = dict(item) if isinstance(item, Mapping) else item
    if attachments and isinstance(ret, dict):
        ret.update(attachments)
    if attr_filter and isinstance(params.get("attrs"), str):
        ret = project(ret, params["attrs"].split(","))
    return ret
