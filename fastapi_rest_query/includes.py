# fastapi_rest_query/includes.py

import logging
from collections.abc import Mapping

from .descriptor import FilterCondition, RelationInclude, Where
from .filters import active_condition, build_where, to_conditions, wants_deleted
from .metadata import ModelMetadata, RelationSpec
from .operators import FilterOperator
from .search import FieldDisjunctions, search_conditions

logger = logging.getLogger(__name__)


def requested_aliases(metadata: ModelMetadata, params: Mapping) -> list[str]:
    """Aliases named by `includes=a,b` that the model declares, first occurrence order."""
    raw = params.get("includes")
    if not metadata.relations or not isinstance(raw, str):
        return []
    aliases = []
    for alias in raw.split(","):
        if alias not in metadata.relations:
            if alias:
                logger.debug("Ignoring unknown include %r on %s", alias, metadata.name)
            continue
        if alias not in aliases:
            aliases.append(alias)
    return aliases


def relation_where(alias: str, spec: RelationSpec, params: Mapping) -> Where:
    related = spec.model
    conditions = to_conditions(build_where(related.filter_fields(), params.get(alias)))

    any_of = ()
    if related.soft_delete_field and not wants_deleted(params):
        group = (active_condition(related.soft_delete_field),)
        # an optional relation without a related row must keep its parent
        if not spec.required:
            group += (FilterCondition(field=related.primary_key, op=FilterOperator.EQ, value=None),)
        any_of = (group,)
    return Where(conditions=conditions, any_of=any_of)


def resolve_includes(
    metadata: ModelMetadata, params: Mapping
) -> tuple[tuple[RelationInclude, ...], list[list[FieldDisjunctions]]]:
    """
    Resolve the relations a request includes.

    Returns:
        The RelationIncludes, and the relation scoped search conditions to be
        merged with the primary model's search
    """
    includes = []
    searches = []
    for alias in requested_aliases(metadata, params):
        spec = metadata.relations[alias]
        related = spec.model
        includes.append(RelationInclude(
            alias=alias,
            related_model=related,
            where=relation_where(alias, spec, params),
            attributes=related.allowed_relation_attributes,
            required=spec.required,
        ))
        searches.append(search_conditions(related, params.get("_searchs"), params.get("q"), scope=alias))
    return tuple(includes), searches
