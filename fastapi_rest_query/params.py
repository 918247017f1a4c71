# fastapi_rest_query/params.py

import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from fastapi import Query, Request

# alias.field or alias[field]
_NESTED_KEY = re.compile(r"^(?P<alias>[^.\[\]]+)(?:\.(?P<dot>[^.\[\]]+)|\[(?P<bracket>[^\[\]]+)\])$")


def parse_query_params(items: Union[Mapping[str, Any], Iterable[tuple[str, Any]]]) -> dict[str, Any]:
    """
    Flatten a query string into request parameters.

    The last value of a repeated key wins. `alias.field=x` and `alias[field]=x`
    are nested as `{"alias": {"field": "x"}}`, which is where relation filters
    are read from.
    """
    if hasattr(items, "multi_items"):
        pairs = items.multi_items()
    elif isinstance(items, Mapping):
        pairs = items.items()
    else:
        pairs = items

    params: dict[str, Any] = {}
    for key, value in pairs:
        match = _NESTED_KEY.match(key)
        if match:
            alias = match.group("alias")
            if not isinstance(params.get(alias), dict):
                params[alias] = {}
            params[alias][match.group("dot") or match.group("bracket")] = value
        elif not isinstance(params.get(key), dict):
            params[key] = value
    return params


class QueryParams:
    """
    Request parameters of a list endpoint.

    The reserved parameters are declared so they show up in the OpenAPI schema;
    field filters (`name`, `names`, `name!`, `name_like`, `name_gt`, ...) and
    relation filters are read straight from the query string.
    """

    def __init__(
        self,
        request: Request,
        q: Optional[str] = Query(None, description="Space separated search keywords, every keyword must match."),
        searchs: Optional[str] = Query(None, alias="_searchs", description="Comma separated columns to search, e.g. name,creator.email"),
        sort: Optional[str] = Query(None, description="e.g. name or -createdAt"),
        start_index: Optional[str] = Query(None, alias="startIndex", description="Offset of the first row."),
        max_results: Optional[str] = Query(None, alias="maxResults", description="Page size."),
        attrs: Optional[str] = Query(None, description="Comma separated attributes to return."),
        includes: Optional[str] = Query(None, description="Comma separated relations to include."),
        show_delete: Optional[str] = Query(None, alias="showDelete", description="Keep soft-deleted rows."),
        ignore_total: Optional[str] = Query(None, alias="_ignoreTotal", description="'yes' skips counting the total."),
    ):
        self.params = parse_query_params(request.query_params)
