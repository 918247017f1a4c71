# fastapi_rest_query/pagination.py

import math
import re
from collections.abc import Mapping
from typing import Any, Optional

from .metadata import PaginationPolicy


# decimal literals and Infinity only; no underscores, hex or "nan"/"inf" spellings
_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?|[+-]?Infinity")


def to_number(value: Any) -> float:
    """
    Numeric value of a raw parameter.

    Strings must be a plain decimal literal or `[+-]Infinity`; anything else,
    and NaN, is 0. Infinities are kept so the policy bounds can clamp them.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMBER.fullmatch(text):
            return 0
        number = float(text.replace("Infinity", "inf"))
    else:
        return 0
    if math.isnan(number):
        return 0
    return number


def resolve_pagination(policy: Optional[PaginationPolicy], params: Mapping) -> tuple[int, int]:
    """Return (offset, limit) from `startIndex` / `maxResults`, clamped by the policy."""
    if policy is None:
        policy = PaginationPolicy()
    start_index = max(to_number(params.get("startIndex")) or 0, 0)
    max_results = max(to_number(params.get("maxResults")) or policy.default_page_size, 0)
    offset = min(start_index, policy.max_offset)
    limit = min(max_results, policy.max_page_size)
    return int(offset), int(limit)
