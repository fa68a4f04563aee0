"""Conversion between URL query strings and report state.

Query format::

    page=2&limit=20&gender%5B%5D=Female&house%5B%5D=Red&house%5B%5D=Blue

- ``page``: 1-indexed, absent/invalid/<1 -> 1
- ``limit``: absent/invalid/<1 -> 20, >50 -> 50
- ``key[]`` (or bare ``key``) may repeat; values accumulate in encounter order
"""

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode

from ..config import DEFAULT_PAGE, RESERVED_KEYS
from .models import FilterSelection, PageState, ReportState, clamp_limit

if TYPE_CHECKING:
    from ..filters.options import FilterOptionSource

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^\s*([+-]?)0*(\d+)\s*$")
_ARRAY_SUFFIX = "[]"

# Longer digit strings saturate instead of being converted
_MAX_INT_DIGITS = 9
_INT_CEILING = 10**_MAX_INT_DIGITS


@dataclass(frozen=True)
class DecodedQuery:
    """Typed view of a query string. ``page`` is 1-indexed."""

    page: int = DEFAULT_PAGE
    limit: int = clamp_limit(None)
    filters: Tuple[Tuple[str, Tuple[str, ...]], ...] = field(default=())

    @property
    def fragments(self) -> List[Dict[str, List[str]]]:
        """Filters as single-key fragments, in first-encounter key order."""
        return [{key: list(values)} for key, values in self.filters]


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    match = _INT_RE.match(raw)
    if match is None:
        return None
    sign, digits = match.groups()
    value = _INT_CEILING if len(digits) > _MAX_INT_DIGITS else int(digits)
    return -value if sign == "-" else value


def _strip_array_suffix(key: str) -> str:
    return key[: -len(_ARRAY_SUFFIX)] if key.endswith(_ARRAY_SUFFIX) else key


def decode(query_string: str, allowed_keys: Sequence[str]) -> DecodedQuery:
    """
    Parse a query string into page, limit and whitelisted filters.

    Never raises: malformed values are clamped or dropped.

    Args:
        query_string: Raw query string, with or without leading '?'
        allowed_keys: Filter keys accepted from the URL

    Returns:
        DecodedQuery with a 1-indexed page
    """
    if query_string.startswith("?"):
        query_string = query_string[1:]

    raw_page: Optional[str] = None
    raw_limit: Optional[str] = None
    accumulated: Dict[str, List[str]] = {}

    for raw_key, value in parse_qsl(query_string, keep_blank_values=True):
        if raw_key == "page":
            # First occurrence wins
            if raw_page is None:
                raw_page = value
            continue
        if raw_key == "limit":
            if raw_limit is None:
                raw_limit = value
            continue

        key = _strip_array_suffix(raw_key)
        if key in RESERVED_KEYS or key not in allowed_keys:
            logger.debug("Ignoring query key '%s'", raw_key)
            continue
        values = accumulated.setdefault(key, [])
        if value not in values:
            values.append(value)

    page = _parse_int(raw_page)
    if page is None or page < DEFAULT_PAGE:
        page = DEFAULT_PAGE

    return DecodedQuery(
        page=page,
        limit=clamp_limit(_parse_int(raw_limit)),
        filters=tuple((key, tuple(values)) for key, values in accumulated.items()),
    )


def encode(state: ReportState) -> str:
    """
    Serialize report state to its canonical query string.

    ``page`` (1-indexed) and ``limit`` always come first, followed by one
    ``key[]=value`` pair per selected value in the state's own order.
    """
    pairs = [
        ("page", str(state.page.page_number + 1)),
        ("limit", str(state.page.items_per_page)),
    ]
    for key, values in state.filters:
        for value in values:
            pairs.append((f"{key}{_ARRAY_SUFFIX}", value))
    return urlencode(pairs)


def state_from_decoded(
    decoded: DecodedQuery,
    allowed_keys: Sequence[str],
    option_source: Optional["FilterOptionSource"] = None,
) -> ReportState:
    """
    Build a ReportState from a decoded query.

    Converts the page to 0-indexed, keeps whitelisted keys only and, when an
    option source is given, drops values that are no longer valid options.
    """
    filters = FilterSelection.from_fragments(decoded.fragments, allowed_keys)
    if option_source is not None:
        filters = filters.restrict(
            allowed_keys, option_source.valid_options(allowed_keys)
        )
    return ReportState(
        page=PageState(page_number=decoded.page - 1, items_per_page=decoded.limit),
        filters=filters,
    )


def decode_state(
    query_string: str,
    allowed_keys: Sequence[str],
    option_source: Optional["FilterOptionSource"] = None,
) -> ReportState:
    """Shortcut for ``state_from_decoded(decode(...))``."""
    return state_from_decoded(
        decode(query_string, allowed_keys), allowed_keys, option_source
    )
