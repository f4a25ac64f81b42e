"""Query-string builders for Box endpoints."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

DEFAULT_SEARCH_LIMIT = 100
DEFAULT_EVENTS_LIMIT = 100

STREAM_POSITION_NOW = "now"
STREAM_TYPE_ALL = "all"
STREAM_TYPES = frozenset({"all", "changes", "sync", "admin_logs"})

USERS_DEFAULTS: dict[str, Any] = {"filter_term": "", "limit": 100, "offset": 0}


def url_with_query_params(base_url: str, query_params: Mapping[str, Any] | None = None) -> str:
    """Merge extra query parameters onto a URL.

    Parameters already present on ``base_url`` are kept, repeated keys
    included. A key given in ``query_params`` replaces every existing value
    for that key and is appended after the kept pairs.

    Args:
        base_url: Absolute URL or API path, optionally carrying a query string.
        query_params: Parameters to add, e.g. ``{"fields": "role"}``.

    Returns:
        The URL with the merged, re-encoded query string.
    """
    parts = urlsplit(base_url)
    overrides = dict(query_params or {})
    pairs: list[tuple[str, Any]] = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in overrides
    ]
    pairs.extend(overrides.items())
    return urlunsplit(parts._replace(query=urlencode(pairs)))


def query_params_with_default(
    query_params: Mapping[str, Any] | None,
    default_options: Mapping[str, Any],
) -> dict[str, Any]:
    """Fill in defaults for any parameter the caller did not give."""
    return {**default_options, **(query_params or {})}


def _joined(values: Iterable[str] | str) -> str:
    if isinstance(values, str):
        return values
    return ",".join(values)


def search_path(
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
    offset: int = 0,
    scope: str | None = None,
    file_extensions: Iterable[str] | None = None,
    content_types: Iterable[str] | None = None,
    item_types: Iterable[str] | None = None,
) -> str:
    """Build the ``/search`` request path for one page.

    Optional filters are only sent when given; list filters are comma-joined.
    """
    params: list[tuple[str, Any]] = [("query", query), ("limit", limit), ("offset", offset)]
    if scope:
        params.append(("scope", scope))
    if file_extensions:
        params.append(("file_extensions", _joined(file_extensions)))
    if content_types:
        params.append(("content_types", _joined(content_types)))
    if item_types:
        params.append(("type", _joined(item_types)))
    return f"/search?{urlencode(params, safe=',', quote_via=quote)}"


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and value.isdigit()


def events_query(
    stream_position: Any = 0,
    stream_type: Any = STREAM_TYPE_ALL,
    limit: Any = DEFAULT_EVENTS_LIMIT,
) -> str:
    """Build the ``/events`` query string, coercing bad values instead of failing.

    Polling loops call this with whatever position the previous response
    returned, so malformed input falls back to a safe value:

    - ``stream_position``: ``"now"`` and numbers pass; anything else becomes ``0``.
    - ``stream_type``: anything outside STREAM_TYPES becomes ``"all"``.
    - ``limit``: anything that is not an int becomes ``100``.
    """
    if str(stream_position) == STREAM_POSITION_NOW:
        stream_position = STREAM_POSITION_NOW
    elif not _is_number(stream_position):
        stream_position = 0
    if not isinstance(stream_type, str) or stream_type not in STREAM_TYPES:
        stream_type = STREAM_TYPE_ALL
    if isinstance(limit, bool) or not isinstance(limit, int):
        limit = DEFAULT_EVENTS_LIMIT
    return f"stream_position={stream_position}&stream_type={stream_type}&limit={limit}"
