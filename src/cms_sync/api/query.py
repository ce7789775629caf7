"""Query-string encoding for the CMS REST API.

The CMS expects nested parameters in bracket notation, the format produced
by the ``qs`` package on the JavaScript side:

    {"filters": {"systemId": {"$in": ["a", "b"]}}}
        -> filters[systemId][$in][0]=a&filters[systemId][$in][1]=b

    {"populate": {"variants": {"fields": ["sku"]}}}
        -> populate[variants][fields][0]=sku

The encoder returns a list of (key, value) pairs which aiohttp accepts as
``params`` and URL-encodes itself.
"""

from typing import Any

QueryPairs = list[tuple[str, str]]


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(prefix: str, value: Any, out: QueryPairs) -> None:
    if value is None:
        return

    if isinstance(value, dict):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]" if prefix else str(key), item, out)
        return

    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, out)
        return

    out.append((prefix, _scalar(value)))


def encode_query(params: dict[str, Any] | None) -> QueryPairs:
    """Flatten nested query parameters into bracket-notation pairs.

    ``None`` values are dropped at every level so optional options can be
    passed straight through.

    Args:
        params: Nested dict of query parameters

    Returns:
        Ordered list of (key, value) string pairs
    """
    out: QueryPairs = []
    for key, value in (params or {}).items():
        _flatten(str(key), value, out)
    return out
