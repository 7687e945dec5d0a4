"""Attribute filter for TXT-based service selection."""

from typing import Any, Dict, Mapping, Optional

BINARY_KEY = "binary"


def build_txt_query(txt: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Build the attribute query from a configured TXT pattern.

    Keys mentioning ``binary`` only steer decoding and never take part in
    matching. An empty pattern yields ``None``.
    """
    if txt is None:
        return None
    query = {key: value for key, value in txt.items() if BINARY_KEY not in key}
    return query or None


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def service_matches(
    txt: Optional[Mapping[str, Any]], query: Optional[Mapping[str, Any]]
) -> bool:
    """Check whether a decoded TXT mapping satisfies an attribute query.

    Query values:
        None: the key must be absent
        True: the key must be present, any value
        other: the decoded value must equal it, compared as text
    """
    if not query:
        return True

    txt = txt or {}
    for key, expected in query.items():
        if expected is None:
            if key in txt:
                return False
            continue
        if key not in txt:
            return False
        if expected is True:
            continue
        if _text(txt[key]) != _text(expected):
            return False
    return True
