"""ETag computation and If-Match comparison helpers.

Session ETags are weak validators derived from the session id and its
store version, so they change on every write and are stable between reads.
"""

from __future__ import annotations

import hashlib
import logging

__all__ = [
    "compute_session_etag",
    "compare_etag",
]

logger = logging.getLogger(__name__)


def compute_session_etag(session_id: str, version: int) -> str:
    """Return ``W/"<sha1>"`` over ``"{session_id}:v{version}"``."""
    token = f"{session_id}:v{int(version)}".encode("utf-8")
    return f'W/"{hashlib.sha1(token).hexdigest()}"'


def _split_tags(value: str) -> list[str]:
    """Split a header on commas that are not inside quotes.

    Raises ValueError when the header has an unterminated quoted string.
    """
    in_quote = False
    buf: list[str] = []
    parts: list[str] = []
    for ch in value:
        if ch == '"':
            in_quote = not in_quote
            buf.append(ch)
        elif ch == "," and not in_quote:
            parts.append("".join(buf).strip())
            buf.clear()
        else:
            buf.append(ch)
    if in_quote:
        raise ValueError("unterminated quoted string in If-Match header")
    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def _opaque(tag: str) -> str:
    """Strip the weak prefix and quotes from one entity-tag; '' when invalid."""
    t = tag.strip()
    if len(t) >= 2 and t[:2].upper() == "W/":
        t = t[2:].lstrip()
    if not (len(t) >= 2 and t.startswith('"') and t.endswith('"')):
        return ""
    inner = t[1:-1].strip()
    if not inner or '"' in inner:
        return ""
    return inner


def compare_etag(current: str | None, if_match: str | None) -> bool:
    """Return True when ``if_match`` matches ``current``.

    Any-match over comma-separated lists; weak and strong validators compare
    equal; ``*`` matches anything; blank or malformed headers never match.
    """
    if if_match is None or not str(if_match).strip():
        matched = False
    elif str(if_match).strip() == "*":
        matched = True
    else:
        current_norm = _opaque(current or "")
        try:
            tags = _split_tags(str(if_match).strip())
        except ValueError:
            tags = []
        matched = bool(current_norm) and any(_opaque(t) == current_norm for t in tags)
    logger.debug("etag.compare current=%s if_match=%s matched=%s", current, if_match, matched)
    return matched
