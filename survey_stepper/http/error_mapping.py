"""Central error mapping.

Single source of truth for turning domain error codes into HTTP statuses
and problem titles. Handlers import from here instead of hardcoding
numbers.
"""

from __future__ import annotations

ERROR_MAP: dict[str, dict] = {
    "BAD_REQUEST": {"status": 400, "title": "Bad Request"},
    "NOT_FOUND": {"status": 404, "title": "Not Found"},
    "VALIDATION_FAILED": {"status": 422, "title": "Unprocessable Entity"},
    "PRE_IF_MATCH_MISSING": {"status": 428, "title": "Precondition Required"},
    "PRE_IF_MATCH_ETAG_MISMATCH": {"status": 409, "title": "Conflict"},
    "SESSION_VERSION_CONFLICT": {"status": 409, "title": "Conflict"},
    "INTERNAL_ERROR": {"status": 500, "title": "Internal Server Error"},
}

DEFAULT_ERROR = ERROR_MAP["INTERNAL_ERROR"]


def status_for(code: str) -> int:
    return int(ERROR_MAP.get(code, DEFAULT_ERROR)["status"])


def title_for(code: str) -> str:
    return str(ERROR_MAP.get(code, DEFAULT_ERROR)["title"])


__all__ = ["ERROR_MAP", "status_for", "title_for"]
