from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> str:
    """Return the current time as an RFC3339 UTC string with trailing 'Z'."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
