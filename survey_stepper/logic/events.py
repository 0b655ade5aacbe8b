"""Domain event constants and publisher.

Defines event type constants and a simple publish() callable used by the
session service. Recent events are kept in a bounded in-process buffer;
the oldest entries are dropped once it is full.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List
import logging

logger = logging.getLogger(__name__)

SESSION_CREATED = "survey_session.created"
SESSION_ANSWERS_SAVED = "survey_session.answers_saved"
SESSION_NAVIGATED = "survey_session.navigated"
SESSION_DELETED = "survey_session.deleted"

EVENT_BUFFER_SIZE = 500

# Recent domain events for in-process observers and tests
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=EVENT_BUFFER_SIZE)


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event.

    Events are logged and buffered in-process; there is no broker.
    """
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events, oldest first; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "SESSION_CREATED",
    "SESSION_ANSWERS_SAVED",
    "SESSION_NAVIGATED",
    "SESSION_DELETED",
    "EVENT_BUFFER_SIZE",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]
