"""Session store abstraction and the in-memory backend.

Stores hand out copies: a session read from the store can be mutated freely
and only becomes visible after ``put``. ``put`` with an ``expected_version``
is a compare-and-swap on the stored version; the stored copy always gets the
next version number.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Protocol

from survey_stepper.logic.errors import SessionNotFound, VersionConflict
from survey_stepper.models.session import SurveySession

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def get(self, session_id: str) -> SurveySession | None: ...

    def put(self, session: SurveySession, expected_version: int | None = None) -> SurveySession:
        """Insert (``expected_version`` None) or update a session; return the stored copy."""
        ...

    def delete(self, session_id: str, expected_version: int | None = None) -> bool: ...


class InMemorySessionStore:
    """Process-local store; all sessions are lost on restart."""

    name = "memory"

    def __init__(self) -> None:
        self._sessions: Dict[str, SurveySession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> SurveySession | None:
        with self._lock:
            stored = self._sessions.get(session_id)
            return stored.model_copy(deep=True) if stored is not None else None

    def put(self, session: SurveySession, expected_version: int | None = None) -> SurveySession:
        with self._lock:
            current = self._sessions.get(session.id)
            if expected_version is None:
                if current is not None:
                    raise VersionConflict(session.id, "Survey session already exists")
                new_version = 1
            else:
                if current is None:
                    raise SessionNotFound(session.id)
                if current.version != expected_version:
                    logger.info(
                        "session_store.conflict session_id=%s expected=%s stored=%s",
                        session.id,
                        expected_version,
                        current.version,
                    )
                    raise VersionConflict(session.id)
                new_version = expected_version + 1
            stored = session.model_copy(deep=True, update={"version": new_version})
            self._sessions[session.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, session_id: str, expected_version: int | None = None) -> bool:
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                return False
            if expected_version is not None and current.version != expected_version:
                raise VersionConflict(session_id)
            del self._sessions[session_id]
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["SessionStore", "InMemorySessionStore"]
