"""Survey session service.

Orchestrates the step state machine over an injected ``SessionStore``:
create, read, delete, step fetch, step save, navigation, direct jump and
progress. Every mutation is a read-modify-write conditioned on the version
that was read, so concurrent writers get ``VersionConflict`` instead of a
lost update. Callers may also pass the client's ``If-Match`` header, which
is checked against the session ETag before anything changes.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable

from survey_stepper.config import RESET_SCOPE_SESSION
from survey_stepper.logic.answers_merge import merge_step_answers
from survey_stepper.logic.clock import utc_now
from survey_stepper.logic.errors import (
    BadRequest,
    ETagMismatch,
    SessionNotFound,
    StepNotFound,
    VersionConflict,
)
from survey_stepper.logic.etag import compare_etag, compute_session_etag
from survey_stepper.logic.events import (
    SESSION_ANSWERS_SAVED,
    SESSION_CREATED,
    SESSION_DELETED,
    SESSION_NAVIGATED,
    publish,
)
from survey_stepper.logic.navigation import NEXT, in_range, jump_target, step_after
from survey_stepper.logic.progress import compute_progress, initial_progress
from survey_stepper.logic.step_templates import generate_steps
from survey_stepper.logic.step_validation import validate_step_complete
from survey_stepper.logic.storage import SessionStore
from survey_stepper.models.session import Answer, SessionStepResponse, SurveySession

logger = logging.getLogger(__name__)


def session_etag(session: SurveySession) -> str:
    return compute_session_etag(session.id, session.version)


class SurveySessionService:
    def __init__(
        self,
        store: SessionStore,
        *,
        reset_scope: str = RESET_SCOPE_SESSION,
        enforce_step_validation: bool = False,
    ) -> None:
        self.store = store
        self.reset_scope = reset_scope
        self.enforce_step_validation = enforce_step_validation

    # -- internals -----------------------------------------------------------

    def _load(self, session_id: str, if_match: str | None = None) -> SurveySession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        if if_match is not None and if_match.strip():
            current = session_etag(session)
            if not compare_etag(current, if_match):
                logger.info("survey_session.if_match_mismatch session_id=%s", session_id)
                raise ETagMismatch(session_id, current_etag=current)
        return session

    def _save(self, session: SurveySession, expected_version: int) -> SurveySession:
        try:
            return self.store.put(session, expected_version=expected_version)
        except VersionConflict as exc:
            latest = self.store.get(session.id)
            if latest is not None:
                exc.current_etag = session_etag(latest)
            raise

    # -- operations ----------------------------------------------------------

    def create_session(self, survey_id: str, initial_answers: Iterable[Answer] | None = None) -> SurveySession:
        """Create a session with steps generated from ``survey_id``.

        Initial answers are stored as given (no deduplication); a missing
        ``updated_at`` is stamped with the creation time. Progress starts at
        zero regardless of the seeded answers.
        """
        if not survey_id or not survey_id.strip():
            raise BadRequest("Failed to create survey session: surveyId is required")
        now = utc_now()
        steps = generate_steps(survey_id)
        answers = [
            a if a.updated_at else a.model_copy(update={"updated_at": now})
            for a in (initial_answers or [])
        ]
        session = SurveySession(
            id=str(uuid.uuid4()),
            survey_id=survey_id,
            current_step_index=0,
            steps=steps,
            answers=answers,
            progress=initial_progress(steps),
            created_at=now,
            updated_at=now,
        )
        stored = self.store.put(session)
        logger.info("survey_session.created session_id=%s survey_id=%s steps=%d", stored.id, survey_id, len(steps))
        publish(SESSION_CREATED, {"session_id": stored.id, "survey_id": survey_id})
        return stored

    def get_session(self, session_id: str) -> SurveySession:
        return self._load(session_id)

    def delete_session(self, session_id: str, if_match: str | None = None) -> bool:
        """Delete a session; return whether a record existed."""
        session = self.store.get(session_id)
        if session is None:
            return False
        if if_match is not None and if_match.strip():
            current = session_etag(session)
            if not compare_etag(current, if_match):
                raise ETagMismatch(session_id, current_etag=current)
        deleted = self.store.delete(session_id, expected_version=session.version)
        if deleted:
            logger.info("survey_session.deleted session_id=%s", session_id)
            publish(SESSION_DELETED, {"session_id": session_id})
        return deleted

    def get_session_step(self, session_id: str, step_index: int) -> SessionStepResponse:
        session = self._load(session_id)
        if not in_range(step_index, len(session.steps)):
            raise StepNotFound(session_id, step_index)
        step = session.steps[step_index]
        return SessionStepResponse(
            step=step,
            answers=[a for a in session.answers if a.step_id == step.id],
            current_step_index=session.current_step_index,
            progress=session.progress,
        )

    def save_step_answers(
        self,
        session_id: str,
        step_index: int,
        answers: Iterable[Answer],
        *,
        preserve_other_steps: bool | None = True,
        if_match: str | None = None,
    ) -> SurveySession:
        """Replace the answers of one step and recompute progress.

        ``preserve_other_steps=False`` clears according to the configured
        reset scope: the whole session (``session``) or just this step
        (``step``).
        """
        session = self._load(session_id, if_match)
        if not in_range(step_index, len(session.steps)):
            raise StepNotFound(session_id, step_index)
        step = session.steps[step_index]
        now = utc_now()
        incoming = list(answers)
        session.answers = merge_step_answers(
            session.answers,
            step.id,
            incoming,
            now=now,
            preserve_other_steps=preserve_other_steps,
            reset_scope=self.reset_scope,
        )
        session.progress = compute_progress(session.answers, session.steps)
        session.updated_at = now
        stored = self._save(session, expected_version=session.version)
        logger.info(
            "survey_session.answers_saved session_id=%s step_id=%s count=%d completed=%d/%d",
            session_id,
            step.id,
            len(incoming),
            stored.progress.completed_steps,
            stored.progress.total_steps,
        )
        publish(
            SESSION_ANSWERS_SAVED,
            {"session_id": session_id, "step_id": step.id, "answer_count": len(incoming)},
        )
        return stored

    def navigate_session(
        self,
        session_id: str,
        direction: str,
        *,
        validate_current_step: bool | None = None,
        if_match: str | None = None,
    ) -> SurveySession:
        """Move the step pointer one step; a no-op at either boundary.

        ``validate_current_step`` only takes effect when step validation is
        enforced by configuration, and only for forward moves.
        """
        session = self._load(session_id, if_match)
        if self.enforce_step_validation and validate_current_step and direction == NEXT:
            validate_step_complete(session.steps[session.current_step_index], session.answers)
        previous_index = session.current_step_index
        session.current_step_index = step_after(previous_index, len(session.steps), direction)
        session.updated_at = utc_now()
        stored = self._save(session, expected_version=session.version)
        logger.info(
            "survey_session.navigated session_id=%s direction=%s from=%d to=%d",
            session_id,
            direction,
            previous_index,
            stored.current_step_index,
        )
        publish(
            SESSION_NAVIGATED,
            {"session_id": session_id, "from": previous_index, "to": stored.current_step_index},
        )
        return stored

    def set_current_step(self, session_id: str, step_index: int, *, if_match: str | None = None) -> SurveySession:
        """Jump straight to ``step_index`` in a single write."""
        session = self._load(session_id, if_match)
        previous_index = session.current_step_index
        session.current_step_index = jump_target(step_index, len(session.steps))
        session.updated_at = utc_now()
        stored = self._save(session, expected_version=session.version)
        logger.info(
            "survey_session.jumped session_id=%s from=%d to=%d", session_id, previous_index, stored.current_step_index
        )
        publish(
            SESSION_NAVIGATED,
            {"session_id": session_id, "from": previous_index, "to": stored.current_step_index},
        )
        return stored


__all__ = ["SurveySessionService", "session_etag"]
