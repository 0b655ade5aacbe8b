"""Client-side stepper store.

Mirrors one survey session held by the API and exposes navigation and
answer helpers to UI code. Every network action issues exactly one request
and replaces local state with the server's response; only ``set_answer``
edits the local copy, and those edits stay local until the next save.

The store remembers the last ETag it saw and sends it as ``If-Match`` on
writes, so a save made from a stale view fails with a conflict instead of
overwriting someone else's changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

from survey_stepper.config import ClientConfig
from survey_stepper.logic.clock import utc_now
from survey_stepper.logic.navigation import NEXT, PREVIOUS
from survey_stepper.logic.step_validation import is_answered
from survey_stepper.models.session import Answer, Step, SurveySession

logger = logging.getLogger(__name__)


@dataclass
class StepperState:
    session: Optional[SurveySession] = None
    current_step: Optional[Step] = None
    is_loading: bool = False
    is_submitting: bool = False
    error: Optional[str] = None
    validation_errors: dict[str, str] = field(default_factory=dict)
    has_unsaved_changes: bool = False
    etag: Optional[str] = None


@dataclass(frozen=True)
class StepNavigationInfo:
    is_first_step: bool
    is_last_step: bool
    can_go_next: bool
    can_go_previous: bool
    next_label: str
    previous_label: str


class StepperError(Exception):
    """Raised for a non-success API response; carries the problem body."""

    def __init__(self, status_code: int, body: dict[str, Any]) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"{status_code} {body.get('code', '')}: {body.get('message', '')}")


class StepperStore:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.Client | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        cfg = config or ClientConfig()
        if client is None:
            client = httpx.Client(base_url=base_url or cfg.base_url, timeout=cfg.timeout_seconds)
        self.client = client
        self.state = StepperState()

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "StepperStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- transport -----------------------------------------------------------

    def _request(self, method: str, path: str, *, json: Any = None, write: bool = False) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if write and self.state.etag:
            headers["If-Match"] = self.state.etag
        response = self.client.request(method, path, json=json, headers=headers)
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"message": response.text}
            raise StepperError(response.status_code, body if isinstance(body, dict) else {"message": str(body)})
        return response

    def _apply_session(self, response: httpx.Response) -> None:
        session = SurveySession.model_validate(response.json())
        self.state.session = session
        self.state.current_step = _step_at(session, session.current_step_index)
        self.state.etag = response.headers.get("ETag")
        self.state.has_unsaved_changes = False

    def _fail(self, exc: Exception, message: str) -> None:
        self.state.validation_errors = {}
        if isinstance(exc, StepperError):
            field_errors = exc.body.get("fieldErrors") or []
            self.state.validation_errors = {
                str(fe.get("field", "")): str(fe.get("message", "")) for fe in field_errors if isinstance(fe, dict)
            }
            if exc.status_code == 409:
                self._reload_after_conflict()
            self.state.error = message
        else:
            self.state.error = str(exc) or message
        logger.warning("stepper.request_failed message=%s cause=%s", message, exc)

    def _reload_after_conflict(self) -> None:
        """Replace stale local state with the server's copy so the next write can succeed."""
        session = self.state.session
        if session is None:
            return
        try:
            self._apply_session(self._request("GET", f"/survey-sessions/{session.id}"))
        except (StepperError, httpx.HTTPError) as exc:
            logger.warning("stepper.reload_failed session_id=%s cause=%s", session.id, exc)

    # -- actions -------------------------------------------------------------

    def initialize_session(self, survey_id: str, initial_answers: Iterable[Answer] | None = None) -> None:
        self.state.is_loading = True
        self.state.error = None
        body: dict[str, Any] = {"surveyId": survey_id}
        if initial_answers is not None:
            body["initialAnswers"] = [a.to_wire() for a in initial_answers]
        try:
            self._apply_session(self._request("POST", "/survey-sessions", json=body))
        except (StepperError, httpx.HTTPError) as exc:
            self._fail(exc, "Failed to create survey session")
        finally:
            self.state.is_loading = False

    def load_session(self, session_id: str) -> None:
        self.state.is_loading = True
        self.state.error = None
        try:
            self._apply_session(self._request("GET", f"/survey-sessions/{session_id}"))
        except (StepperError, httpx.HTTPError) as exc:
            self._fail(exc, "Failed to load survey session")
        finally:
            self.state.is_loading = False

    def save_current_answers(self, answers: Iterable[Answer]) -> None:
        session = self.state.session
        if session is None:
            return
        self.state.is_submitting = True
        self.state.error = None
        body = {"answers": [a.to_wire() for a in answers], "preserveOtherSteps": True}
        try:
            self._apply_session(
                self._request(
                    "PUT",
                    f"/survey-sessions/{session.id}/steps/{session.current_step_index}",
                    json=body,
                    write=True,
                )
            )
        except (StepperError, httpx.HTTPError) as exc:
            self._fail(exc, "Failed to save answers")
        finally:
            self.state.is_submitting = False

    def navigate_to_step(self, direction: str) -> None:
        session = self.state.session
        if session is None:
            return
        self.state.is_loading = True
        self.state.error = None
        try:
            self._apply_session(
                self._request(
                    "POST",
                    f"/survey-sessions/{session.id}/navigate",
                    json={"direction": direction, "validateCurrentStep": True},
                    write=True,
                )
            )
        except (StepperError, httpx.HTTPError) as exc:
            self._fail(exc, "Failed to navigate")
        finally:
            self.state.is_loading = False

    def jump_to_step(self, step_index: int) -> None:
        """Make ``step_index`` current with a single request."""
        session = self.state.session
        if session is None or not 0 <= step_index < len(session.steps):
            return
        self.state.is_loading = True
        self.state.error = None
        try:
            self._apply_session(
                self._request(
                    "PUT",
                    f"/survey-sessions/{session.id}/current-step",
                    json={"stepIndex": step_index},
                    write=True,
                )
            )
        except (StepperError, httpx.HTTPError) as exc:
            self._fail(exc, "Failed to navigate")
        finally:
            self.state.is_loading = False

    def go_next(self) -> None:
        if self.get_navigation_info().can_go_next:
            self.navigate_to_step(NEXT)

    def go_previous(self) -> None:
        if self.get_navigation_info().can_go_previous:
            self.navigate_to_step(PREVIOUS)

    def reset_session(self) -> None:
        self.state = StepperState()

    def set_answer(self, question_id: str, value: Any) -> None:
        session = self.state.session
        if session is None:
            return
        step = _step_at(session, session.current_step_index)
        answer = Answer(
            question_id=question_id,
            value=value,
            step_id=step.id if step else None,
            updated_at=utc_now(),
        )
        answers = list(session.answers)
        for i, existing in enumerate(answers):
            if existing.question_id == question_id:
                answers[i] = answer
                break
        else:
            answers.append(answer)
        self.state.session = session.model_copy(update={"answers": answers})
        self.state.has_unsaved_changes = True

    def clear_error(self) -> None:
        self.state.error = None
        self.state.validation_errors = {}

    def mark_unsaved_changes(self, has_changes: bool) -> None:
        self.state.has_unsaved_changes = has_changes

    # -- selectors -----------------------------------------------------------

    def get_navigation_info(self) -> StepNavigationInfo:
        session = self.state.session
        if session is None:
            return StepNavigationInfo(True, True, False, False, "Next", "Previous")
        is_first = session.current_step_index == 0
        is_last = session.current_step_index == len(session.steps) - 1
        return StepNavigationInfo(
            is_first_step=is_first,
            is_last_step=is_last,
            can_go_next=not is_last,
            can_go_previous=not is_first,
            next_label="Submit" if is_last else "Next",
            previous_label="Previous",
        )

    def get_current_step_answers(self) -> list[Answer]:
        session, step = self.state.session, self.state.current_step
        if session is None or step is None:
            return []
        return [a for a in session.answers if a.question_id in step.question_ids]

    def get_answer_value(self, question_id: str) -> Any:
        session = self.state.session
        if session is None:
            return None
        for answer in session.answers:
            if answer.question_id == question_id:
                return answer.value
        return None

    def validate_current_step(self) -> bool:
        step = self.state.current_step
        if step is None:
            return False
        return all(is_answered(self.get_answer_value(qid)) for qid in step.question_ids)

    def can_proceed_to_next(self) -> bool:
        return self.get_navigation_info().can_go_next and self.validate_current_step()

    def save_answers(self) -> None:
        """Save the current step's local answers, if there are any."""
        answers = self.get_current_step_answers()
        if answers:
            self.save_current_answers(answers)

    @property
    def progress(self) -> dict[str, int]:
        session = self.state.session
        if session is None:
            return {"completedSteps": 0, "totalSteps": 0, "percentage": 0}
        return session.progress.to_wire()


def _step_at(session: SurveySession, index: int) -> Step | None:
    if 0 <= index < len(session.steps):
        return session.steps[index]
    return None


__all__ = ["StepperStore", "StepperState", "StepNavigationInfo", "StepperError"]
