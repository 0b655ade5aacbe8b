"""Domain exceptions raised by the session service and stores.

Each exception carries a stable ``code`` that the HTTP layer maps to a
status via ``survey_stepper.http.error_mapping``.
"""

from __future__ import annotations


class SurveySessionError(Exception):
    code = "INTERNAL_ERROR"
    default_message = "Survey session operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(SurveySessionError):
    code = "BAD_REQUEST"
    default_message = "Bad request"


class InvalidStepIndex(BadRequest):
    default_message = "Invalid step index"


class SessionNotFound(SurveySessionError):
    code = "NOT_FOUND"
    default_message = "Survey session not found"

    def __init__(self, session_id: str, message: str | None = None) -> None:
        self.session_id = session_id
        super().__init__(message)


class StepNotFound(SessionNotFound):
    default_message = "Session or step not found"

    def __init__(self, session_id: str, step_index: int) -> None:
        self.step_index = step_index
        super().__init__(session_id)


class StepValidationFailed(SurveySessionError):
    code = "VALIDATION_FAILED"
    default_message = "Current step has unanswered questions"

    def __init__(self, field_errors: list[dict[str, str]]) -> None:
        self.field_errors = field_errors
        super().__init__()


class PreconditionRequired(SurveySessionError):
    code = "PRE_IF_MATCH_MISSING"
    default_message = "If-Match header is required"


class VersionConflict(SurveySessionError):
    """Raised when the caller's view of a session is stale.

    ``current_etag`` is filled in by the service so the HTTP layer can hand
    the fresh token back to the client.
    """

    code = "SESSION_VERSION_CONFLICT"
    default_message = "Survey session was modified concurrently"

    def __init__(self, session_id: str, message: str | None = None, current_etag: str | None = None) -> None:
        self.session_id = session_id
        self.current_etag = current_etag
        super().__init__(message)


class ETagMismatch(VersionConflict):
    code = "PRE_IF_MATCH_ETAG_MISMATCH"
    default_message = "If-Match does not match the current session ETag"


__all__ = [
    "SurveySessionError",
    "BadRequest",
    "InvalidStepIndex",
    "SessionNotFound",
    "StepNotFound",
    "StepValidationFailed",
    "PreconditionRequired",
    "VersionConflict",
    "ETagMismatch",
]
