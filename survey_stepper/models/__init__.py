"""Pydantic models shared by routes, logic and the client."""

from survey_stepper.models.requests import (
    CreateSurveySessionRequest,
    ErrorResponse,
    FieldError,
    NavigateRequest,
    SaveStepAnswersRequest,
    SetCurrentStepRequest,
)
from survey_stepper.models.session import (
    Answer,
    Progress,
    SessionStepResponse,
    Step,
    SurveySession,
)

__all__ = [
    "Answer",
    "Progress",
    "SessionStepResponse",
    "Step",
    "SurveySession",
    "CreateSurveySessionRequest",
    "SaveStepAnswersRequest",
    "NavigateRequest",
    "SetCurrentStepRequest",
    "FieldError",
    "ErrorResponse",
]
