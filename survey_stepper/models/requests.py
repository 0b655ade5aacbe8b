"""Request payload models for the survey session routes.

Kept apart from the resource models so route modules declare their input
shapes without pulling in storage concerns.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from survey_stepper.models.session import Answer, CamelModel


class CreateSurveySessionRequest(CamelModel):
    survey_id: str
    initial_answers: list[Answer] | None = None


class SaveStepAnswersRequest(CamelModel):
    answers: list[Answer]
    # None is treated as True
    preserve_other_steps: bool | None = None


class NavigateRequest(CamelModel):
    direction: Literal["next", "previous"]
    validate_current_step: bool | None = None


class SetCurrentStepRequest(CamelModel):
    step_index: int = Field(description="Zero-based index of the step to make current")


class FieldError(CamelModel):
    field: str
    message: str


class ErrorResponse(CamelModel):
    code: str
    message: str
    field_errors: list[FieldError] | None = None


__all__ = [
    "CreateSurveySessionRequest",
    "SaveStepAnswersRequest",
    "NavigateRequest",
    "SetCurrentStepRequest",
    "FieldError",
    "ErrorResponse",
]
