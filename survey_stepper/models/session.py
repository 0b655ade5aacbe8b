"""Pydantic models for survey sessions, steps, answers and progress.

Wire names are camelCase (``surveyId``, ``currentStepIndex``); Python
attributes stay snake_case. Models accept either form on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase representation."""
        return self.model_dump(by_alias=True, mode="json")


class Step(CamelModel):
    id: str
    title: str
    description: str | None = None
    question_ids: list[str] = Field(default_factory=list)


class Answer(CamelModel):
    question_id: str
    value: Any
    step_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Progress(CamelModel):
    completed_steps: int = 0
    total_steps: int = 0
    percentage: int = 0


class SurveySession(CamelModel):
    id: str
    survey_id: str
    current_step_index: int = 0
    steps: list[Step]
    answers: list[Answer] = Field(default_factory=list)
    progress: Progress
    created_at: str
    updated_at: str
    # Optimistic-concurrency token; bumped by the store on every write
    version: int = 1


class SessionStepResponse(CamelModel):
    step: Step
    answers: list[Answer]
    current_step_index: int
    progress: Progress


__all__ = [
    "CamelModel",
    "Step",
    "Answer",
    "Progress",
    "SurveySession",
    "SessionStepResponse",
]
