"""Completeness checks for the current step.

A question counts as answered when some answer for it carries a value that
is neither null nor an empty string.
"""

from __future__ import annotations

from typing import Any, Iterable

from survey_stepper.logic.errors import StepValidationFailed
from survey_stepper.models.session import Answer, Step


def is_answered(value: Any) -> bool:
    return value is not None and value != ""


def missing_question_ids(step: Step, answers: Iterable[Answer]) -> list[str]:
    answered = {a.question_id for a in answers if is_answered(a.value)}
    return [qid for qid in step.question_ids if qid not in answered]


def validate_step_complete(step: Step, answers: Iterable[Answer]) -> None:
    missing = missing_question_ids(step, answers)
    if missing:
        raise StepValidationFailed(
            [{"field": qid, "message": "An answer is required"} for qid in missing]
        )


__all__ = ["is_answered", "missing_question_ids", "validate_step_complete"]
