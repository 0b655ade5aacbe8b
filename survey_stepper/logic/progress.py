"""Progress computation.

A step counts as completed when at least one answer is tagged with its id.
Answers with no stepId, or tagged with an id that is not one of the
session's steps, never count toward completion.
"""

from __future__ import annotations

from typing import Iterable

from survey_stepper.models.session import Answer, Progress, Step


def answered_step_ids(answers: Iterable[Answer], steps: list[Step]) -> set[str]:
    known = {step.id for step in steps}
    return {a.step_id for a in answers if a.step_id is not None and a.step_id in known}


def percentage(completed: int, total: int) -> int:
    """Round ``completed / total * 100`` half-up; 0 when there are no steps."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def compute_progress(answers: Iterable[Answer], steps: list[Step]) -> Progress:
    completed = len(answered_step_ids(answers, steps))
    total = len(steps)
    return Progress(completed_steps=completed, total_steps=total, percentage=percentage(completed, total))


def initial_progress(steps: list[Step]) -> Progress:
    return Progress(completed_steps=0, total_steps=len(steps), percentage=0)


__all__ = ["answered_step_ids", "percentage", "compute_progress", "initial_progress"]
