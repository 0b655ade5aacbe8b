"""Merge policy for step answer saves.

With ``preserve_other_steps`` (the default) a save replaces the target
step's answers wholesale and leaves other steps alone. Without it the reset
scope decides what is cleared first: the whole session (``session``) or
only the target step (``step``).
"""

from __future__ import annotations

from typing import Iterable

from survey_stepper.config import RESET_SCOPE_SESSION, RESET_SCOPE_STEP
from survey_stepper.models.session import Answer


def stamp_answers(incoming: Iterable[Answer], step_id: str, now: str) -> list[Answer]:
    """Tag each answer with ``step_id`` and a fresh ``updated_at``."""
    return [a.model_copy(update={"step_id": step_id, "updated_at": now}) for a in incoming]


def merge_step_answers(
    existing: list[Answer],
    step_id: str,
    incoming: Iterable[Answer],
    *,
    now: str,
    preserve_other_steps: bool | None = True,
    reset_scope: str = RESET_SCOPE_SESSION,
) -> list[Answer]:
    if preserve_other_steps is not False or reset_scope == RESET_SCOPE_STEP:
        kept = [a for a in existing if a.step_id != step_id]
    else:
        kept = []
    return kept + stamp_answers(incoming, step_id, now)


__all__ = ["stamp_answers", "merge_step_answers"]
