"""Step pointer transitions.

States are step indices ``0..N-1``. ``next`` and ``previous`` clamp at the
ends and never wrap; a direct jump must land inside the range.
"""

from __future__ import annotations

from survey_stepper.logic.errors import InvalidStepIndex

NEXT = "next"
PREVIOUS = "previous"


def step_after(current: int, total: int, direction: str) -> int:
    """Return the index reached from ``current`` moving one step in ``direction``."""
    if direction == NEXT:
        return current + 1 if current < total - 1 else current
    if direction == PREVIOUS:
        return current - 1 if current > 0 else current
    raise InvalidStepIndex(f"Unknown navigation direction: {direction!r}")


def parse_step_index(raw: str | int) -> int:
    """Parse a path-supplied step index; reject non-integers and negatives."""
    try:
        index = int(str(raw).strip())
    except ValueError:
        raise InvalidStepIndex() from None
    if index < 0:
        raise InvalidStepIndex()
    return index


def in_range(index: int, total: int) -> bool:
    return 0 <= index < total


def jump_target(index: int, total: int) -> int:
    if not in_range(index, total):
        raise InvalidStepIndex(f"Step index {index} is outside 0..{total - 1}")
    return index


__all__ = ["NEXT", "PREVIOUS", "step_after", "parse_step_index", "in_range", "jump_target"]
