"""Step generation for new survey sessions.

Steps are derived purely from the survey identifier. Survey ids containing
``customer`` get the three-step CSAT template, everything else the two-step
default.
"""

from __future__ import annotations

from survey_stepper.models.session import Step

CUSTOMER_MARKER = "customer"

_CUSTOMER_TEMPLATE: tuple[dict, ...] = (
    {
        "id": "step-1",
        "title": "Demographics",
        "description": "Tell us about yourself",
        "question_ids": ["q1", "q2", "q3"],
    },
    {
        "id": "step-2",
        "title": "Product Experience",
        "description": "Share your experience with our product",
        "question_ids": ["q4", "q5", "q6"],
    },
    {
        "id": "step-3",
        "title": "Feedback",
        "description": "Additional comments",
        "question_ids": ["q7", "q8"],
    },
)

_DEFAULT_TEMPLATE: tuple[dict, ...] = (
    {"id": "step-1", "title": "Getting Started", "question_ids": ["q1", "q2"]},
    {"id": "step-2", "title": "Main Questions", "question_ids": ["q3", "q4"]},
)


def generate_steps(survey_id: str) -> list[Step]:
    """Return a fresh ordered step list for ``survey_id``."""
    template = _CUSTOMER_TEMPLATE if CUSTOMER_MARKER in survey_id else _DEFAULT_TEMPLATE
    return [Step(**spec) for spec in template]


__all__ = ["generate_steps", "CUSTOMER_MARKER"]
