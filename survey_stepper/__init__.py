"""FastAPI application package for the survey stepper service.

Exposes the application factory. Business logic lives in
`survey_stepper/logic/`, route handlers in `survey_stepper/routes/`, and
the HTTP client mirror in `survey_stepper/client/`.
"""

from __future__ import annotations

from survey_stepper.main import create_app

__all__ = ["create_app"]
