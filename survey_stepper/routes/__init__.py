"""APIRouter registration for the survey stepper service."""

from __future__ import annotations

from fastapi import APIRouter

from survey_stepper.routes.survey_sessions import router as survey_sessions_router

api_router = APIRouter()
api_router.include_router(survey_sessions_router, tags=["SurveySessions"])

__all__ = ["api_router"]
