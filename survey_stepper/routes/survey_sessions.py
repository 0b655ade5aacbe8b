"""Survey session endpoints.

Implements:
- POST   /survey-sessions
- GET    /survey-sessions/{session_id}
- DELETE /survey-sessions/{session_id}
- GET    /survey-sessions/{session_id}/steps/{step_index}
- PUT    /survey-sessions/{session_id}/steps/{step_index}
- POST   /survey-sessions/{session_id}/navigate
- PUT    /survey-sessions/{session_id}/current-step
- GET    /survey-sessions/{session_id}/progress

Handlers stay thin: they parse path input, delegate to the session service
and emit the session ETag. Domain errors propagate to the problem+json
handlers registered in ``survey_stepper.main``.
"""

from __future__ import annotations

from typing import Annotated, Optional
import logging

from fastapi import APIRouter, Depends, Request, Response

from survey_stepper.guards.precondition import if_match_precondition
from survey_stepper.logic.errors import SessionNotFound
from survey_stepper.logic.header_emitter import emit_session_etag
from survey_stepper.logic.navigation import parse_step_index
from survey_stepper.logic.session_service import SurveySessionService
from survey_stepper.models.requests import (
    CreateSurveySessionRequest,
    ErrorResponse,
    NavigateRequest,
    SaveStepAnswersRequest,
    SetCurrentStepRequest,
)
from survey_stepper.models.session import Progress, SessionStepResponse, SurveySession

router = APIRouter()
logger = logging.getLogger(__name__)


def get_session_service(request: Request) -> SurveySessionService:
    return request.app.state.session_service


ServiceDep = Annotated[SurveySessionService, Depends(get_session_service)]
IfMatchDep = Annotated[Optional[str], Depends(if_match_precondition)]

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Survey session not found"}}
_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid step index"}}
_CONFLICT = {
    409: {"model": ErrorResponse, "description": "Conflict (concurrent update)"},
    428: {"model": ErrorResponse, "description": "If-Match header required"},
}


@router.post(
    "/survey-sessions",
    status_code=201,
    response_model=SurveySession,
    summary="Create a new survey session",
    operation_id="createSurveySession",
    responses={400: {"model": ErrorResponse}},
)
def create_survey_session(payload: CreateSurveySessionRequest, response: Response, service: ServiceDep):
    session = service.create_session(payload.survey_id, payload.initial_answers)
    emit_session_etag(response, session)
    return session


@router.get(
    "/survey-sessions/{session_id}",
    response_model=SurveySession,
    summary="Retrieve survey session state",
    operation_id="getSurveySession",
    responses=_NOT_FOUND,
)
def get_survey_session(session_id: str, response: Response, service: ServiceDep):
    session = service.get_session(session_id)
    emit_session_etag(response, session)
    return session


@router.delete(
    "/survey-sessions/{session_id}",
    status_code=204,
    response_class=Response,
    summary="Delete a survey session",
    operation_id="deleteSurveySession",
    responses={**_NOT_FOUND, **_CONFLICT},
)
def delete_survey_session(session_id: str, service: ServiceDep, if_match: IfMatchDep):
    if not service.delete_session(session_id, if_match=if_match):
        raise SessionNotFound(session_id)
    return Response(status_code=204)


@router.get(
    "/survey-sessions/{session_id}/steps/{step_index}",
    response_model=SessionStepResponse,
    summary="Get a specific step in the session",
    operation_id="getSessionStep",
    responses={**_BAD_REQUEST, **_NOT_FOUND},
)
def get_session_step(session_id: str, step_index: str, response: Response, service: ServiceDep):
    index = parse_step_index(step_index)
    step_view = service.get_session_step(session_id, index)
    emit_session_etag(response, service.get_session(session_id))
    return step_view


@router.put(
    "/survey-sessions/{session_id}/steps/{step_index}",
    response_model=SurveySession,
    summary="Save or update answers for a step",
    operation_id="saveStepAnswers",
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_CONFLICT},
)
def save_step_answers(
    session_id: str,
    step_index: str,
    payload: SaveStepAnswersRequest,
    response: Response,
    service: ServiceDep,
    if_match: IfMatchDep,
):
    index = parse_step_index(step_index)
    session = service.save_step_answers(
        session_id,
        index,
        payload.answers,
        preserve_other_steps=payload.preserve_other_steps,
        if_match=if_match,
    )
    emit_session_etag(response, session)
    return session


@router.post(
    "/survey-sessions/{session_id}/navigate",
    response_model=SurveySession,
    summary="Navigate between steps",
    operation_id="navigateSession",
    responses={**_NOT_FOUND, **_CONFLICT, 422: {"model": ErrorResponse}},
)
def navigate_session(
    session_id: str,
    payload: NavigateRequest,
    response: Response,
    service: ServiceDep,
    if_match: IfMatchDep,
):
    session = service.navigate_session(
        session_id,
        payload.direction,
        validate_current_step=payload.validate_current_step,
        if_match=if_match,
    )
    emit_session_etag(response, session)
    return session


@router.put(
    "/survey-sessions/{session_id}/current-step",
    response_model=SurveySession,
    summary="Jump directly to a step",
    operation_id="setCurrentStep",
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_CONFLICT},
)
def set_current_step(
    session_id: str,
    payload: SetCurrentStepRequest,
    response: Response,
    service: ServiceDep,
    if_match: IfMatchDep,
):
    session = service.set_current_step(session_id, payload.step_index, if_match=if_match)
    emit_session_etag(response, session)
    return session


@router.get(
    "/survey-sessions/{session_id}/progress",
    response_model=Progress,
    summary="Get progress for a session",
    operation_id="getSessionProgress",
    responses=_NOT_FOUND,
)
def get_session_progress(session_id: str, response: Response, service: ServiceDep):
    session = service.get_session(session_id)
    emit_session_etag(response, session)
    return session.progress


__all__ = ["router", "get_session_service"]
