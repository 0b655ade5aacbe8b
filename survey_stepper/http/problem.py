"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that produce
``application/problem+json`` responses. Bodies carry ``code`` and
``message`` alongside the RFC fields so clients reading the plain
``{code, message}`` error shape keep working.
"""

from __future__ import annotations

from typing import Any
import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from survey_stepper.http.error_mapping import status_for, title_for
from survey_stepper.logic.errors import StepValidationFailed, SurveySessionError, VersionConflict

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {400: "BAD_REQUEST", 404: "NOT_FOUND", 409: "CONFLICT", 422: "VALIDATION_FAILED"}


def problem(code: str, message: str, *, status: int | None = None, **extra: Any) -> dict[str, Any]:
    status_code = status if status is not None else status_for(code)
    body: dict[str, Any] = {
        "title": title_for(code),
        "status": status_code,
        "detail": message,
        "code": code,
        "message": message,
    }
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


async def handle_survey_session_error(request: Request, exc: SurveySessionError) -> JSONResponse:
    field_errors = exc.field_errors if isinstance(exc, StepValidationFailed) else None
    body = problem(exc.code, exc.message, fieldErrors=field_errors)
    headers: dict[str, str] = {}
    if isinstance(exc, VersionConflict) and exc.current_etag:
        headers["ETag"] = exc.current_etag
    logger.info(
        "error_handler.handle code=%s status=%s path=%s",
        exc.code,
        body["status"],
        request.url.path,
    )
    return JSONResponse(body, status_code=body["status"], media_type=PROBLEM_MEDIA_TYPE, headers=headers or None)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    status_code = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        body = dict(exc.detail)
    else:
        code = _HTTP_STATUS_CODES.get(status_code, "INTERNAL_ERROR" if status_code >= 500 else "HTTP_ERROR")
        message = str(exc.detail or "")
        body = {"title": "Error", "status": status_code, "detail": message, "code": code, "message": message}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(body, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    field_errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": str(err.get("msg", ""))}
        for err in errors
    ]
    body = problem(
        "VALIDATION_FAILED",
        "Request validation failed",
        status=422,
        errors=errors,
        fieldErrors=field_errors,
    )
    body["title"] = "Invalid Request"
    logger.info("validation_422 path=%s errors_cnt=%d", request.url.path, len(errors))
    return JSONResponse(body, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    body = problem("INTERNAL_ERROR", "Internal server error")
    return JSONResponse(body, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem",
    "handle_survey_session_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
