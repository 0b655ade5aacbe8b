"""Centralised ETag header emitter.

Route handlers set concurrency headers through this helper rather than
assigning them directly.
"""

from __future__ import annotations

import logging
from fastapi import Response

from survey_stepper.logic.etag import compute_session_etag
from survey_stepper.models.session import SurveySession

logger = logging.getLogger(__name__)


def emit_etag_headers(response: Response, token: str) -> None:
    if not token:
        return
    response.headers["ETag"] = token
    logger.debug("etag.emit token=%s", token)


def emit_session_etag(response: Response, session: SurveySession) -> str:
    token = compute_session_etag(session.id, session.version)
    emit_etag_headers(response, token)
    return token


__all__ = ["emit_etag_headers", "emit_session_etag"]
