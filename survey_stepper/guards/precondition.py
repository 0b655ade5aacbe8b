"""Precondition guard dependency for If-Match on session writes.

Enforces presence of If-Match when the deployment requires it and hands
the raw header to the service, which compares it against the session ETag
it has just loaded.
"""

from __future__ import annotations

from typing import Annotated, Optional
import logging

from fastapi import Header, Request

from survey_stepper.logic.errors import PreconditionRequired

logger = logging.getLogger(__name__)


def if_match_precondition(
    request: Request,
    if_match: Annotated[Optional[str], Header(alias="If-Match")] = None,
) -> Optional[str]:
    """Return the If-Match header; raise 428 when required and missing."""
    required = bool(request.app.state.config.concurrency.require_if_match)
    if required and (if_match is None or not if_match.strip()):
        logger.info(
            "precondition.fail chosen_failure=presence method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise PreconditionRequired()
    return if_match


__all__ = ["if_match_precondition"]
