"""Error bodies and global exception handlers.

Every error response carries `{error, message}`; request validation
failures also list `errors`. Bodies are served as application/problem+json.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from quizflow.errors import ValidationFailure

PROBLEM_MEDIA_TYPE = "application/problem+json"

_TITLES = {
    400: "Validation error",
    404: "Not found",
    422: "Invalid request",
    500: "Internal server error",
}

logger = logging.getLogger(__name__)


def problem_response(status: int, message: str, **extra) -> JSONResponse:
    body = {"error": _TITLES.get(status, "Error"), "message": message, **extra}
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        body = {"error": _TITLES.get(status, "Error"), **exc.detail}
        return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=exc.headers)
    response = problem_response(status, str(exc.detail or ""))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_validation_failure(request: Request, exc: ValidationFailure) -> JSONResponse:  # noqa: D401
    logger.info("request_rejected path=%s reason=%s", request.url.path, exc)
    return problem_response(400, str(exc))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    errors = [{k: v for k, v in e.items() if k in {"loc", "msg", "type"}} for e in exc.errors()]
    return problem_response(422, "Request validation failed", errors=errors)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response(500, "An unexpected error occurred")


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_http_exception",
    "handle_validation_failure",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
