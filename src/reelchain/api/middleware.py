"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from reelchain.models.errors import (
    ErrorResponse,
    JobTimeoutError,
    PipelineError,
    ReelchainError,
    ServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def reelchain_error_handler(request: Request, exc: ReelchainError) -> JSONResponse:
    """Handle ReelchainError exceptions."""
    response = ErrorResponse.from_exception(
        exc, guidance=_get_guidance(exc), retry=_is_retryable(exc)
    )
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


def _root_cause(exc: ReelchainError) -> ReelchainError:
    return exc.cause if isinstance(exc, PipelineError) else exc


def _get_status_code(exc: ReelchainError) -> int:
    """Map error type to HTTP status code."""
    cause = _root_cause(exc)
    if isinstance(cause, ValidationError):
        return 400
    elif isinstance(cause, ServiceError):
        return 502
    elif isinstance(cause, JobTimeoutError):
        return 504
    return 500


def _get_guidance(exc: ReelchainError) -> str:
    """Generate actionable guidance based on error type."""
    cause = _root_cause(exc)
    if isinstance(cause, ValidationError):
        return "Check the brief fields and the reference image."
    if isinstance(cause, ServiceError):
        return "The video service rejected the request; see details.body."
    if isinstance(exc, PipelineError):
        return "Start a new run; failed runs cannot be resumed."
    return "Please try again or contact support."


def _is_retryable(exc: ReelchainError) -> bool:
    """Determine if the error is retryable."""
    cause = _root_cause(exc)
    if isinstance(cause, ServiceError):
        return cause.status_code is None or cause.status_code >= 500 or cause.status_code == 429
    return isinstance(cause, JobTimeoutError)
