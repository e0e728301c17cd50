"""
Error Handlers

Render every failure in the ``{"error": {"code", "message", "details"}}``
envelope.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ...domain.errors import DomainError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _correlation_headers() -> dict:
    return {"X-Correlation-Id": get_correlation_id() or ""}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain errors raised by the engine and services.

    Server-side failures are logged as errors, everything else as warnings.
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code}
    )
    content = exc.to_dict()
    if exc.retryable:
        content["error"]["retryable"] = True
    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(content),
        headers=_correlation_headers()
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request bodies and parameters that do not match the schema."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {errors}",
        extra={"error_code": "VALIDATION_ERROR"}
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": errors}
            }
        },
        headers=_correlation_headers()
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors; the stack trace goes to the error log."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"hint": "Check server logs for details"}
            }
        },
        headers=_correlation_headers()
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
