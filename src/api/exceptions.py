"""
Error handlers for the Craftus selection API.
Maps the pipeline error taxonomy onto consistent JSON responses.
"""

import asyncio
import logging
import traceback
from functools import wraps

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from common.enums import ErrorKind
from common.exceptions import (
    CraftusException,
    InvalidParameterError,
    RateLimitExceededError,
    TransientServiceError,
)

logger = logging.getLogger(__name__)


# Exception handlers for FastAPI
async def craftus_exception_handler(request: Request, exc: CraftusException) -> JSONResponse:
    """
    Handler for pipeline errors.

    Args:
        request: FastAPI request
        exc: CraftusException instance

    Returns:
        JSON response with kind, message, recoverable flag and details
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.kind.value}: {exc.message}", extra={"details": exc.details})
    else:
        logger.warning(f"{exc.kind.value}: {exc.message}")

    headers = None
    if isinstance(exc, RateLimitExceededError):
        retry_after_seconds = max(1, -(-exc.retry_after_ms // 1000))
        headers = {"Retry-After": str(retry_after_seconds)}

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handler for request validation errors.

    Args:
        request: FastAPI request
        exc: Validation exception

    Returns:
        JSON response with validation error details
    """
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"][1:]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=422,
        content={
            "kind": ErrorKind.INVALID_PARAMETER.value,
            "message": "Validation failed",
            "recoverable": False,
            "details": {"errors": errors},
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Any exception

    Returns:
        JSON response with generic error message
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    details = {}
    if getattr(request.app.state, "debug", False):
        # Debug mode only: never expose stack traces in production
        details = {
            "exception": str(exc),
            "type": exc.__class__.__name__,
            "traceback": traceback.format_exc(),
        }

    return JSONResponse(
        status_code=500,
        content={
            "kind": "InternalError",
            "message": "Internal server error",
            "recoverable": False,
            "details": details,
        },
    )


# Exception mapping for safe_endpoint decorator
# Maps builtin exception types to (log_level, factory building the pipeline error)
EXCEPTION_MAPPING = {
    ValidationError: (
        "warning",
        lambda e: InvalidParameterError("payload", None, f"{e.error_count()} validation errors"),
    ),
    KeyError: ("error", lambda e: InvalidParameterError(str(e).strip("'"), None, "missing field")),
    ValueError: ("error", lambda e: InvalidParameterError("value", None, str(e))),
    asyncio.TimeoutError: ("error", lambda e: TransientServiceError("Operation timed out")),
    TimeoutError: ("error", lambda e: TransientServiceError("Operation timed out")),
}


# Decorator for safe endpoint execution
def safe_endpoint(func):
    """
    Decorator to wrap endpoint functions with error handling.

    Pipeline errors propagate to craftus_exception_handler; common builtin
    exceptions are converted to pipeline errors through EXCEPTION_MAPPING so
    every failure reaches the caller as {kind, message, recoverable, details}.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            if asyncio.iscoroutinefunction(func):
                return await func(*args, **kwargs)
            else:
                return func(*args, **kwargs)

        except (CraftusException, HTTPException):
            raise

        except Exception as e:
            for exception_type, (log_level, build_error) in EXCEPTION_MAPPING.items():
                if not isinstance(e, exception_type):
                    continue

                log_message = f"{type(e).__name__} in {func.__name__}: {e}"
                if log_level == "warning":
                    logger.warning(log_message)
                else:
                    logger.error(log_message)

                raise build_error(e) from e

            raise

    return wrapper


def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(CraftusException, craftus_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
