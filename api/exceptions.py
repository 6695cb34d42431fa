"""Exception handlers for the household calendar FastAPI application.

This module converts domain errors into consistent JSON responses of the
form ``{"error": ..., "detail": ..., ...}``.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from models.errors import (
    CompletionNotFoundError,
    EventNotFoundError,
    EventValidationError,
    ScopeConflictError,
)

logger = logging.getLogger(__name__)


async def event_not_found_handler(request: Request, exc: EventNotFoundError):
    """Handle EventNotFoundError exceptions.

    Args:
        request: The incoming request that triggered the error.
        exc: The EventNotFoundError exception.

    Returns:
        JSONResponse with 404 status and the missing id.
    """
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Event Not Found",
            "detail": str(exc),
            "event_id": exc.event_id,
        },
    )


async def completion_not_found_handler(request: Request, exc: CompletionNotFoundError):
    """Handle CompletionNotFoundError exceptions with a 404."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Completion Not Found",
            "detail": str(exc),
            "completion_id": exc.completion_id,
        },
    )


async def scope_conflict_handler(request: Request, exc: ScopeConflictError):
    """Handle ScopeConflictError exceptions.

    Returns a 409 (Conflict): the requested date is not an occurrence the
    series can be edited at.

    Args:
        request: The incoming request that triggered the error.
        exc: The ScopeConflictError exception.

    Returns:
        JSONResponse with 409 status.
    """
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "Scope Conflict",
            "detail": exc.message,
            "event_id": exc.event_id,
            "occurrence_date": exc.occurrence_date.isoformat(),
        },
    )


async def event_validation_handler(request: Request, exc: EventValidationError):
    """Handle EventValidationError exceptions.

    These are inputs that passed schema validation but break a write
    invariant, such as an end before the start.

    Args:
        request: The incoming request that triggered the error.
        exc: The EventValidationError exception.

    Returns:
        JSONResponse with 400 status.
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation Error",
            "detail": exc.message,
            "field": exc.field,
        },
    )


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised outside request parsing.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValidationError exception.

    Returns:
        JSONResponse with validation error details.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "detail": "The request data failed validation",
            "validation_errors": exc.errors(include_url=False, include_context=False),
        },
    )


async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions from business logic."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Value",
            "detail": str(exc),
            "type": "ValueError",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions.

    Logs the traceback and returns a generic body so internals are not
    exposed to clients.

    Args:
        request: The incoming request that triggered the error.
        exc: The exception that was raised.

    Returns:
        JSONResponse with generic error message.
    """
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )
