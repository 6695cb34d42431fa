"""Main entry point for the household calendar FastAPI application.

This module creates and configures the FastAPI app that serves the shared
family calendar: recurring events, scoped edits and the chore completion
ledger.

To run the development server:
    uvicorn main:app --reload

To run in production:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from api.dependencies import initialize_database, shutdown_database
from api.exceptions import (
    completion_not_found_handler,
    event_not_found_handler,
    event_validation_handler,
    generic_exception_handler,
    scope_conflict_handler,
    validation_exception_handler,
    value_error_handler,
)
from api.routes import calendar as calendar_routes
from api.routes import completions as completion_routes
from config import get_settings
from models.errors import (
    CompletionNotFoundError,
    EventNotFoundError,
    EventValidationError,
    ScopeConflictError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events.

    Configures logging and opens the database at startup, and releases it
    at shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to FastAPI to handle requests.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting household calendar - initializing database")
    initialize_database(settings)

    yield

    logger.info("Shutting down household calendar")
    shutdown_database()


app = FastAPI(
    title="Household Calendar",
    description="Shared family calendar with recurring chores and a completion ledger",
    version="0.1.0",
    lifespan=lifespan,
)

# Register exception handlers
# Order matters: specific exceptions before general ones
app.add_exception_handler(EventNotFoundError, event_not_found_handler)
app.add_exception_handler(CompletionNotFoundError, completion_not_found_handler)
app.add_exception_handler(ScopeConflictError, scope_conflict_handler)
app.add_exception_handler(EventValidationError, event_validation_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(calendar_routes.router)
app.include_router(completion_routes.router)


@app.get("/")
async def root():
    """Root endpoint - returns a welcome message."""
    return {
        "message": "Welcome to the Household Calendar API",
        "version": "0.1.0",
        "docs_url": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring.

    Returns:
        A dictionary indicating the service is healthy.
    """
    return {"status": "healthy"}
