"""Dependency injection providers for the FastAPI application.

This module owns the shared Database and builds the request-scoped services
(range query, scope editor, completion ledger) that route handlers receive.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends

from config import Settings, get_settings
from models.completion_ledger import CompletionLedger
from models.occurrences import OccurrenceRangeQuery
from models.scope_editor import ScopeEditor
from storage.database import Database

logger = logging.getLogger(__name__)


# Global state, created when the app starts
_database: Optional[Database] = None


def get_database() -> Database:
    """Get the shared Database instance.

    This function is a FastAPI dependency; tests replace it through
    ``app.dependency_overrides``.

    Returns:
        The shared Database instance.

    Raises:
        RuntimeError: If the database hasn't been initialized yet.
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call initialize_database() first.")
    return _database


def initialize_database(settings: Optional[Settings] = None) -> Database:
    """Initialize the shared Database and create its schema.

    This should be called once when the FastAPI app starts up.

    Args:
        settings: Settings to use; read from the environment when omitted.

    Returns:
        The newly created Database instance.
    """
    global _database

    settings = settings or get_settings()
    _database = Database(settings.database_url)
    _database.create_schema()
    return _database


def shutdown_database() -> None:
    """Dispose of the shared Database.

    This should be called when the FastAPI app shuts down.
    """
    global _database

    if _database is not None:
        _database.dispose()
        logger.info("Database connections released")
    _database = None


DatabaseDep = Annotated[Database, Depends(get_database)]


def get_occurrence_query(database: DatabaseDep) -> OccurrenceRangeQuery:
    """Build the range query for a request."""
    return OccurrenceRangeQuery(database, cap=get_settings().expansion_cap)


def get_scope_editor(database: DatabaseDep) -> ScopeEditor:
    """Build the event editor for a request."""
    return ScopeEditor(database)


def get_completion_ledger(database: DatabaseDep) -> CompletionLedger:
    """Build the completion ledger for a request."""
    return CompletionLedger(database)


# Type aliases for dependency injection
OccurrenceQueryDep = Annotated[OccurrenceRangeQuery, Depends(get_occurrence_query)]
ScopeEditorDep = Annotated[ScopeEditor, Depends(get_scope_editor)]
CompletionLedgerDep = Annotated[CompletionLedger, Depends(get_completion_ledger)]
