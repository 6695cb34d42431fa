"""Database engine and transaction management.

All writes go through ``Database.transaction()``, which serialises writers
with a process-wide lock and commits or rolls back one SQLAlchemy session.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storage.schema import Base

logger = logging.getLogger(__name__)


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class Database:
    """Owns the SQLAlchemy engine and hands out sessions.

    Args:
        url: SQLAlchemy database URL.
        echo: Whether SQLAlchemy should log emitted SQL.

    Example:
        db = Database("sqlite://")
        db.create_schema()
        with db.transaction() as session:
            session.add(row)
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(url):
                # One shared connection, otherwise each checkout sees an empty database.
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, echo=echo, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._write_lock = threading.Lock()

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info(f"Database schema ready at {self.engine.url!r}")

    def drop_schema(self) -> None:
        """Drop all calendar tables."""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a read session that is closed, never committed, on exit.

        Yields:
            A SQLAlchemy session.
        """
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Run a unit of work atomically.

        The session is committed when the block exits normally and rolled
        back when it raises. Writers are serialised within the process.

        Yields:
            A SQLAlchemy session bound to the transaction.

        Raises:
            Exception: Whatever the block raised, after rollback.
        """
        with self._write_lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
