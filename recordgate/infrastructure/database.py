"""Database Engine Manager — synchronous SQLAlchemy engine with error mapping and connection pinning.

Invariants:
    - Every unpinned statement runs in its own transaction (engine.begin()): commit or roll back
    - All SQLAlchemy exceptions mapped to DatabaseError (core/errors.py), original chained
    - While pinned, every statement shares one connection and one transaction until release()
    - A failure inside a pinned transaction makes release() roll back instead of commit

Design Decisions:
    - Pinning instead of a second API for locked sections: callers keep using connection()
      and the table lock scope decides where statements go
    - Singleton db_manager initialized by the host application via init_db
      (no global import side effects)
    - One manager per thread of work: the pin is not shared safely across threads
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)

from recordgate.core.errors import DatabaseError

logger = logging.getLogger(__name__)


@contextmanager
def map_database_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into DatabaseError."""
    try:
        yield
    except IntegrityError as e:
        logger.error(f"DB integrity error: {e}", extra={"operation": operation})
        raise DatabaseError("Integrity constraint violated", operation) from e
    except OperationalError as e:
        logger.error(f"DB operational error: {e}", extra={"operation": operation})
        raise DatabaseError("Connection or operational error", operation) from e
    except DBAPIError as e:
        logger.error(f"DB driver error: {e}", extra={"operation": operation})
        raise DatabaseError("Database driver error", operation) from e
    except SQLAlchemyError as e:
        logger.error(f"SQLAlchemy error: {e}", extra={"operation": operation})
        raise DatabaseError("Database operation failed", operation) from e


class DatabaseEngineManager:
    """Owns the engine and the optional pinned connection of a table lock."""

    def __init__(
        self,
        database_url: str | None = None,
        echo: bool = False,
        pool_pre_ping: bool = True,
        engine: Engine | None = None,
    ):
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required")
            engine = create_engine(
                database_url, echo=echo, pool_pre_ping=pool_pre_ping,
            )
        self.engine = engine
        self._pinned: Connection | None = None
        self._pinned_tx = None
        self._pinned_failed = False

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def is_pinned(self) -> bool:
        return self._pinned is not None

    @contextmanager
    def connection(self, operation: str = "execute") -> Iterator[Connection]:
        """Provide a connection; auto-commit unless a pin is active."""
        if self._pinned is not None:
            try:
                with map_database_errors(operation):
                    yield self._pinned
            except DatabaseError:
                self._pinned_failed = True
                raise
            return
        with map_database_errors(operation):
            with self.engine.begin() as conn:
                yield conn

    def pin(self) -> Connection:
        """Open the shared connection + transaction used by a table lock."""
        if self._pinned is None:
            with map_database_errors("lock"):
                conn = self.engine.connect()
                try:
                    self._pinned_tx = conn.begin()
                except SQLAlchemyError:
                    conn.close()
                    raise
            self._pinned = conn
            self._pinned_failed = False
        return self._pinned

    def release(self) -> None:
        """Commit (or roll back after a failure) and close the pinned connection."""
        conn, tx = self._pinned, self._pinned_tx
        if conn is None:
            return
        failed = self._pinned_failed
        self._pinned = None
        self._pinned_tx = None
        self._pinned_failed = False
        try:
            with map_database_errors("unlock"):
                if failed:
                    tx.rollback()
                else:
                    tx.commit()
        finally:
            conn.close()

    def health_check(self) -> bool:
        """Check database connectivity (for readiness checks)."""
        try:
            with self.connection("health_check") as conn:
                conn.execute(text("SELECT 1"))
            return True
        except DatabaseError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    def dispose(self) -> None:
        self.release()
        self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseEngineManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseEngineManager:
    global db_manager
    db_manager = DatabaseEngineManager(database_url, **kwargs)
    return db_manager


def get_db_manager() -> DatabaseEngineManager:
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager
