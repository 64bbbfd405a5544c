"""Database Session Manager — async engine and per-unit-of-work sessions for Pulse.

Invariants:
    - Every session rolls back on exception; a repository write that already
      committed is never undone here
    - SQLAlchemy exceptions leave as DatabaseError (a StorageError, so request
      submission treats them like any other persistence failure)
    - The DatabaseError carries the caller's operation label plus the driver
      exception class and dialect in ErrorContext.debug_info
    - DatabaseError raised inside the session (repositories map their own
      failures) passes through unchanged after the rollback

Design Decisions:
    - Singleton db_manager initialized by the FastAPI lifespan, which also uses
      it once to warm the donor index
    - SQLite (local runs, tests) takes no pool sizing arguments
    - expire_on_commit=False: pipeline code reads rows after commit
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from pulse.core.errors import DatabaseError, ErrorContext

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_FAILURES: tuple[tuple[type[SQLAlchemyError], str], ...] = (
    (IntegrityError, "Integrity constraint violated"),
    (OperationalError, "Database unreachable or statement rejected"),
    (DBAPIError, "Database driver error"),
    (SQLAlchemyError, "Database operation failed"),
)


def to_database_error(exc: SQLAlchemyError, operation: str, dialect: str) -> DatabaseError:
    message = next(msg for kind, msg in _FAILURES if isinstance(exc, kind))
    context = ErrorContext(debug_info={
        "exception": type(exc).__name__,
        "dialect": dialect,
    })
    return DatabaseError(message, operation, context)


class DatabaseSessionManager:
    """Owns the async engine; hands out sessions that map failures to DatabaseError."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self, operation: str = "query") -> AsyncGenerator[AsyncSession, None]:
        """Session for one unit of work; `operation` labels any DatabaseError."""
        session = self._session_factory()
        try:
            yield session
        except DatabaseError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            error = to_database_error(e, operation, self.engine.dialect.name)
            logger.error(
                f"DB {operation} failed: {e}",
                extra={"error_code": error.code, "operation": operation},
            )
            raise error from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial statement round-trips (readiness endpoint)."""
        try:
            async with self.session("health check") as db:
                await db.execute(text("SELECT 1"))
            return True
        except (DatabaseError, OSError) as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per HTTP request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session("http request") as session:
        yield session
