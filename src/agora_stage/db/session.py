"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from agora_stage.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def enable_sqlite_savepoints(engine: Engine, begin_statement: str = "BEGIN") -> None:
    """Let SQLAlchemy own transaction demarcation on pysqlite connections.

    The stdlib driver issues its own BEGIN lazily, which breaks SAVEPOINT.
    Vote and notification writes rely on nested transactions, so the driver's
    behaviour is switched off and BEGIN is emitted explicitly.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:  # pragma: no cover - driver hook
        conn.exec_driver_sql(begin_statement)


# Ensure model modules are imported so that metadata is populated when create_all runs.
import agora_stage.models  # noqa: E402,F401


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine configured the way the application uses it.

    SQLite connections may be shared across threads, wait up to
    ``SQLITE_BUSY_TIMEOUT`` seconds for the database lock, and open every
    transaction with ``BEGIN <SQLITE_BEGIN_MODE>``.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, echo=echo)

    sqlite_engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": settings.sqlite_busy_timeout},
        pool_pre_ping=True,
        echo=echo,
    )
    enable_sqlite_savepoints(sqlite_engine, f"BEGIN {settings.sqlite_begin_mode}")
    return sqlite_engine


engine = build_engine(settings.database_url_sync, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
