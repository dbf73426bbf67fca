"""Database engine and session management for the read-only reporting store."""

from collections.abc import Generator
from functools import lru_cache
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from wellness_dashboard.core.config import settings
from wellness_dashboard.core.exceptions import ConfigurationError, translate_store_errors
from wellness_dashboard.core.logging import get_logger

logger = get_logger(__name__)


def _connect_args(url: str) -> dict[str, Any]:
    """Driver options bounding every statement and connection attempt."""
    backend = make_url(url).get_backend_name()
    if backend == "postgresql":
        return {
            "connect_timeout": settings.db_pool_timeout_seconds,
            "options": f"-c statement_timeout={settings.db_statement_timeout_seconds * 1000}",
        }
    if backend == "sqlite":
        return {
            "check_same_thread": False,
            "timeout": settings.db_statement_timeout_seconds,
        }
    return {}


def build_engine(url: str | None = None, schema: str | None = None) -> Engine:
    """Create an engine for the reporting store.

    Models are declared without a schema; the configured one is applied via
    ``schema_translate_map`` so the same mappings work on SQLite in tests.
    """
    url = url or settings.database_url
    if not url:
        raise ConfigurationError(
            "DATABASE_URL is not set; the reporting data store is not configured",
            context={"setting": "DATABASE_URL"},
        )

    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
        "connect_args": _connect_args(url),
    }
    if make_url(url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout_seconds,
            pool_recycle=settings.db_pool_recycle_seconds,
        )

    engine = create_engine(url, **options)
    schema = schema if schema is not None else (settings.db_schema or None)
    if schema:
        engine = engine.execution_options(schema_translate_map={None: schema})

    logger.info("Reporting store engine created", backend=engine.url.get_backend_name(), schema=schema)
    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine, created on first use."""
    return build_engine()


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(
        bind=get_engine(),
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency.

    The session is always closed, returning its connection to the pool,
    whether the report succeeded or failed.
    """
    with translate_store_errors("open a database session"):
        db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
