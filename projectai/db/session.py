"""
ProjectAI Database Setup.

Single entry point for local database initialisation. Uses the global
EngineRegistry; the SQL backend talks to the engine through SQLAlchemy Core.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from projectai.db.base import Base, engine_registry

ENGINE_NAME = "projectai"


def init_db(
    db_url: str,
    create_tables: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
) -> Engine:
    """
    Register the "projectai" engine.

    Args:
        db_url:        SQLAlchemy URL (sqlite:///projectai.db, postgresql://...).
        create_tables: Run Base.metadata.create_all(). For ``projectai init``
                       and tests; the hosted backend manages its own schema.
    """
    engine = engine_registry.register(
        ENGINE_NAME, db_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
    )

    if create_tables:
        from projectai.db import models  # noqa: F401  (registers tables on Base)
        Base.metadata.create_all(engine)
    return engine


def close_engine() -> None:
    """Dispose the "projectai" engine pool. Used during shutdown."""
    engine_registry.dispose(ENGINE_NAME)
