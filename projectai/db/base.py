"""
ProjectAI Database Base — SQLAlchemy declarative base, mixins, engine registry.

Provides:
- Base: SQLAlchemy declarative base for the local mirror of the backend tables
- TimestampMixin: created_at, updated_at
- new_id(): string UUID primary keys, as the hosted backend issues them
- EngineRegistry: named engines (one per database URL in use)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all ProjectAI tables."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """Adds created_at and updated_at columns."""
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class EngineRegistry:
    """
    Registry of named SQLAlchemy engines.

    Usage:
        registry = EngineRegistry()
        engine = registry.register("projectai", "sqlite:///projectai.db")
        registry.get("projectai") is engine
    """

    def __init__(self):
        self._engines: Dict[str, Engine] = {}

    def register(
        self,
        name: str,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        pool_pre_ping: bool = True,
        **kwargs: Any,
    ) -> Engine:
        """Register (or replace) a database engine and return it."""
        if url.startswith("sqlite"):
            # SQLite ignores pool sizing; in-memory databases need one shared connection
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                kwargs.setdefault("poolclass", StaticPool)
            kwargs.setdefault("connect_args", {"check_same_thread": False})
            engine = create_engine(url, **kwargs)
        else:
            engine = create_engine(
                url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=pool_pre_ping,
                **kwargs,
            )
        if name in self._engines:
            self._engines[name].dispose()
        self._engines[name] = engine
        return engine

    def get(self, name: str) -> Engine:
        if name not in self._engines:
            raise KeyError(f"Engine '{name}' not registered. Available: {list(self._engines.keys())}")
        return self._engines[name]

    def dispose(self, name: Optional[str] = None) -> None:
        """Dispose one or all engines (close connection pools)."""
        if name:
            if name in self._engines:
                self._engines[name].dispose()
        else:
            for engine in self._engines.values():
                engine.dispose()

    @property
    def registered_names(self) -> list:
        return list(self._engines.keys())


# Global engine registry singleton
engine_registry = EngineRegistry()
