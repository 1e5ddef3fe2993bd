"""
ProjectAI Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from typing import Dict
from unittest.mock import MagicMock

import pytest


# ---------------------------------------------------------------------------
# Isolation from global singletons and environment overrides
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset global singletons between tests."""
    import projectai.engine.config as cfg_mod
    from projectai.db.base import engine_registry
    from projectai.engine.context import clear_session_context
    from projectai.engine.logging import shutdown_logging

    for var in ("PROJECTAI_BACKEND_URL", "PROJECTAI_ANON_KEY", "PROJECTAI_BACKEND_MODE",
                "PROJECTAI_BOOTSTRAP_ADMINS", "PROJECTAI_ACCESS_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    cfg_mod._config = None
    clear_session_context()
    yield
    shutdown_logging()
    clear_session_context()
    cfg_mod._config = None
    engine_registry.dispose()
    engine_registry._engines.clear()


@pytest.fixture
def mock_redis():
    """Return a mock Redis client."""
    client = MagicMock()
    client.ping.return_value = True
    client.get.return_value = None
    client.set.return_value = True
    client.setex.return_value = True
    client.delete.return_value = 1
    client.scan_iter.return_value = iter([])
    return client


# ---------------------------------------------------------------------------
# Local SQL backend
# ---------------------------------------------------------------------------

@pytest.fixture
def sql_engine():
    """In-memory SQLite engine with every table created."""
    from projectai.db import models  # noqa: F401
    from projectai.db.base import Base, engine_registry

    engine = engine_registry.register("test", "sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def sql_backend(sql_engine):
    from projectai.backend.sql import SqlBackend

    return SqlBackend(sql_engine)


ADMIN_ID = "00000000-0000-0000-0000-00000000000a"
MANAGER_ID = "00000000-0000-0000-0000-00000000000b"
MEMBER_ID = "00000000-0000-0000-0000-00000000000c"


@pytest.fixture
def team(sql_backend) -> Dict[str, dict]:
    """Three stored profiles, one per role."""
    rows = {}
    for key, uid, email, role, workload in (
        ("admin", ADMIN_ID, "boss@corp.com", "admin", 40),
        ("manager", MANAGER_ID, "mia@corp.com", "manager", 80),
        ("member", MEMBER_ID, "dev@corp.com", "member", None),
    ):
        rows[key] = sql_backend.insert("profiles", {
            "id": uid,
            "email": email,
            "full_name": key.title(),
            "role": role,
            "department": "Engineering" if key != "manager" else "Delivery",
            "workload": workload,
        })
    return rows


def _context(row: dict):
    from projectai.engine.context import SessionContext

    return SessionContext(
        user_id=row["id"],
        email=row["email"],
        role=row["role"],
        full_name=row["full_name"],
        access_token=f"token-{row['role']}",
    )


@pytest.fixture
def admin_ctx(team):
    return _context(team["admin"])


@pytest.fixture
def manager_ctx(team):
    return _context(team["manager"])


@pytest.fixture
def member_ctx(team):
    return _context(team["member"])


@pytest.fixture
def project_root(tmp_path):
    """A project directory with a sql-mode projectai.yaml."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "projectai.yaml").write_text(
        "app:\n"
        "  name: TestProjectAI\n"
        "  environment: dev\n"
        "backend:\n"
        "  mode: sql\n"
        "database:\n"
        f"  url: sqlite:///{(root / 'projectai.db').as_posix()}\n"
        "redis:\n"
        "  enabled: false\n"
        "security:\n"
        "  bootstrap_admin_emails:\n"
        "    - Boss@Corp.com\n"
        "logging:\n"
        f"  directory: {(root / 'logs').as_posix()}\n",
        encoding="utf-8",
    )
    return root
