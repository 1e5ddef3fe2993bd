"""
Integration test fixtures — a started runtime over a sqlite file database.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: full runtime workflows (sqlite file, log files)")


@pytest.fixture
def runtime(project_root):
    """Started ProjectAIRuntime over freshly created tables."""
    from projectai.engine.config import load_config
    from projectai.db.session import init_db
    from projectai.runtime import ProjectAIRuntime

    config = load_config(str(project_root / "projectai.yaml"))
    init_db(config.database.url, create_tables=True)
    rt = ProjectAIRuntime(config)
    rt.startup()
    yield rt
    rt.shutdown()
