"""Unit tests for projectai.runtime — startup wiring and shutdown."""

from unittest.mock import MagicMock, patch

from projectai.engine.config import ProjectAIConfig
from projectai.engine.logging import get_log_queue
from projectai.runtime import ProjectAIRuntime
from projectai.services.auth import GoTrueIdentityProvider, LocalIdentityProvider


def _config(tmp_path, **overrides):
    data = {
        "backend": {"mode": "sql"},
        "database": {"url": f"sqlite:///{(tmp_path / 'p.db').as_posix()}"},
        "redis": {"enabled": False},
        "logging": {"directory": str(tmp_path / "logs")},
    }
    data.update(overrides)
    return ProjectAIConfig(**data)


class TestProjectAIRuntime:

    def test_sql_mode_uses_local_identity(self, tmp_path):
        rt = ProjectAIRuntime(_config(tmp_path))
        rt.startup()
        try:
            assert isinstance(rt.identity_provider, LocalIdentityProvider)
            assert rt.session_store is None
            assert rt.query_cache._stale_time == 120
            assert get_log_queue() is not None
        finally:
            rt.shutdown()
        assert get_log_queue() is None

    def test_rest_mode_uses_hosted_identity(self, tmp_path):
        rt = ProjectAIRuntime(_config(tmp_path, backend={"mode": "rest", "url": "https://x.supabase.co", "anon_key": "k"}))
        rt.startup()
        assert isinstance(rt.identity_provider, GoTrueIdentityProvider)
        rt.shutdown()

    def test_session_store_when_redis_enabled(self, tmp_path):
        store = MagicMock()
        with patch("projectai.runtime.create_session_store", return_value=store) as factory:
            rt = ProjectAIRuntime(_config(tmp_path, redis={"enabled": True, "url": "redis://cache:6379/0"}))
            rt.startup()
        assert factory.call_args.args == ("redis://cache:6379/0",)
        assert rt.session_store is store
        rt.shutdown()
        store.close.assert_called_once()

    def test_startup_twice_is_harmless(self, tmp_path):
        rt = ProjectAIRuntime(_config(tmp_path))
        rt.startup()
        cache = rt.query_cache
        rt.startup()
        assert rt.query_cache is cache
        rt.shutdown()

    def test_views_share_query_cache(self, tmp_path, sql_engine):
        from projectai.engine.context import SessionContext

        rt = ProjectAIRuntime(_config(tmp_path))
        rt.startup()
        views = rt.views_for(SessionContext("u1", "a@b.c", "manager", access_token="a@b.c"))
        assert views.projects._cache is rt.query_cache
        assert views.project_detail("p1").project_id == "p1"
        assert views.team._bootstrap_admins == []
        assert views.settings._bootstrap_admins == []
        views.close()
        rt.shutdown()

    def test_session_views_close_their_backend(self, tmp_path):
        from projectai.engine.context import SessionContext

        rt = ProjectAIRuntime(_config(tmp_path))
        rt.startup()
        backend = MagicMock()
        with patch("projectai.runtime.create_backend", return_value=backend):
            with rt.views_for(SessionContext("u1", "a@b.c", "member")) as views:
                assert views.backend is backend
                backend.close.assert_not_called()
        backend.close.assert_called_once()
        rt.shutdown()
        backend.close.assert_called_once()
