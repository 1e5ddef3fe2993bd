"""Unit tests for projectai.engine.config — ProjectAIConfig, loading, env overrides."""

import pytest

from projectai.engine.config import (
    BackendConfig,
    ProjectAIConfig,
    SecurityConfig,
    ValidationConfig,
    get_config,
    get_environment,
    load_config,
)
from projectai.engine.errors import ProjectAIConfigError


class TestProjectAIConfig:
    """Test ProjectAIConfig Pydantic model."""

    def test_defaults(self):
        cfg = ProjectAIConfig()
        assert cfg.name == "ProjectAI"
        assert cfg.environment == "dev"
        assert cfg.backend.mode == "rest"
        assert cfg.security.bootstrap_admin_emails == []
        assert cfg.security.default_role == "member"
        assert cfg.query_cache.stale_time == 120
        assert cfg.query_cache.gc_time == 300
        assert cfg.query_cache.no_retry_markers == ["permission", "authentication"]
        assert cfg.validation.negative_budget == "reject"
        assert cfg.validation.default_color == "#3B82F6"

    def test_valid_environments(self):
        for env in ("dev", "staging", "prod"):
            assert ProjectAIConfig(environment=env).environment == env

    def test_invalid_environment(self):
        with pytest.raises(ValueError, match="dev/staging/prod"):
            ProjectAIConfig(environment="test")

    def test_invalid_backend_mode(self):
        with pytest.raises(ValueError, match="rest/sql"):
            BackendConfig(mode="graphql")

    def test_backend_url_trailing_slash_stripped(self):
        assert BackendConfig(url="https://x.supabase.co/").url == "https://x.supabase.co"

    def test_schema_alias(self):
        assert BackendConfig(schema="app").schema_name == "app"
        assert BackendConfig(schema_name="app").schema_name == "app"

    def test_bootstrap_emails_normalized(self):
        cfg = SecurityConfig(bootstrap_admin_emails=[" Boss@Corp.COM ", ""])
        assert cfg.bootstrap_admin_emails == ["boss@corp.com"]

    def test_invalid_default_role(self):
        with pytest.raises(ValueError, match="admin/manager/member"):
            SecurityConfig(default_role="owner")

    def test_invalid_negative_budget_policy(self):
        with pytest.raises(ValueError, match="reject/clamp"):
            ValidationConfig(negative_budget="ignore")


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "projectai.yaml"))
        assert cfg.name == "ProjectAI"
        assert cfg.backend.mode == "rest"

    def test_load_from_file(self, project_root):
        cfg = load_config(str(project_root / "projectai.yaml"))
        assert cfg.name == "TestProjectAI"
        assert cfg.backend.mode == "sql"
        assert cfg.redis.enabled is False
        assert cfg.security.bootstrap_admin_emails == ["boss@corp.com"]

    def test_auto_discovery(self, project_root, monkeypatch):
        nested = project_root / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config().name == "TestProjectAI"

    def test_get_config_caches(self, project_root):
        load_config(str(project_root / "projectai.yaml"))
        assert get_config().name == "TestProjectAI"
        assert get_environment() == "dev"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "projectai.yaml"
        path.write_text("backend: [unclosed\n", encoding="utf-8")
        with pytest.raises(ProjectAIConfigError, match="Invalid YAML"):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "projectai.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ProjectAIConfigError, match="mapping"):
            load_config(str(path))

    def test_validation_failure_wrapped(self, tmp_path):
        path = tmp_path / "projectai.yaml"
        path.write_text("environment: qa\n", encoding="utf-8")
        with pytest.raises(ProjectAIConfigError, match="Invalid configuration"):
            load_config(str(path))


class TestEnvOverrides:

    def test_backend_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROJECTAI_BACKEND_URL", "https://env.supabase.co/")
        monkeypatch.setenv("PROJECTAI_ANON_KEY", "anon-from-env")
        cfg = load_config(str(tmp_path / "missing.yaml"))
        assert cfg.backend.url == "https://env.supabase.co"
        assert cfg.backend.anon_key == "anon-from-env"

    def test_bootstrap_admins_override_file(self, project_root, monkeypatch):
        monkeypatch.setenv("PROJECTAI_BOOTSTRAP_ADMINS", "a@x.com, B@x.com")
        cfg = load_config(str(project_root / "projectai.yaml"))
        assert cfg.security.bootstrap_admin_emails == ["a@x.com", "b@x.com"]
