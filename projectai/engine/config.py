"""
ProjectAI Configuration — Load and validate projectai.yaml at startup.

Usage:
    from projectai.engine.config import load_config, get_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from projectai.engine.errors import ProjectAIConfigError

CONFIG_FILENAME = "projectai.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for projectai.yaml
# ---------------------------------------------------------------------------

class BackendConfig(BaseModel):
    """The hosted database-as-a-service (or a local SQL database in sql mode)."""
    mode: str = "rest"
    url: str = "http://localhost:54321"
    anon_key: str = ""
    timeout: float = 15.0
    schema_name: str = Field(default="public", alias="schema")

    model_config = {"populate_by_name": True}

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if v not in ("rest", "sql"):
            raise ValueError(f"backend.mode must be rest/sql, got '{v}'")
        return v

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///projectai.db"
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True


class RedisConfig(BaseModel):
    enabled: bool = True
    url: str = "redis://localhost:6379/0"


class SecurityConfig(BaseModel):
    bootstrap_admin_emails: List[str] = Field(default_factory=list)
    default_role: str = "member"
    sso_provider: str = "azure"
    redirect_url: str = "http://localhost:8080/"
    session_timeout: int = 3600

    @field_validator("bootstrap_admin_emails")
    @classmethod
    def normalize_emails(cls, v: List[str]) -> List[str]:
        return [e.strip().lower() for e in v if e and e.strip()]

    @field_validator("default_role")
    @classmethod
    def validate_default_role(cls, v: str) -> str:
        if v not in ("admin", "manager", "member"):
            raise ValueError(f"default_role must be admin/manager/member, got '{v}'")
        return v


class QueryCacheConfig(BaseModel):
    stale_time: int = 120
    gc_time: int = 300
    max_retries: int = 3
    no_retry_markers: List[str] = Field(
        default_factory=lambda: ["permission", "authentication"]
    )


class ValidationConfig(BaseModel):
    negative_budget: str = "reject"
    default_color: str = "#3B82F6"

    @field_validator("negative_budget")
    @classmethod
    def validate_negative_budget(cls, v: str) -> str:
        if v not in ("reject", "clamp"):
            raise ValueError(f"negative_budget must be reject/clamp, got '{v}'")
        return v


class LogRetentionConfig(BaseModel):
    execution_days: int = 90
    performance_days: int = 30
    security_days: int = 365


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".projectai/logs"
    compress_after_days: int = 7
    retention: LogRetentionConfig = LogRetentionConfig()
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()


class ProjectAIConfig(BaseModel):
    """Root model for projectai.yaml."""
    name: str = "ProjectAI"
    environment: str = "dev"

    backend: BackendConfig = BackendConfig()
    database: DatabaseConfig = DatabaseConfig()
    redis: RedisConfig = RedisConfig()
    security: SecurityConfig = SecurityConfig()
    query_cache: QueryCacheConfig = QueryCacheConfig()
    validation: ValidationConfig = ValidationConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[ProjectAIConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for projectai.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _apply_env_overrides(data: dict) -> dict:
    """Environment variables win over the file for secrets and deploy targets."""
    backend = dict(data.get("backend") or {})
    if os.environ.get("PROJECTAI_BACKEND_URL"):
        backend["url"] = os.environ["PROJECTAI_BACKEND_URL"]
    if os.environ.get("PROJECTAI_ANON_KEY"):
        backend["anon_key"] = os.environ["PROJECTAI_ANON_KEY"]
    if os.environ.get("PROJECTAI_BACKEND_MODE"):
        backend["mode"] = os.environ["PROJECTAI_BACKEND_MODE"]
    data["backend"] = backend

    admins = os.environ.get("PROJECTAI_BOOTSTRAP_ADMINS")
    if admins:
        security = dict(data.get("security") or {})
        security["bootstrap_admin_emails"] = [a for a in admins.split(",") if a.strip()]
        data["security"] = security
    return data


def load_config(config_path: Optional[str] = None) -> ProjectAIConfig:
    """
    Load and validate projectai.yaml.

    Args:
        config_path: Explicit path to projectai.yaml. If None, auto-discovers.

    Returns:
        Validated ProjectAIConfig instance. Defaults when no file exists.

    Raises:
        ProjectAIConfigError if the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    raw: dict = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ProjectAIConfigError(f"Invalid YAML in {path}: {e}", path=str(path))
        if not isinstance(raw, dict):
            raise ProjectAIConfigError(f"{path} must contain a mapping", path=str(path))

    # Flatten an optional top-level "app:" block (name, environment)
    app_block = raw.pop("app", {}) or {}
    data = {
        "name": app_block.get("name", raw.get("name", "ProjectAI")),
        "environment": app_block.get("environment", raw.get("environment", "dev")),
    }
    for section in ("backend", "database", "redis", "security",
                    "query_cache", "validation", "logging"):
        if section in raw:
            data[section] = raw[section]

    data = _apply_env_overrides(data)

    try:
        _config = ProjectAIConfig(**data)
    except ValidationError as e:
        raise ProjectAIConfigError(f"Invalid configuration in {path}: {e}", path=str(path))
    return _config


def get_config() -> ProjectAIConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_environment() -> str:
    """Get the current environment."""
    return get_config().environment
