"""
ProjectAI Runtime — wires config, logging, caches, identity and views.

Lifecycle:
    runtime = ProjectAIRuntime(config)
    runtime.startup()
    ctx = runtime.auth.establish_session(token)
    with runtime.views_for(ctx) as views:
        views.projects.load(status="active")
    runtime.shutdown()
"""

from __future__ import annotations

import logging
from typing import Optional

from projectai.backend.client import BackendClient, create_backend
from projectai.engine.cache import QueryCache, RedisCache, create_session_store
from projectai.engine.config import ProjectAIConfig, get_config
from projectai.engine.context import SessionContext
from projectai.engine.logging import (
    AsyncLogQueue,
    LogRetentionManager,
    init_logging,
    log,
    log_system_event,
    shutdown_logging,
)
from projectai.services.auth import (
    AuthService,
    GoTrueIdentityProvider,
    IdentityProvider,
    LocalIdentityProvider,
)
from projectai.views import (
    AnalyticsView,
    DashboardView,
    ProjectDetailView,
    ProjectsView,
    SettingsView,
    TasksView,
    TeamView,
)

logger = logging.getLogger("projectai.runtime")


class SessionViews:
    """
    Every page view bound to one session, one backend client and the shared cache.

    The views own their backend client. Close them, or use them as a context
    manager, once the page work is done.
    """

    def __init__(self, backend: BackendClient, ctx: SessionContext, cache: QueryCache, config: ProjectAIConfig):
        self.backend = backend
        self.ctx = ctx
        self._cache = cache
        self.dashboard = DashboardView(backend, ctx, cache)
        self.projects = ProjectsView(
            backend, ctx, cache,
            negative_budget=config.validation.negative_budget,
            default_color=config.validation.default_color,
        )
        self.tasks = TasksView(backend, ctx, cache)
        self.team = TeamView(backend, ctx, cache, bootstrap_admins=config.security.bootstrap_admin_emails)
        self.analytics = AnalyticsView(backend, ctx, cache)
        self.settings = SettingsView(backend, ctx, cache, bootstrap_admins=config.security.bootstrap_admin_emails)

    def project_detail(self, project_id: str) -> ProjectDetailView:
        return ProjectDetailView(self.backend, project_id, self.ctx, self._cache)

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> "SessionViews":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ProjectAIRuntime:

    def __init__(self, config: Optional[ProjectAIConfig] = None):
        self.config = config or get_config()

        self.log_queue: Optional[AsyncLogQueue] = None
        self.session_store: Optional[RedisCache] = None
        self.query_cache: Optional[QueryCache] = None
        self.identity_provider: Optional[IdentityProvider] = None
        self.auth: Optional[AuthService] = None
        self.retention_manager: Optional[LogRetentionManager] = None
        self._started = False

    def startup(self) -> None:
        if self._started:
            logger.warning("Runtime already started")
            return
        cfg = self.config
        logger.info(f"Starting {cfg.name} ({cfg.environment}, backend={cfg.backend.mode})")

        # 1. Structured logging
        self.log_queue = init_logging(
            log_dir=cfg.logging.directory,
            flush_interval_ms=cfg.logging.async_queue.flush_interval_ms,
            flush_batch_size=cfg.logging.async_queue.flush_batch_size,
            max_queue_size=cfg.logging.async_queue.max_queue_size,
        )
        self.retention_manager = LogRetentionManager(
            log_dir=cfg.logging.directory,
            retention_days={
                "execution": cfg.logging.retention.execution_days,
                "performance": cfg.logging.retention.performance_days,
                "security": cfg.logging.retention.security_days,
            },
            compress_after_days=cfg.logging.compress_after_days,
        )

        # 2. Session store (optional; RedisCache degrades to no-ops)
        if cfg.redis.enabled:
            self.session_store = create_session_store(cfg.redis.url, ttl=cfg.security.session_timeout)

        # 3. Query cache
        qc = cfg.query_cache
        self.query_cache = QueryCache(
            stale_time=qc.stale_time,
            gc_time=qc.gc_time,
            max_retries=qc.max_retries,
            no_retry_markers=qc.no_retry_markers,
        )

        # 4. Identity + auth
        if cfg.backend.mode == "rest":
            self.identity_provider = GoTrueIdentityProvider(
                cfg.backend.url, cfg.backend.anon_key,
                provider=cfg.security.sso_provider, timeout=cfg.backend.timeout,
            )
        else:
            self.identity_provider = LocalIdentityProvider(cfg.security.redirect_url)
        self.auth = AuthService(
            provider=self.identity_provider,
            backend_factory=lambda token, user_id: create_backend(cfg, token, user_id),
            bootstrap_admins=cfg.security.bootstrap_admin_emails,
            default_role=cfg.security.default_role,
            redirect_url=cfg.security.redirect_url,
            session_store=self.session_store,
            session_timeout=cfg.security.session_timeout,
        )

        self._started = True
        log(log_system_event("runtime_started", details={
            "environment": cfg.environment,
            "backend_mode": cfg.backend.mode,
            "session_store": bool(self.session_store and self.session_store.is_available),
        }))
        logger.info("ProjectAI runtime started")

    def backend_for(self, ctx: SessionContext) -> BackendClient:
        """A fresh backend client for ``ctx``. The caller closes it."""
        return create_backend(self.config, ctx.access_token, ctx.user_id)

    def views_for(self, ctx: SessionContext) -> SessionViews:
        if not self._started:
            raise RuntimeError("Runtime not started. Call startup() first.")
        return SessionViews(self.backend_for(ctx), ctx, self.query_cache, self.config)

    def shutdown(self) -> None:
        if not self._started:
            return
        logger.info("Shutting down ProjectAI runtime...")
        if self.identity_provider:
            self.identity_provider.close()
        if self.session_store:
            self.session_store.close()
        if self.config.backend.mode == "sql":
            from projectai.db.session import close_engine
            close_engine()

        log(log_system_event("runtime_shutdown"))
        shutdown_logging()
        self._started = False
        logger.info("ProjectAI runtime shut down")
