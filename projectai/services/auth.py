"""
ProjectAI Auth — identity collaborator and session establishment.

The hosted backend's identity service runs the enterprise SSO flow and
issues the access token; this module only starts the flow, reads the user
behind a token and turns it into a SessionContext.

Flow:
1. sign_in_url() → browser goes through the SSO provider
2. provider redirects back with an access token
3. establish_session(token) → identity → role resolution → SessionContext
4. snapshot kept in the Redis session store (best effort)
5. sign_out(ctx) → provider logout, store entry and context cleared
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional
from urllib.parse import urlencode

import httpx

from projectai.backend.client import BackendClient
from projectai.engine.cache import RedisCache
from projectai.engine.context import (
    SessionContext,
    clear_session_context,
    set_session_context,
)
from projectai.engine.errors import ProjectAISessionError
from projectai.engine.logging import log, log_auth_event
from projectai.security.roles import Identity, RoleResolver

logger = logging.getLogger("projectai.services.auth")

# Namespace for identities minted by LocalIdentityProvider.
LOCAL_IDENTITY_NAMESPACE = uuid.UUID("6f1c2f9e-4c1b-4d8e-9a61-0d7b7c3e2a55")


class IdentityProvider:
    """Interface to the identity collaborator."""

    def authorize_url(self, redirect_to: str) -> str:
        raise NotImplementedError

    def get_user(self, access_token: str) -> Identity:
        raise NotImplementedError

    def sign_out(self, access_token: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class GoTrueIdentityProvider(IdentityProvider):
    """
    The hosted backend's identity API.

        GET  {base}/auth/v1/authorize?provider=azure&redirect_to=...
        GET  {base}/auth/v1/user        Authorization: Bearer <token>
        POST {base}/auth/v1/logout      Authorization: Bearer <token>
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        provider: str = "azure",
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._provider = provider
        self._client = httpx.Client(
            base_url=f"{self._base_url}/auth/v1",
            headers={"apikey": anon_key, "Accept": "application/json"},
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    def authorize_url(self, redirect_to: str) -> str:
        query = urlencode({"provider": self._provider, "redirect_to": redirect_to})
        return f"{self._base_url}/auth/v1/authorize?{query}"

    def get_user(self, access_token: str) -> Identity:
        try:
            response = self._client.get(
                "/user", headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise ProjectAISessionError(f"Identity service unreachable: {e}")
        if response.status_code != 200:
            raise ProjectAISessionError(
                f"Identity service rejected the session: {self._error_text(response)}",
                status_code=response.status_code,
            )
        body = response.json()
        if not body.get("id") or not body.get("email"):
            raise ProjectAISessionError("Identity service returned a user without id/email")
        return Identity(
            id=body["id"],
            email=body["email"],
            metadata=body.get("user_metadata") or {},
        )

    def sign_out(self, access_token: str) -> None:
        try:
            response = self._client.post(
                "/logout", headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise ProjectAISessionError(f"Identity service unreachable: {e}")
        if response.status_code >= 400 and response.status_code != 401:
            raise ProjectAISessionError(
                f"Sign-out failed: {self._error_text(response)}",
                status_code=response.status_code,
            )

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return body.get("msg") or body.get("error_description") or body.get("message") or str(body)
        return str(body)


class LocalIdentityProvider(IdentityProvider):
    """
    Development provider for sql mode: the token *is* the email address.
    Ids are deterministic so the same email always maps to the same profile.
    """

    def __init__(self, redirect_url: str = "http://localhost:8080/"):
        self._redirect_url = redirect_url

    def authorize_url(self, redirect_to: str) -> str:
        return f"{redirect_to}#access_token=<your-email>"

    def get_user(self, access_token: str) -> Identity:
        email = (access_token or "").strip().lower()
        if "@" not in email:
            raise ProjectAISessionError("Local sign-in expects an email address as the token")
        return Identity(
            id=str(uuid.uuid5(LOCAL_IDENTITY_NAMESPACE, email)),
            email=email,
            metadata={},
        )

    def sign_out(self, access_token: str) -> None:
        return None


class AuthService:
    """Turns an access token into a SessionContext with a resolved role."""

    def __init__(
        self,
        provider: IdentityProvider,
        backend_factory,
        bootstrap_admins=(),
        default_role: str = "member",
        redirect_url: str = "http://localhost:8080/",
        session_store: Optional[RedisCache] = None,
        session_timeout: int = 3600,
    ):
        """
        Args:
            provider: IdentityProvider.
            backend_factory: ``callable(access_token, user_id) -> BackendClient``.
                Role resolution runs with the user's own token so the
                backend's row-level security applies to the profile upsert.
            session_store: Optional RedisCache for session snapshots.
        """
        self._provider = provider
        self._backend_factory = backend_factory
        self._bootstrap_admins = list(bootstrap_admins)
        self._default_role = default_role
        self._redirect_url = redirect_url
        self._sessions = session_store
        self._session_timeout = session_timeout

    def sign_in_url(self, redirect_to: Optional[str] = None) -> str:
        url = self._provider.authorize_url(redirect_to or self._redirect_url)
        log(log_auth_event("sign_in_started"))
        return url

    def establish_session(self, access_token: str) -> SessionContext:
        """
        Resolve identity and role for ``access_token`` and make it the
        current session.

        Raises:
            ProjectAISessionError if the identity provider rejects the token.
        """
        if not access_token:
            raise ProjectAISessionError("User not authenticated")
        try:
            identity = self._provider.get_user(access_token)
        except ProjectAISessionError as e:
            log(log_auth_event("session_rejected", success=False, error=e.message))
            logger.warning(f"Session rejected: {e.message}")
            raise

        backend: BackendClient = self._backend_factory(access_token, identity.id)
        try:
            resolved = RoleResolver(
                backend, self._bootstrap_admins, self._default_role,
            ).resolve(identity)
        finally:
            backend.close()

        profile = resolved.profile
        ctx = SessionContext(
            user_id=identity.id,
            email=identity.email,
            role=resolved.role,
            full_name=profile.display_name if profile else identity.suggested_name,
            access_token=access_token,
            session_id=uuid.uuid4().hex,
            profile=profile.model_dump(mode="json") if profile else {},
        )
        set_session_context(ctx)

        if self._sessions is not None:
            self._sessions.set_json(ctx.session_id, ctx.to_dict(), ttl=self._session_timeout)

        log(log_auth_event(
            "session_established", email=ctx.email, user_id=ctx.user_id, role=ctx.role,
        ))
        logger.info(f"Session established for {ctx.email} (role={ctx.role})")
        return ctx

    def get_session_snapshot(self, session_id: str) -> Optional[dict]:
        """Stored snapshot for ``session_id`` or None (no store, expired, Redis down)."""
        if self._sessions is None:
            return None
        return self._sessions.get_json(session_id)

    def sign_out(self, ctx: SessionContext) -> None:
        try:
            if ctx.access_token:
                self._provider.sign_out(ctx.access_token)
        finally:
            if self._sessions is not None and ctx.session_id:
                self._sessions.delete(ctx.session_id)
            clear_session_context()
            log(log_auth_event("signed_out", email=ctx.email, user_id=ctx.user_id, role=ctx.role))
            logger.info(f"Signed out {ctx.email}")
