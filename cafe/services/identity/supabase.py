"""
Supabase Identity Provider Implementation

Production implementation using the Supabase Auth (GoTrue) REST API.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and SUPABASE_ANON_KEY set
      in environment

Endpoints used:
    - POST /auth/v1/admin/users                (create confirmed user)
    - POST /auth/v1/token?grant_type=password  (password sign-in)
    - GET  /auth/v1/user                       (resolve access token)
    - GET  /auth/v1/health
"""

import logging
from typing import Any, Optional

import httpx

from cafe.core.config import get_settings
from cafe.services.identity.base import (
    AuthSession,
    BaseIdentityProvider,
    IdentityProviderError,
    IdentityUser,
)

logger = logging.getLogger(__name__)

DUPLICATE_ERROR_CODES = {"email_exists", "user_already_exists"}


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    for field in ("msg", "message", "error_description", "error"):
        if isinstance(body, dict) and body.get(field):
            return str(body[field])
    return f"HTTP {response.status_code}"


def _is_duplicate(response: httpx.Response, message: str) -> bool:
    try:
        code = response.json().get("error_code")
    except (ValueError, AttributeError):
        code = None
    return code in DUPLICATE_ERROR_CODES or "already" in message.lower() or "exists" in message.lower()


class SupabaseIdentityProvider(BaseIdentityProvider):
    """
    Identity provider backed by a Supabase project.

    Configuration:
        Requires SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_ANON_KEY.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Raises:
            ValueError: If the Supabase settings are not configured
        """
        settings = get_settings()

        if not (settings.supabase_url and settings.supabase_service_role_key and settings.supabase_anon_key):
            raise ValueError(
                "SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and SUPABASE_ANON_KEY are "
                "required for production mode. Set them in your .env file or "
                "environment variables."
            )

        self._service_key = settings.supabase_service_role_key
        self._anon_key = settings.supabase_anon_key
        self._client = client or httpx.AsyncClient(
            base_url=settings.supabase_url.rstrip("/"),
            timeout=settings.identity_timeout_seconds,
        )

        logger.info("SupabaseIdentityProvider initialized")

    @property
    def provider_name(self) -> str:
        return "supabase"

    @staticmethod
    def _to_user(payload: dict[str, Any]) -> IdentityUser:
        return IdentityUser(
            id=payload["id"],
            email=payload.get("email"),
            metadata=payload.get("user_metadata") or {},
        )

    async def verify_token(self, token: str) -> Optional[IdentityUser]:
        try:
            response = await self._client.get(
                "/auth/v1/user",
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase token check failed: {e}")
            raise IdentityProviderError(f"Identity provider unreachable: {e}", unreachable=True) from e

        if response.status_code != 200:
            logger.debug(f"Supabase rejected token: HTTP {response.status_code}")
            return None
        return self._to_user(response.json())

    async def create_user(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> IdentityUser:
        try:
            response = await self._client.post(
                "/auth/v1/admin/users",
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                },
                json={
                    "email": email,
                    "password": password,
                    "user_metadata": metadata or {},
                    # No mail server configured; accounts are confirmed on creation
                    "email_confirm": True,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase create_user failed: {e}")
            raise IdentityProviderError(f"Identity provider unreachable: {e}", unreachable=True) from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"Supabase create_user rejected: {message}")
            raise IdentityProviderError(
                message,
                already_exists=_is_duplicate(response, message),
                status_code=response.status_code,
            )

        user = self._to_user(response.json())
        logger.info(f"Supabase: created user {user.id}")
        return user

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._client.post(
                "/auth/v1/token",
                params={"grant_type": "password"},
                headers={"apikey": self._anon_key},
                json={"email": email, "password": password},
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase sign_in failed: {e}")
            raise IdentityProviderError(f"Identity provider unreachable: {e}", unreachable=True) from e

        if response.status_code >= 400:
            raise IdentityProviderError(_error_message(response), status_code=response.status_code)

        body = response.json()
        return AuthSession(
            access_token=body["access_token"],
            user=self._to_user(body["user"]),
            expires_in=body.get("expires_in"),
        )

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(
                "/auth/v1/health", headers={"apikey": self._anon_key}
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase health check failed: {e}")
            return False
        return response.status_code == 200

    async def close(self) -> None:
        await self._client.aclose()
