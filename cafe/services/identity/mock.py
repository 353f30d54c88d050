"""
Mock Identity Provider Implementation

Simulates Supabase Auth without making real API calls.
Used in development mode (ENV_MODE=development) to:
    - Run the whole cafe locally with no external accounts
    - Give the test suite deterministic sign-up and sign-in

Behavior:
    - Accounts live in process memory and are auto-confirmed
    - Passwords are hashed with werkzeug's PBKDF2 helpers
    - Access tokens are random opaque strings, valid until revoked
"""

import logging
import secrets
import uuid
from typing import Any, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from cafe.services.identity.base import (
    AuthSession,
    BaseIdentityProvider,
    IdentityProviderError,
    IdentityUser,
)

logger = logging.getLogger(__name__)


class MockIdentityProvider(BaseIdentityProvider):
    """
    In-memory identity provider.

    Example:
        >>> provider = MockIdentityProvider()
        >>> user = await provider.create_user("sam@cafe.com", "pw", {"role": "admin"})
        >>> session = await provider.sign_in("sam@cafe.com", "pw")
    """

    TOKEN_BYTES = 32

    def __init__(self):
        self._accounts: dict[str, dict[str, Any]] = {}
        self._tokens: dict[str, str] = {}
        logger.info("MockIdentityProvider initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    def _to_user(self, account: dict[str, Any]) -> IdentityUser:
        return IdentityUser(
            id=account["id"],
            email=account["email"],
            metadata=dict(account["metadata"]),
        )

    async def verify_token(self, token: str) -> Optional[IdentityUser]:
        email = self._tokens.get(token)
        if email is None:
            logger.debug("Mock: token rejected")
            return None
        return self._to_user(self._accounts[email])

    async def create_user(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> IdentityUser:
        key = self._normalize_email(email)
        if not key or not password:
            raise IdentityProviderError("Email and password are required", status_code=400)
        if key in self._accounts:
            raise IdentityProviderError(
                "A user with this email address has already been registered",
                already_exists=True,
                status_code=422,
            )

        account = {
            "id": str(uuid.uuid4()),
            "email": key,
            "password_hash": generate_password_hash(password),
            "metadata": dict(metadata or {}),
        }
        self._accounts[key] = account

        logger.info(f"Mock: created user {account['id']}")
        return self._to_user(account)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        account = self._accounts.get(self._normalize_email(email))
        if account is None or not check_password_hash(account["password_hash"], password):
            raise IdentityProviderError("Invalid login credentials", status_code=400)

        token = secrets.token_urlsafe(self.TOKEN_BYTES)
        self._tokens[token] = account["email"]

        logger.debug(f"Mock: issued token for {account['id']}")
        return AuthSession(access_token=token, user=self._to_user(account))

    def revoke(self, token: str) -> None:
        """Invalidate a token (used to exercise expired-session paths)."""
        self._tokens.pop(token, None)

    async def health_check(self) -> bool:
        logger.debug("Mock: Health check passed")
        return True
