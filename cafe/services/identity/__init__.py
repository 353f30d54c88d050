"""
Identity Provider Factory

Returns the mock or Supabase identity provider based on ENV_MODE.

Usage:
    from cafe.services.identity import get_identity_provider

    provider = get_identity_provider()
    user = await provider.verify_token(token)
"""

import logging
from functools import lru_cache

from cafe.core.config import get_settings
from cafe.services.identity.base import (
    AuthSession,
    BaseIdentityProvider,
    IdentityProviderError,
    IdentityUser,
)
from cafe.services.identity.mock import MockIdentityProvider
from cafe.services.identity.supabase import SupabaseIdentityProvider

logger = logging.getLogger(__name__)


@lru_cache()
def get_identity_provider() -> BaseIdentityProvider:
    """Get the configured identity provider."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Identity Provider: Using MockIdentityProvider (development mode)")
        return MockIdentityProvider()
    else:
        logger.info(f"Identity Provider: Using SupabaseIdentityProvider ({settings.env_mode.value} mode)")
        return SupabaseIdentityProvider()


def reset_identity_provider() -> None:
    """Clear the cached provider instance."""
    get_identity_provider.cache_clear()


__all__ = [
    "get_identity_provider",
    "reset_identity_provider",
    "AuthSession",
    "BaseIdentityProvider",
    "IdentityProviderError",
    "IdentityUser",
    "MockIdentityProvider",
    "SupabaseIdentityProvider",
]
