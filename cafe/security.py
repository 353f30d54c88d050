"""
Request Authentication

FastAPI dependencies that turn the ``Authorization: Bearer <token>``
header into a Caller. The identity provider decides whether a token is
valid; the cafe trusts its answer and only adds the stored role.
"""

import logging
from typing import Optional

from fastapi import Depends, Header

from cafe.core.errors import ForbiddenError, InternalError, UnauthorizedError
from cafe.models import Caller, UserProfile, user_key
from cafe.services.identity import BaseIdentityProvider, IdentityProviderError, get_identity_provider
from cafe.services.storage import BaseKeyValueStore, get_kv_store

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def get_caller(
    authorization: Optional[str] = Header(None),
    identity: BaseIdentityProvider = Depends(get_identity_provider),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> Caller:
    """Resolve the bearer token and load the caller's profile, if any."""
    token = extract_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Unauthorized - No token provided")

    try:
        user = await identity.verify_token(token)
    except IdentityProviderError as e:
        if e.unreachable:
            logger.error(f"Token verification failed: {e.message}")
            raise InternalError("Identity provider unavailable") from e
        logger.warning(f"Token verification failed: {e.message}")
        user = None

    if user is None:
        raise UnauthorizedError("Unauthorized - Invalid token")

    record = await store.get(user_key(user.id))
    profile = UserProfile.model_validate(record) if record is not None else None

    return Caller(user_id=user.id, email=user.email, profile=profile)


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    """Reject callers whose stored role is not admin."""
    if not caller.is_admin:
        logger.info(f"Admin access denied for {caller.user_id}")
        raise ForbiddenError("Forbidden - Admin access required")
    return caller
