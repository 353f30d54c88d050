"""
Account Operations

Sign-up, login and profile lookup. Credentials are handled entirely by
the identity provider; the cafe only keeps a profile record
(``user:<id>``) holding the display name and role.
"""

import logging

from cafe.core.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from cafe.models import Role, UserProfile, user_key
from cafe.schemas import LoginResponse, UserView
from cafe.services.identity.base import BaseIdentityProvider, IdentityProviderError
from cafe.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

VALID_ROLES = [r.value for r in Role]


async def signup(
    store: BaseKeyValueStore,
    identity: BaseIdentityProvider,
    email: str,
    password: str,
    name: str,
    role: str,
) -> UserView:
    """
    Create an account with the identity provider and store its profile.

    Raises:
        InvalidInputError: missing fields, unknown role, or provider rejection
        ConflictError: the email is already registered
    """
    if not email or not password or not name or not role:
        raise InvalidInputError("Missing required fields")

    if role not in VALID_ROLES:
        raise InvalidInputError("Invalid role. Must be admin or employee")

    try:
        user = await identity.create_user(
            email=email,
            password=password,
            metadata={"name": name, "role": role},
        )
    except IdentityProviderError as e:
        logger.warning(f"Sign up failed for {email}: {e.message}")
        if e.unreachable:
            raise InternalError("Identity provider unavailable") from e
        if e.already_exists:
            raise ConflictError("User with this email already exists") from e
        raise InvalidInputError(f"Sign up failed: {e.message}") from e

    profile = UserProfile(id=user.id, email=email, name=name, role=role)
    await store.set(user_key(user.id), profile.to_record())

    logger.info(f"User {user.id} created with role {role}")
    return UserView(id=user.id, email=email, name=name, role=role)


async def login(
    store: BaseKeyValueStore,
    identity: BaseIdentityProvider,
    email: str,
    password: str,
) -> LoginResponse:
    """
    Sign in and return the access token with the caller's profile.

    Name and role come from the stored profile, then from the provider's
    user metadata; role finally defaults to employee.
    """
    if not email or not password:
        raise InvalidInputError("Email and password are required")

    try:
        session = await identity.sign_in(email, password)
    except IdentityProviderError as e:
        if e.unreachable:
            logger.error(f"Login failed for {email}: {e.message}")
            raise InternalError("Identity provider unavailable") from e
        logger.info(f"Login rejected for {email}: {e.message}")
        raise UnauthorizedError(f"Login failed: {e.message}") from e

    user = session.user
    profile = await store.get(user_key(user.id)) or {}

    return LoginResponse(
        access_token=session.access_token,
        user=UserView(
            id=user.id,
            email=user.email,
            name=profile.get("name") or user.metadata.get("name"),
            role=profile.get("role") or user.metadata.get("role") or Role.EMPLOYEE.value,
        ),
    )


async def get_profile(store: BaseKeyValueStore, user_id: str) -> UserProfile:
    """Load a stored profile; NotFoundError when there is none."""
    record = await store.get(user_key(user_id))
    if record is None:
        raise NotFoundError("User profile not found")
    return UserProfile.model_validate(record)
