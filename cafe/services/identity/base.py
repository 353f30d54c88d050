"""
Identity Provider Abstract Base Class

Defines the interface contract for the external identity provider.
The cafe never stores or checks passwords itself: account creation,
password sign-in and bearer-token verification are all delegated here.

Implementations:
    - MockIdentityProvider: in-process accounts for development and tests
    - SupabaseIdentityProvider: Supabase Auth (GoTrue) over HTTP
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class IdentityUser:
    """
    A subject known to the identity provider.

    Attributes:
        id: Provider subject id; also the key of the cafe user profile
        email: Login email
        metadata: Free-form user metadata (the cafe keeps name and role here)
    """
    id: str
    email: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthSession:
    """Result of a successful password sign-in."""
    access_token: str
    user: IdentityUser
    expires_in: Optional[int] = None


class IdentityProviderError(Exception):
    """
    Raised when the provider rejects a request.

    Attributes:
        message: Provider's error description
        already_exists: True when account creation failed on a duplicate email
        status_code: HTTP status returned by the provider, if any
        unreachable: True when the provider could not be contacted at all,
            as opposed to answering with a rejection
    """

    def __init__(
        self,
        message: str,
        already_exists: bool = False,
        status_code: Optional[int] = None,
        unreachable: bool = False,
    ):
        self.message = message
        self.already_exists = already_exists
        self.status_code = status_code
        self.unreachable = unreachable
        super().__init__(message)


class BaseIdentityProvider(ABC):
    """
    Abstract base class for identity providers.

    Example:
        >>> provider = get_identity_provider()
        >>> user = await provider.create_user(
        ...     "sam@cafe.com", "s3cret", {"name": "Sam", "role": "employee"}
        ... )
        >>> session = await provider.sign_in("sam@cafe.com", "s3cret")
        >>> (await provider.verify_token(session.access_token)).id == user.id
        True
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., "mock", "supabase")."""
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> Optional[IdentityUser]:
        """
        Resolve a bearer token to its subject.

        Returns:
            IdentityUser if the token is valid, None otherwise
        """
        pass

    @abstractmethod
    async def create_user(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> IdentityUser:
        """
        Create a confirmed account.

        Raises:
            IdentityProviderError: on duplicate email (``already_exists``)
                or any other rejection
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Exchange email and password for an access token.

        Raises:
            IdentityProviderError: when the credentials are rejected
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the identity provider.

        Returns:
            bool: True if the provider is reachable
        """
        pass

    async def close(self) -> None:
        """Release connections. Called once at application shutdown."""
        return None
