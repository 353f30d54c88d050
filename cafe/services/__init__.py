"""
                        Services Module

Business operations and the two external collaborators.
Each collaborator has a Mock (development) and Real (production)
implementation selected by ENV_MODE.

Services:
    - storage: key-value record store (in-memory / Redis)
    - identity: identity provider (mock / Supabase Auth)
    - accounts, menu, orders, analytics: request-level operations
"""

from cafe.services.identity import get_identity_provider
from cafe.services.storage import get_kv_store

__all__ = ["get_identity_provider", "get_kv_store"]
