"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from cafe.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from cafe.core.errors import (
    CafeError,
    InvalidInputError,
    InvalidStateError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    InternalError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "CafeError",
    "InvalidInputError",
    "InvalidStateError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
