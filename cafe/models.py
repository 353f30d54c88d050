"""
Stored Record Models

Pydantic models for the three record shapes kept in the key-value store:
    - UserProfile  at ``user:<id>``
    - MenuItem     at ``menu:<id>``
    - Order        at ``order:<id>``

Field names on the wire and in the store are the camelCase names the
browser client uses (``userId``, ``menuItemId``...); Python code uses the
snake_case attribute names. ``to_record()`` produces the stored form.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


USER_PREFIX = "user:"
MENU_PREFIX = "menu:"
ORDER_PREFIX = "order:"


def user_key(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def menu_key(item_id: str) -> str:
    return f"{MENU_PREFIX}{item_id}"


def order_key(order_id: str) -> str:
    return f"{ORDER_PREFIX}{order_id}"


def utcnow_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class Role(str, enum.Enum):
    """User roles. Fixed when the account is created."""
    ADMIN = "admin"
    EMPLOYEE = "employee"


class OrderStatus(str, enum.Enum):
    """Order status values."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Only consulted when STRICT_STATUS_TRANSITIONS is enabled.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class Record(BaseModel):
    """Base for everything persisted in the key-value store."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_record(self) -> dict:
        """Serialize to the JSON-compatible stored form."""
        return self.model_dump(by_alias=True, mode="json")


class UserProfile(Record):
    id: str
    email: str
    name: str
    role: Role
    created_at: str = Field(default_factory=utcnow_iso)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class MenuItem(Record):
    id: str
    name: str
    category: str
    description: str = ""
    price: float = Field(..., ge=0, allow_inf_nan=False)
    available: bool = True
    image: str = ""
    created_at: str = Field(default_factory=utcnow_iso)
    updated_at: str = Field(default_factory=utcnow_iso)


class OrderLine(Record):
    """Snapshot of a menu item taken when the order was placed."""
    menu_item_id: str = Field(..., alias="menuItemId")
    name: str
    price: float
    quantity: int
    subtotal: float


class Order(Record):
    id: str
    user_id: str = Field(..., alias="userId")
    user_email: Optional[str] = Field(None, alias="userEmail")
    items: list[OrderLine]
    total: float
    notes: str = ""
    status: OrderStatus = OrderStatus.PENDING
    created_at: str = Field(default_factory=utcnow_iso)
    updated_at: str = Field(default_factory=utcnow_iso)


@dataclass
class Caller:
    """
    The authenticated subject behind a request.

    ``profile`` is None when the identity provider knows the user but no
    profile record exists; such callers are treated as non-admin.
    """
    user_id: str
    email: Optional[str] = None
    profile: Optional[UserProfile] = None

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.is_admin
