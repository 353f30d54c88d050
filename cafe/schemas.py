"""
Pydantic Schemas for Request/Response Validation

Request bodies and response envelopes for the REST surface. Stored
record shapes live in ``cafe.models``; the envelopes here wrap them the
way the browser client expects (``{"menu": [...]}``, ``{"order": {...}}``).
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cafe.models import MenuItem, Order, UserProfile


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# AUTH
# =============================================================================

class SignupRequest(BaseModel):
    """Request schema for creating an account."""
    email: EmailStr = Field(..., examples=["barista@cafe.com"])
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100, examples=["Sam Barista"])
    # Checked against Role in the accounts service so the error names the choices
    role: str = Field(..., examples=["employee"])


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserView(BaseModel):
    """Public view of a user returned by signup and login."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str


class SignupResponse(BaseModel):
    message: str
    user: UserView


class LoginResponse(BaseModel):
    access_token: str
    user: UserView


class MeResponse(BaseModel):
    user: UserProfile


# =============================================================================
# MENU
# =============================================================================

class MenuItemCreate(BaseModel):
    """Request schema for creating a menu item."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Espresso"])
    category: str = Field(..., min_length=1, max_length=50, examples=["drinks"])
    description: str = Field(default="", max_length=500)
    price: float = Field(..., ge=0, allow_inf_nan=False, examples=[2.99])
    available: bool = True
    image: str = Field(default="", max_length=500)


class MenuItemUpdate(BaseModel):
    """Partial update; only the fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    available: Optional[bool] = None
    image: Optional[str] = Field(None, max_length=500)


class MenuListResponse(BaseModel):
    menu: List[MenuItem]


class MenuItemResponse(CamelModel):
    message: Optional[str] = None
    menu_item: MenuItem = Field(..., alias="menuItem")


class MessageResponse(CamelModel):
    message: str
    item_count: Optional[int] = Field(None, alias="itemCount")


# =============================================================================
# ORDERS
# =============================================================================

class OrderLineRequest(CamelModel):
    """Single line of an order request."""
    menu_item_id: str = Field(..., alias="menuItemId", min_length=1, examples=["espresso"])
    quantity: int = Field(..., ge=1, examples=[2])


class OrderCreate(BaseModel):
    """Request schema for placing an order."""
    # Empty lists are rejected by the orders service with a specific message
    items: List[OrderLineRequest] = Field(default_factory=list)
    notes: Optional[str] = Field(default="", max_length=500)


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., examples=["preparing"])


class OrderResponse(BaseModel):
    message: Optional[str] = None
    order: Order


class OrderListResponse(BaseModel):
    orders: List[Order]


# =============================================================================
# ANALYTICS
# =============================================================================

class PopularItem(BaseModel):
    id: str
    name: str
    count: int
    revenue: float


class OrdersByStatus(BaseModel):
    pending: int = 0
    preparing: int = 0
    ready: int = 0
    completed: int = 0
    cancelled: int = 0


class AnalyticsResponse(CamelModel):
    total_orders: int = Field(..., alias="totalOrders")
    total_revenue: float = Field(..., alias="totalRevenue")
    total_menu_items: int = Field(..., alias="totalMenuItems")
    orders_by_status: OrdersByStatus = Field(..., alias="ordersByStatus")
    popular_items: List[PopularItem] = Field(..., alias="popularItems")


# =============================================================================
# SYSTEM
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    store: str
    identity: str
    timestamp: datetime
