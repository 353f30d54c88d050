"""
FastAPI Application Entry Point

Cafe Ordering System - menu browsing, ordering and order tracking,
with admin menu management, order lifecycle and sales analytics.

Endpoints:
    - POST /auth/signup, POST /auth/login, GET /auth/me
    - GET/POST /menu, GET/PUT/DELETE /menu/{id}
    - POST /orders, GET /orders, GET /orders/{id}, PATCH /orders/{id}/status
    - GET /analytics
    - POST /init-sample-data
    - GET /app, /app/menu, /app/orders, /app/admin: browser UI
    - GET /health: System health check

Run locally:
    uvicorn cafe.main:app --port 8001 --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from cafe.core.config import get_settings, setup_logging
from cafe.core.errors import CafeError
from cafe.models import Caller
from cafe.schemas import (
    AnalyticsResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MenuListResponse,
    MessageResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    SignupRequest,
    SignupResponse,
)
from cafe.security import get_caller, require_admin
from cafe.services import accounts, analytics, menu, orders
from cafe.services.identity import BaseIdentityProvider, get_identity_provider
from cafe.services.storage import BaseKeyValueStore, get_kv_store

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def _resolve(app: FastAPI, dependency):
    """Call a collaborator factory, honouring dependency overrides."""
    return app.dependency_overrides.get(dependency, dependency)()


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"☕ Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    store = _resolve(app, get_kv_store)
    identity = _resolve(app, get_identity_provider)
    logger.info(f"✅ KV Store: {store.provider_name}")
    logger.info(f"✅ Identity Provider: {identity.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    if settings.seed_sample_data:
        created = await menu.seed_sample_menu(store)
        logger.info(f"✅ Sample menu: {created} items created")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await store.close()
    await identity.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Cafe menu, ordering and order-status API. Records live in a key-value "
        "store and authentication is delegated to an identity provider."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.1f}ms)"
    )
    return response


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"☕ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "app": "/app",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: BaseKeyValueStore = Depends(get_kv_store),
    identity: BaseIdentityProvider = Depends(get_identity_provider),
) -> HealthResponse:
    """Verify the store and identity provider are reachable."""
    store_status = "healthy" if await store.health_check() else "unhealthy"
    identity_status = "healthy" if await identity.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [store_status, identity_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        store=store_status,
        identity=identity_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/auth/signup",
    response_model=SignupResponse,
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def signup(
    body: SignupRequest,
    store: BaseKeyValueStore = Depends(get_kv_store),
    identity: BaseIdentityProvider = Depends(get_identity_provider),
) -> SignupResponse:
    """Create an admin or employee account."""
    user = await accounts.signup(
        store, identity,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
    )
    return SignupResponse(message="User created successfully", user=user)


@app.post(
    "/auth/login",
    response_model=LoginResponse,
    responses=ERROR_RESPONSES,
    tags=["Auth"],
)
async def login(
    body: LoginRequest,
    store: BaseKeyValueStore = Depends(get_kv_store),
    identity: BaseIdentityProvider = Depends(get_identity_provider),
) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    return await accounts.login(store, identity, body.email, body.password)


@app.get("/auth/me", response_model=MeResponse, responses=ERROR_RESPONSES, tags=["Auth"])
async def me(
    caller: Caller = Depends(get_caller),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MeResponse:
    """Profile of the authenticated caller."""
    return MeResponse(user=await accounts.get_profile(store, caller.user_id))


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get("/menu", response_model=MenuListResponse, tags=["Menu"])
async def list_menu(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MenuListResponse:
    """List menu items, optionally filtered by category and search text."""
    return MenuListResponse(menu=await menu.list_menu(store, category, search))


@app.get(
    "/menu/{item_id}",
    response_model=MenuItemResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def get_menu_item(
    item_id: str,
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MenuItemResponse:
    return MenuItemResponse(menu_item=await menu.get_menu_item(store, item_id))


@app.post(
    "/menu",
    status_code=201,
    response_model=MenuItemResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
    summary="Create Menu Item (Admin)",
)
async def create_menu_item(
    body: MenuItemCreate,
    _admin: Caller = Depends(require_admin),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MenuItemResponse:
    item = await menu.create_menu_item(store, body)
    return MenuItemResponse(message="Menu item created successfully", menu_item=item)


@app.put(
    "/menu/{item_id}",
    response_model=MenuItemResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
    summary="Update Menu Item (Admin)",
)
async def update_menu_item(
    item_id: str,
    body: MenuItemUpdate,
    _admin: Caller = Depends(require_admin),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MenuItemResponse:
    item = await menu.update_menu_item(store, item_id, body)
    return MenuItemResponse(message="Menu item updated successfully", menu_item=item)


@app.delete(
    "/menu/{item_id}",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
    summary="Delete Menu Item (Admin)",
)
async def delete_menu_item(
    item_id: str,
    _admin: Caller = Depends(require_admin),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MessageResponse:
    await menu.delete_menu_item(store, item_id)
    return MessageResponse(message="Menu item deleted successfully")


@app.post(
    "/init-sample-data",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    tags=["Menu"],
    summary="Create Sample Menu",
)
async def init_sample_data(
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> MessageResponse:
    """Create the sample menu if the menu is empty."""
    created = await menu.seed_sample_menu(store)
    if not created:
        return MessageResponse(message="Sample data already exists")
    return MessageResponse(message="Sample data initialized successfully", item_count=created)


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.post(
    "/orders",
    status_code=201,
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    body: OrderCreate,
    caller: Caller = Depends(get_caller),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> OrderResponse:
    """Place an order for the authenticated caller."""
    order = await orders.place_order(store, caller, body.items, body.notes)
    return OrderResponse(message="Order placed successfully", order=order)


@app.get("/orders", response_model=OrderListResponse, responses=ERROR_RESPONSES, tags=["Orders"])
async def list_orders(
    status: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> OrderListResponse:
    """All orders for admins, own orders for everyone else, newest first."""
    return OrderListResponse(orders=await orders.list_orders(store, caller, status))


@app.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    caller: Caller = Depends(get_caller),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> OrderResponse:
    return OrderResponse(order=await orders.get_order(store, caller, order_id))


@app.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Update Order Status (Admin)",
)
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    caller: Caller = Depends(get_caller),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> OrderResponse:
    order = await orders.update_order_status(
        store, caller, order_id, body.status,
        strict=get_settings().strict_status_transitions,
    )
    return OrderResponse(message="Order status updated successfully", order=order)


# =============================================================================
# ANALYTICS ENDPOINTS
# =============================================================================

@app.get(
    "/analytics",
    response_model=AnalyticsResponse,
    responses=ERROR_RESPONSES,
    tags=["Analytics"],
    summary="Sales Analytics (Admin)",
)
async def get_analytics(
    limit: Optional[int] = Query(None, ge=1, le=50),
    _admin: Caller = Depends(require_admin),
    store: BaseKeyValueStore = Depends(get_kv_store),
) -> AnalyticsResponse:
    """Order totals, counts per status and the most popular items."""
    top_n = limit or get_settings().popular_items_limit
    return await analytics.build_analytics(store, top_n)


# =============================================================================
# BROWSER UI
# =============================================================================

PAGES = {
    "login": "login.html",
    "menu": "menu.html",
    "orders": "orders.html",
    "admin": "admin.html",
}


def _render(request: Request, page: str) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        PAGES[page],
        {"page": page, "app_name": settings.app_name},
    )


@app.get("/app", response_class=HTMLResponse, tags=["UI"])
async def login_page(request: Request) -> HTMLResponse:
    return _render(request, "login")


@app.get("/app/menu", response_class=HTMLResponse, tags=["UI"])
async def menu_page(request: Request) -> HTMLResponse:
    return _render(request, "menu")


@app.get("/app/orders", response_class=HTMLResponse, tags=["UI"])
async def orders_page(request: Request) -> HTMLResponse:
    return _render(request, "orders")


@app.get("/app/admin", response_class=HTMLResponse, tags=["UI"])
async def admin_page(request: Request) -> HTMLResponse:
    return _render(request, "admin")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error_body(message: str, detail: Optional[str] = None) -> dict[str, Any]:
    return ErrorResponse(error=message, detail=detail).model_dump(exclude_none=True)


@app.exception_handler(CafeError)
async def cafe_error_handler(request: Request, exc: CafeError) -> JSONResponse:
    """Render domain errors with their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing request fields are InvalidInput (400), not 422."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))

    message = "Invalid request: " + "; ".join(problems) if problems else "Invalid request"
    logger.debug(f"{request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content=_error_body(message))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "Internal Server Error",
            str(exc) if settings.debug else "An unexpected error occurred",
        ),
    )
