"""
Order Operations

Placing orders, listing and reading them with per-role visibility, and
admin status changes. Orders are stored under ``order:<id>`` and are never
deleted.

Each order carries a snapshot of the menu items it was placed with (name,
price, quantity, subtotal), so later menu edits never change history.
"""

import logging
import uuid
from typing import Iterable, Optional

from cafe.core.errors import ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
from cafe.models import (
    ALLOWED_TRANSITIONS,
    ORDER_PREFIX,
    Caller,
    MenuItem,
    Order,
    OrderLine,
    OrderStatus,
    menu_key,
    order_key,
    utcnow_iso,
)
from cafe.schemas import OrderLineRequest
from cafe.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

VALID_STATUSES = [s.value for s in OrderStatus]


def calculate_order_totals(lines: Iterable[OrderLine]) -> float:
    """Sum line subtotals, rounded to cents."""
    return round(sum(line.subtotal for line in lines), 2)


def parse_status(status: Optional[str]) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        raise InvalidInputError(f"Invalid status. Options: {VALID_STATUSES}")


async def place_order(
    store: BaseKeyValueStore,
    caller: Caller,
    items: list[OrderLineRequest],
    notes: Optional[str] = "",
) -> Order:
    """
    Validate the requested lines against the menu and persist a pending order.

    Nothing is written unless every line resolves to an available item.

    Raises:
        InvalidInputError: empty order or non-positive quantity
        NotFoundError: a referenced menu item does not exist
        InvalidStateError: a referenced menu item is unavailable
    """
    if not items:
        raise InvalidInputError("Order must contain at least one item")

    lines: list[OrderLine] = []
    for requested in items:
        if requested.quantity < 1:
            raise InvalidInputError(f"Quantity for {requested.menu_item_id} must be at least 1")

        record = await store.get(menu_key(requested.menu_item_id))
        if record is None:
            raise NotFoundError(f"Menu item {requested.menu_item_id} not found")

        menu_item = MenuItem.model_validate(record)
        if not menu_item.available:
            raise InvalidStateError(f"{menu_item.name} is currently unavailable")

        lines.append(OrderLine(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            price=menu_item.price,
            quantity=requested.quantity,
            subtotal=round(menu_item.price * requested.quantity, 2),
        ))

    now = utcnow_iso()
    order = Order(
        id=str(uuid.uuid4()),
        created_at=now,
        updated_at=now,
        user_id=caller.user_id,
        user_email=caller.email,
        items=lines,
        total=calculate_order_totals(lines),
        notes=notes or "",
        status=OrderStatus.PENDING,
    )
    await store.set(order_key(order.id), order.to_record())

    logger.info(f"Order {order.id} placed by {caller.user_id}: {len(lines)} lines, ${order.total:.2f}")
    return order


async def load_orders(store: BaseKeyValueStore) -> list[Order]:
    return [Order.model_validate(r) for r in await store.get_by_prefix(ORDER_PREFIX)]


async def list_orders(
    store: BaseKeyValueStore,
    caller: Caller,
    status: Optional[str] = None,
) -> list[Order]:
    """
    Orders visible to the caller, newest first.

    Admins see every order; everyone else sees only their own.
    """
    orders = await load_orders(store)

    if not caller.is_admin:
        orders = [o for o in orders if o.user_id == caller.user_id]

    if status:
        wanted = parse_status(status)
        orders = [o for o in orders if o.status == wanted]

    return sorted(orders, key=lambda o: o.created_at, reverse=True)


async def get_order(store: BaseKeyValueStore, caller: Caller, order_id: str) -> Order:
    record = await store.get(order_key(order_id))
    if record is None:
        raise NotFoundError("Order not found")

    order = Order.model_validate(record)
    if not caller.is_admin and order.user_id != caller.user_id:
        raise ForbiddenError("Forbidden - Access denied")
    return order


async def update_order_status(
    store: BaseKeyValueStore,
    caller: Caller,
    order_id: str,
    status: Optional[str],
    strict: bool = False,
) -> Order:
    """
    Overwrite an order's status (admin only).

    Any status may move to any other unless ``strict`` is set, in which case
    ALLOWED_TRANSITIONS applies. Concurrent updates race; last write wins.

    Raises:
        ForbiddenError: caller is not an admin
        InvalidInputError: status is not one of VALID_STATUSES
        NotFoundError: no such order
        InvalidStateError: strict mode and the move is not allowed
    """
    if not caller.is_admin:
        raise ForbiddenError()

    target = parse_status(status)

    record = await store.get(order_key(order_id))
    if record is None:
        raise NotFoundError("Order not found")
    order = Order.model_validate(record)

    current = OrderStatus(order.status)
    if strict and target != current and target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateError(
            f"Cannot move order from {current.value} to {target.value}"
        )

    order = order.model_copy(update={"status": target.value, "updated_at": utcnow_iso()})
    await store.set(order_key(order_id), order.to_record())

    logger.info(f"Order {order_id} status: {current.value} → {target.value}")
    return order
