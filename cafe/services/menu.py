"""
Menu Operations

Listing and CRUD for menu items stored under ``menu:<id>``. Role checks
happen in the request handlers; everything here assumes the caller is
allowed to do what it asks.
"""

import logging
import uuid
from typing import Optional

from cafe.core.errors import NotFoundError
from cafe.models import MENU_PREFIX, MenuItem, menu_key, utcnow_iso
from cafe.schemas import MenuItemCreate, MenuItemUpdate
from cafe.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

SAMPLE_MENU = [
    {"name": "Espresso", "category": "drinks",
     "description": "Rich and bold shot of espresso", "price": 2.99},
    {"name": "Cappuccino", "category": "drinks",
     "description": "Espresso with steamed milk and foam", "price": 4.49},
    {"name": "Latte", "category": "drinks",
     "description": "Smooth espresso with steamed milk", "price": 4.99},
    {"name": "Croissant", "category": "food",
     "description": "Buttery and flaky French pastry", "price": 3.49},
    {"name": "Blueberry Muffin", "category": "food",
     "description": "Fresh baked muffin with blueberries", "price": 3.99},
    {"name": "Avocado Toast", "category": "food",
     "description": "Toasted sourdough with mashed avocado", "price": 7.99},
]


async def load_menu(store: BaseKeyValueStore) -> list[MenuItem]:
    return [MenuItem.model_validate(r) for r in await store.get_by_prefix(MENU_PREFIX)]


async def list_menu(
    store: BaseKeyValueStore,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> list[MenuItem]:
    """
    Return menu items, optionally filtered.

    Args:
        category: Exact category match; ``"all"`` or empty means no filter
        search: Case-insensitive substring of name or description
    """
    items = await load_menu(store)

    if category and category != "all":
        items = [i for i in items if i.category == category]

    if search:
        needle = search.lower()
        items = [
            i for i in items
            if needle in i.name.lower() or needle in i.description.lower()
        ]

    return sorted(items, key=lambda i: (i.category, i.name.lower()))


async def get_menu_item(store: BaseKeyValueStore, item_id: str) -> MenuItem:
    record = await store.get(menu_key(item_id))
    if record is None:
        raise NotFoundError("Menu item not found")
    return MenuItem.model_validate(record)


async def create_menu_item(store: BaseKeyValueStore, data: MenuItemCreate) -> MenuItem:
    now = utcnow_iso()
    item = MenuItem(id=str(uuid.uuid4()), created_at=now, updated_at=now, **data.model_dump())
    await store.set(menu_key(item.id), item.to_record())
    logger.info(f"Menu item {item.id} created: {item.name} (${item.price:.2f})")
    return item


async def update_menu_item(
    store: BaseKeyValueStore,
    item_id: str,
    changes: MenuItemUpdate,
) -> MenuItem:
    """
    Apply a partial update.

    Only fields present in the request are merged. ``id`` and
    ``created_at`` never change; ``updated_at`` is refreshed.
    """
    existing = await get_menu_item(store, item_id)

    patch = changes.model_dump(exclude_unset=True, exclude_none=True)
    updated = MenuItem.model_validate({
        **existing.model_dump(),
        **patch,
        "id": existing.id,
        "created_at": existing.created_at,
        "updated_at": utcnow_iso(),
    })

    await store.set(menu_key(item_id), updated.to_record())
    logger.info(f"Menu item {item_id} updated: {sorted(patch)}")
    return updated


async def delete_menu_item(store: BaseKeyValueStore, item_id: str) -> None:
    """Remove a menu item. Orders keep their own snapshot of it."""
    await get_menu_item(store, item_id)
    await store.delete(menu_key(item_id))
    logger.info(f"Menu item {item_id} deleted")


async def seed_sample_menu(store: BaseKeyValueStore) -> int:
    """
    Create the sample menu when no menu items exist yet.

    Returns:
        Number of items created (0 when a menu already exists)
    """
    if await store.get_by_prefix(MENU_PREFIX):
        logger.info("Sample menu skipped: menu already has items")
        return 0

    now = utcnow_iso()
    for entry in SAMPLE_MENU:
        item = MenuItem(id=str(uuid.uuid4()), created_at=now, updated_at=now, **entry)
        await store.set(menu_key(item.id), item.to_record())

    logger.info(f"Sample menu created ({len(SAMPLE_MENU)} items)")
    return len(SAMPLE_MENU)
