"""
Sales Analytics

A stateless reduction over the full order set: revenue, counts per
status and a popularity ranking of menu items. Recomputed on every
request; at single-cafe volumes a linear scan is all it needs.
"""

import logging
from collections import Counter, defaultdict
from typing import Iterable

from cafe.models import MENU_PREFIX, Order, OrderStatus
from cafe.schemas import AnalyticsResponse, OrdersByStatus, PopularItem
from cafe.services.orders import load_orders
from cafe.services.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5


def rank_popular_items(orders: Iterable[Order], top_n: int = DEFAULT_TOP_N) -> list[PopularItem]:
    """
    Tally quantity and revenue per menu item across all orders.

    Ranked by units sold, then revenue, then name. The name is the one
    recorded in the first order snapshot seen; later renames of the menu
    item do not change it.
    """
    counts: Counter[str] = Counter()
    revenue: defaultdict[str, float] = defaultdict(float)
    names: dict[str, str] = {}

    for order in orders:
        for line in order.items:
            counts[line.menu_item_id] += line.quantity
            revenue[line.menu_item_id] += line.subtotal
            names.setdefault(line.menu_item_id, line.name)

    ranked = sorted(
        counts,
        key=lambda item_id: (-counts[item_id], -revenue[item_id], names[item_id]),
    )
    return [
        PopularItem(
            id=item_id,
            name=names[item_id],
            count=counts[item_id],
            revenue=round(revenue[item_id], 2),
        )
        for item_id in ranked[:top_n]
    ]


def compute_analytics(
    orders: list[Order],
    total_menu_items: int,
    top_n: int = DEFAULT_TOP_N,
) -> AnalyticsResponse:
    """
    Reduce an order set to dashboard figures.

    ``totalRevenue`` includes orders in every status, cancelled ones too.
    """
    by_status = Counter(OrderStatus(o.status).value for o in orders)

    return AnalyticsResponse(
        total_orders=len(orders),
        total_revenue=round(sum(o.total for o in orders), 2),
        total_menu_items=total_menu_items,
        orders_by_status=OrdersByStatus(**by_status),
        popular_items=rank_popular_items(orders, top_n),
    )


async def build_analytics(store: BaseKeyValueStore, top_n: int = DEFAULT_TOP_N) -> AnalyticsResponse:
    orders = await load_orders(store)
    menu_count = len(await store.get_by_prefix(MENU_PREFIX))

    logger.debug(f"Analytics over {len(orders)} orders, {menu_count} menu items")
    return compute_analytics(orders, menu_count, top_n)
