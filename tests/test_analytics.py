import pytest

from cafe.models import Order, OrderLine
from cafe.services.analytics import compute_analytics, rank_popular_items


def make_order(order_id, status, *lines):
    items = [
        OrderLine(menu_item_id=item_id, name=name, price=price, quantity=qty, subtotal=round(price * qty, 2))
        for item_id, name, price, qty in lines
    ]
    return Order(
        id=order_id,
        user_id="u1",
        items=items,
        total=round(sum(i.subtotal for i in items), 2),
        status=status,
    )


ESPRESSO = ("esp", "Espresso", 2.99)
LATTE = ("lat", "Latte", 4.99)
MUFFIN = ("muf", "Blueberry Muffin", 3.99)


@pytest.fixture
def orders():
    return [
        make_order("o1", "pending", (*ESPRESSO, 2), (*MUFFIN, 1)),
        make_order("o2", "completed", (*LATTE, 1)),
        make_order("o3", "cancelled", (*ESPRESSO, 1), (*LATTE, 3)),
        make_order("o4", "ready", (*MUFFIN, 1)),
    ]


class TestComputeAnalytics:
    def test_revenue_counts_every_status(self, orders):
        result = compute_analytics(orders, total_menu_items=3)

        assert result.total_orders == 4
        assert result.total_menu_items == 3
        assert result.total_revenue == pytest.approx(sum(o.total for o in orders))

    def test_status_counts_partition_orders(self, orders):
        by_status = compute_analytics(orders, 3).orders_by_status.model_dump()

        assert by_status == {"pending": 1, "preparing": 0, "ready": 1, "completed": 1, "cancelled": 1}
        assert sum(by_status.values()) == len(orders)

    def test_popular_items_ranked_by_units(self, orders):
        popular = compute_analytics(orders, 3).popular_items

        assert [(p.id, p.count) for p in popular] == [("lat", 4), ("esp", 3), ("muf", 2)]
        latte = popular[0]
        assert latte.name == "Latte"
        assert latte.revenue == pytest.approx(4.99 * 4)

    def test_top_n_limit(self, orders):
        assert [p.id for p in compute_analytics(orders, 3, top_n=1).popular_items] == ["lat"]

    def test_ties_broken_by_revenue(self):
        orders = [make_order("o1", "pending", (*ESPRESSO, 1), (*LATTE, 1))]
        assert [p.id for p in rank_popular_items(orders)] == ["lat", "esp"]

    def test_name_from_first_snapshot(self):
        orders = [
            make_order("o1", "completed", ("esp", "Espresso", 2.99, 1)),
            make_order("o2", "pending", ("esp", "Double Espresso", 3.49, 1)),
        ]

        [item] = rank_popular_items(orders)

        assert item.name == "Espresso"
        assert item.count == 2

    def test_empty(self):
        result = compute_analytics([], 0)

        assert result.total_orders == 0
        assert result.total_revenue == 0
        assert result.popular_items == []
        assert sum(result.orders_by_status.model_dump().values()) == 0


class TestAnalyticsEndpoint:
    def test_admin_report(self, client, admin, employee, espresso, croissant):
        for qty in (1, 2):
            client.post(
                "/orders",
                json={"items": [{"menuItemId": espresso["id"], "quantity": qty}]},
                headers=employee["headers"],
            )
        order = client.post(
            "/orders",
            json={"items": [{"menuItemId": croissant["id"], "quantity": 1}]},
            headers=employee["headers"],
        ).json()["order"]
        client.patch(f"/orders/{order['id']}/status", json={"status": "cancelled"}, headers=admin["headers"])

        response = client.get("/analytics", headers=admin["headers"])

        assert response.status_code == 200
        body = response.json()
        assert body["totalOrders"] == 3
        assert body["totalMenuItems"] == 2
        assert body["totalRevenue"] == pytest.approx(2.99 * 3 + 3.49)
        assert body["ordersByStatus"] == {
            "pending": 2, "preparing": 0, "ready": 0, "completed": 0, "cancelled": 1,
        }
        assert body["popularItems"][0] == {
            "id": espresso["id"], "name": "Espresso", "count": 3, "revenue": pytest.approx(8.97),
        }

    def test_limit_param(self, client, admin, employee, espresso, croissant):
        client.post(
            "/orders",
            json={"items": [{"menuItemId": espresso["id"], "quantity": 1},
                            {"menuItemId": croissant["id"], "quantity": 1}]},
            headers=employee["headers"],
        )

        body = client.get("/analytics", params={"limit": 1}, headers=admin["headers"]).json()

        assert len(body["popularItems"]) == 1

    def test_employee_forbidden(self, client, employee):
        assert client.get("/analytics", headers=employee["headers"]).status_code == 403

    def test_requires_token(self, client):
        assert client.get("/analytics").status_code == 401
