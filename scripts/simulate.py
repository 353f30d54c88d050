"""
Lunch Rush Simulation Script

Simulates a burst of employees ordering at once, then an admin moving
orders through their lifecycle, against a running server.
Run from project root: python scripts/simulate.py

The server must be in development mode (mock identity provider) or the
accounts below must already exist in the identity provider.
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any, Optional

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
PASSWORD = "simulate-pass-123"

ADMIN = {"email": "sim.admin@cafe.com", "name": "Sim Admin", "role": "admin"}
EMPLOYEES = [
    {"email": f"sim.employee{n}@cafe.com", "name": f"Sim Employee {n}", "role": "employee"}
    for n in range(1, 6)
]
NOTES = ["", "", "Oat milk please", "Extra hot", "No sugar", "To go"]
STATUS_FLOW = ["preparing", "ready", "completed"]


async def ensure_account(client: httpx.AsyncClient, account: dict[str, str]) -> Optional[str]:
    """Sign up (ignoring 409) and log in; returns the access token."""
    response = await client.post(
        "/auth/signup", json={**account, "password": PASSWORD}
    )
    if response.status_code not in (200, 409):
        print(f"   ❌ Sign up failed for {account['email']}: {response.text[:100]}")
        return None

    response = await client.post(
        "/auth/login", json={"email": account["email"], "password": PASSWORD}
    )
    if response.status_code != 200:
        print(f"   ❌ Login failed for {account['email']}: {response.text[:100]}")
        return None
    return response.json()["access_token"]


def generate_random_items(menu: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Pick 1-3 distinct available menu items with random quantities."""
    available = [m for m in menu if m["available"]]
    picks = random.sample(available, k=min(len(available), random.randint(1, 3)))
    return [{"menuItemId": m["id"], "quantity": random.randint(1, 3)} for m in picks]


async def send_order(
    client: httpx.AsyncClient,
    token: str,
    menu: list[dict[str, Any]],
    order_num: int,
) -> dict[str, Any]:
    """Place one order as the given employee."""
    payload = {"items": generate_random_items(menu), "notes": random.choice(NOTES)}
    start_time = time.time()

    try:
        response = await client.post(
            "/orders",
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            order = response.json()["order"]
            return {
                "order_num": order_num,
                "success": True,
                "order_id": order["id"],
                "total": order["total"],
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def advance_orders(client: httpx.AsyncClient, admin_token: str, order_ids: list[str]) -> int:
    """Move a random share of orders along pending → preparing → ready → completed."""
    headers = {"Authorization": f"Bearer {admin_token}"}
    updates = 0
    for order_id in order_ids:
        steps = random.randint(0, len(STATUS_FLOW))
        for status in STATUS_FLOW[:steps]:
            response = await client.patch(
                f"/orders/{order_id}/status", json={"status": status}, headers=headers
            )
            if response.status_code == 200:
                updates += 1
    return updates


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the lunch rush.

    Args:
        num_orders: Number of orders to place concurrently
    """
    print("=" * 70)
    print("☕ LUNCH RUSH SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=API_BASE_URL) as client:
        health = await client.get("/health")
        print(f"\n1️⃣ Health: {health.json().get('status')}")

        seeded = await client.post("/init-sample-data")
        print(f"2️⃣ Menu: {seeded.json().get('message')}")
        menu = (await client.get("/menu")).json()["menu"]

        print("3️⃣ Accounts...")
        admin_token = await ensure_account(client, ADMIN)
        tokens = [t for t in [await ensure_account(client, e) for e in EMPLOYEES] if t]
        if not admin_token or not tokens:
            print("\n❌ Could not obtain tokens; aborting.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        print("\n🚀 Firing orders...\n")
        start_time = time.time()
        tasks = [
            send_order(client, random.choice(tokens), menu, i + 1)
            for i in range(num_orders)
        ]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        updates = await advance_orders(client, admin_token, [r["order_id"] for r in successful])

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")
    print(f"🔄 Status updates applied: {updates}")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)
        print(f"\n📈 Average Response: {avg_time}s")
        print(f"   💰 Revenue placed: ${total_revenue:.2f}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("Next: python scripts/verify.py to check the analytics figures")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Lunch Rush Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    summary = asyncio.run(run_simulation(num_orders=args.orders))
    sys.exit(0 if summary["failed"] == 0 else 1)
