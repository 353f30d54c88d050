"""
Analytics Verification Script

Recomputes the dashboard figures from the raw order list and compares
them with what GET /analytics reports.
Run from project root: python scripts/verify.py

Needs an admin account (the simulation creates one).
"""

import argparse
import sys
from collections import Counter
from datetime import datetime

import httpx

API_BASE_URL = "http://localhost:8001"
ADMIN_EMAIL = "sim.admin@cafe.com"
ADMIN_PASSWORD = "simulate-pass-123"
STATUSES = ["pending", "preparing", "ready", "completed", "cancelled"]


def verify_analytics(base_url: str, email: str, password: str) -> bool:
    """Check revenue, status partition and per-order totals."""

    print("=" * 60)
    print("🔍 ANALYTICS VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🎯 Server: {base_url}")
    print("=" * 60)

    with httpx.Client(base_url=base_url, timeout=30.0) as client:
        login = client.post("/auth/login", json={"email": email, "password": password})
        if login.status_code != 200:
            print(f"\n❌ Login failed: {login.text[:100]}")
            return False
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        orders = client.get("/orders", headers=headers).json()["orders"]
        report = client.get("/analytics", headers=headers).json()

    ok = True

    print(f"\n📊 STATISTICS:")
    print(f"   Orders: {len(orders)} (analytics says {report['totalOrders']})")
    if len(orders) != report["totalOrders"]:
        print("   ⚠️ Order count mismatch")
        ok = False

    # Each order's total must equal the sum of its line subtotals
    bad_totals = [
        o["id"] for o in orders
        if abs(sum(line["subtotal"] for line in o["items"]) - o["total"]) > 0.005
    ]
    if bad_totals:
        print(f"\n⚠️ {len(bad_totals)} orders whose total != sum of subtotals")
        ok = False
    else:
        print("✅ Every order total equals its line subtotals")

    revenue = round(sum(o["total"] for o in orders), 2)
    print(f"\n💰 REVENUE:")
    print(f"   Recomputed: ${revenue:.2f}")
    print(f"   Reported:   ${report['totalRevenue']:.2f}")
    if abs(revenue - report["totalRevenue"]) > 0.005:
        print("   ⚠️ Revenue mismatch")
        ok = False

    by_status = Counter(o["status"] for o in orders)
    print(f"\n📋 BY STATUS:")
    for status in STATUSES:
        reported = report["ordersByStatus"][status]
        marker = "✅" if reported == by_status.get(status, 0) else "⚠️"
        print(f"   {marker} {status:<10} {reported}")
        if reported != by_status.get(status, 0):
            ok = False
    if sum(report["ordersByStatus"].values()) != len(orders):
        print("   ⚠️ Status counts do not partition the orders")
        ok = False

    print(f"\n🏆 POPULAR ITEMS:")
    for item in report["popularItems"]:
        print(f"   {item['name']:<20} {item['count']:>4} sold  ${item['revenue']:.2f}")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Analytics Verification Script")
    parser.add_argument("--url", default=API_BASE_URL)
    parser.add_argument("--email", default=ADMIN_EMAIL)
    parser.add_argument("--password", default=ADMIN_PASSWORD)
    args = parser.parse_args()

    sys.exit(0 if verify_analytics(args.url, args.email, args.password) else 1)
