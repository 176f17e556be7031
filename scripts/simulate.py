"""
Stock Contention Simulation Script

Fires concurrent orders at a single catalog item to check that stock is
never oversold, then cancels part of them to check restocking.
Run from project root (with the API running): python scripts/simulate.py
"""

import asyncio
import sys
import os
import random
import time
import argparse
from datetime import datetime
from typing import Any

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
INITIAL_STOCK = 40

# Sample data for random orders
FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson", "Taylor"]
STREETS = ["Main St", "Broadway", "5th Avenue", "Park Ave", "Madison Ave", "Lexington Ave", "Amsterdam Ave"]
PAYMENT_METHODS = ["cash", "card", "upi"]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "user_id": f"user-{random.randint(1, 20)}",
        "name": f"{first} {last}",
        "contact": f"555-{random.randint(100,999)}-{random.randint(1000,9999)}",
        "address": f"{random.randint(1, 999)} {random.choice(STREETS)}",
        "location": "New York",
    }


def generate_order_payload(food_id: str) -> dict[str, Any]:
    """Generate payload for /api/orders."""
    customer = generate_random_customer()
    return {
        **customer,
        "payment_method": random.choice(PAYMENT_METHODS),
        "items": [{"food_id": food_id, "quantity": random.randint(1, 3)}],
    }


async def create_contended_item(client: httpx.AsyncClient, stock: int) -> dict[str, Any]:
    response = await client.post(
        f"{API_BASE_URL}/api/foods",
        json={
            "name": f"Simulation Burger {datetime.now().strftime('%H%M%S')}",
            "category": "Fast Food",
            "price": 9.5,
            "image": "/images/burger.png",
            "quantity": stock,
        },
    )
    response.raise_for_status()
    return response.json()["food_item"]


async def send_order(
    client: httpx.AsyncClient,
    food_id: str,
    order_num: int
) -> dict[str, Any]:
    """Send one order and record the outcome."""
    payload = generate_order_payload(food_id)
    requested = payload["items"][0]["quantity"]
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            order = response.json()["order"]
            return {
                "order_num": order_num,
                "success": True,
                "order_id": order["id"],
                "user_id": order["user_id"],
                "quantity": requested,
                "total": order["total_amount"],
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "status": response.status_code,
            "error": response.json().get("message", response.text)[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(num_orders: int = TOTAL_ORDERS, stock: int = INITIAL_STOCK) -> bool:
    """
    Run the contention simulation.

    Returns:
        bool: True if the final stock matches what was reserved and restored
    """
    print("=" * 70)
    print("🔥 STOCK CONTENTION SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"📦 Initial Stock: {stock}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        item = await create_contended_item(client, stock)
        food_id = item["id"]

        tasks = [send_order(client, food_id, i + 1) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]
        reserved = sum(r["quantity"] for r in successful)

        after_orders = (await client.get(f"{API_BASE_URL}/api/foods/{food_id}")).json()["quantity"]

        # Cancel every other successful order
        to_cancel = successful[::2]
        cancel_responses = await asyncio.gather(*[
            client.put(
                f"{API_BASE_URL}/api/orders/{r['order_id']}/cancel",
                json={"user_id": r["user_id"]},
            )
            for r in to_cancel
        ])
        restored = sum(
            r["quantity"] for r, resp in zip(to_cancel, cancel_responses) if resp.status_code == 200
        )

        after_cancel = (await client.get(f"{API_BASE_URL}/api/foods/{food_id}")).json()["quantity"]

    total_time = round(time.time() - start_time, 2)

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Rejected Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")
    print(f"\n📦 Units reserved: {reserved}")
    print(f"📦 Stock after orders: {after_orders} (expected {stock - reserved})")
    print(f"♻️  Units restored by {len(to_cancel)} cancellation(s): {restored}")
    print(f"📦 Stock after cancellations: {after_cancel} (expected {stock - reserved + restored})")

    if failed:
        print(f"\n⚠️  Rejected Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    consistent = (
        after_orders == stock - reserved
        and after_orders >= 0
        and after_cancel == stock - reserved + restored
    )

    print("\n" + "=" * 70)
    print("✅ STOCK CONSISTENT" if consistent else "❌ STOCK MISMATCH")
    print("=" * 70)
    return consistent


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Stock Contention Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--stock", type=int, default=INITIAL_STOCK, help="Initial stock of the item")
    args = parser.parse_args()

    ok = asyncio.run(run_simulation(args.orders, args.stock))
    sys.exit(0 if ok else 1)
