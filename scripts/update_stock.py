"""
Stock Backfill Script

Restocks catalog items that ran low (sold out by default) to the
configured default quantity, and prints the catalog before and after.
Run from project root: python scripts/update_stock.py [--below N] [--quantity N]
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select, update

from food_ordering.core.config import get_settings
from food_ordering.database import build_engine, build_session_maker, init_db
from food_ordering.models import FoodItem


async def update_food_items_stock(below: int, quantity: int) -> int:
    """Set ``quantity`` on every item whose stock is below ``below``."""
    settings = get_settings()
    engine = build_engine(settings.database_url)
    session_maker = build_session_maker(engine)

    try:
        await init_db(engine)
        print("Connected to database")

        async with session_maker() as session:
            count = await session.scalar(select(func.count(FoodItem.id)))
            print(f"Found {count} food items in the database")

            if not count:
                print("No food items found in the database")
                return 0

            for item in (await session.scalars(select(FoodItem).order_by(FoodItem.name))).all():
                print(f"   {item.name:<30} {item.quantity:>5}")

            result = await session.execute(
                update(FoodItem)
                .where(FoodItem.quantity < below)
                .values(quantity=quantity)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            print(f"Updated {result.rowcount} food items to a stock of {quantity}")

            for item in (
                await session.scalars(
                    select(FoodItem).order_by(FoodItem.name).execution_options(populate_existing=True)
                )
            ).all():
                print(f"   {item.name:<30} {item.quantity:>5}")

            return result.rowcount
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Restock low catalog items")
    parser.add_argument("--below", type=int, default=1, help="Restock items with fewer units than this")
    parser.add_argument("--quantity", type=int, default=None, help="New stock (default: DEFAULT_STOCK_QUANTITY)")
    args = parser.parse_args()

    target = args.quantity if args.quantity is not None else get_settings().default_stock_quantity
    try:
        asyncio.run(update_food_items_stock(args.below, target))
    except Exception as e:
        print(f"Error updating food items: {e}")
        sys.exit(1)
