"""In-memory stores used to drive the ordering services without a database."""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Optional

from food_ordering.errors import NotFound, PersistenceFailure
from food_ordering.models import (
    FoodCategory,
    FoodItem,
    Order,
    OrderLineItem,
    OrderStatus,
    new_identity,
    utcnow,
)
from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.orders.base import BaseOrderRepository


def make_item(name="Cheeseburger", price=10.0, quantity=5, **fields) -> FoodItem:
    return FoodItem(
        id=fields.pop("id", new_identity()),
        name=name,
        category=fields.pop("category", FoodCategory.FAST_FOOD),
        price=price,
        image=fields.pop("image", f"/images/{name.lower()}.png"),
        quantity=quantity,
        **fields,
    )


def make_order(
    lines: list[OrderLineItem],
    user_id: str = "user-1",
    status: OrderStatus = OrderStatus.PENDING,
    created_at: Optional[datetime] = None,
    **fields: Any,
) -> Order:
    created_at = created_at or utcnow()
    return Order(
        id=fields.pop("id", new_identity()),
        user_id=user_id,
        name="Jane Doe",
        address="1 Main St",
        contact="555-0100",
        location="Downtown",
        payment_method="cash",
        items=lines,
        status=status,
        estimated_delivery_time=created_at + timedelta(minutes=25),
        created_at=created_at,
        updated_at=created_at,
        **fields,
    )


def line_for(item: FoodItem, quantity: int) -> OrderLineItem:
    return OrderLineItem(
        food_id=item.id,
        name=item.name,
        image=item.image,
        price=item.price,
        quantity=quantity,
    )


class InMemoryCatalogStore(BaseCatalogStore):
    """
    Catalog held in a dict.

    ``decrement_if_available`` yields to the event loop before its
    check-and-set so concurrent placements interleave. Identities listed
    in ``broken`` fail on ``increment``.
    """

    def __init__(self, *items: FoodItem):
        self.items: dict[str, FoodItem] = {item.id: item for item in items}
        self.broken: set[str] = set()
        self.commits = 0
        self.rollbacks = 0

    def quantity(self, food_id: str) -> int:
        return self.items[food_id].quantity

    async def get_by_id(self, food_id):
        return self.items.get(food_id)

    async def decrement_if_available(self, food_id, quantity):
        await asyncio.sleep(0)
        item = self.items.get(food_id)
        if item is None or item.quantity < quantity:
            return False
        item.quantity -= quantity
        return True

    async def increment(self, food_id, quantity):
        if food_id in self.broken:
            raise PersistenceFailure("catalog unavailable")
        item = self.items.get(food_id)
        if item is None:
            raise NotFound("Food item", food_id)
        item.quantity += quantity

    async def list_items(self):
        return sorted(self.items.values(), key=lambda item: item.name)

    async def create(self, **fields):
        item = make_item(**fields)
        self.items[item.id] = item
        return item

    async def update(self, food_id, **fields):
        item = self.items.get(food_id)
        if item is None:
            return None
        for key, value in fields.items():
            setattr(item, key, value)
        return item

    async def delete(self, food_id):
        return self.items.pop(food_id, None) is not None

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class InMemoryOrderRepository(BaseOrderRepository):
    """Orders held in a dict, keyed by identity."""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self.commits = 0
        self.rollbacks = 0

    async def insert(self, order):
        self.orders[order.id] = order
        return order

    async def find_by_id(self, order_id):
        return self.orders.get(order_id)

    async def find_by_user(self, user_id):
        found = [order for order in self.orders.values() if order.user_id == user_id]
        return sorted(found, key=lambda order: order.created_at, reverse=True)

    async def update_status(self, order_id, fields, *, user_id=None, allowed_from=None):
        await asyncio.sleep(0)
        order = self.orders.get(order_id)
        if order is None:
            return None
        if user_id is not None and order.user_id != user_id:
            return None
        if allowed_from is not None and order.status not in set(allowed_from):
            return None
        for key, value in fields.items():
            setattr(order, key, value)
        order.updated_at = utcnow()
        return order

    async def delete_many(self, status, delivered_before):
        doomed = [
            order.id
            for order in self.orders.values()
            if order.status == status
            and order.delivered_at is not None
            and order.delivered_at <= delivered_before
        ]
        for order_id in doomed:
            del self.orders[order_id]
        return len(doomed)

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class FailingOrderRepository(InMemoryOrderRepository):
    """Repository that refuses every insert."""

    async def insert(self, order):
        raise PersistenceFailure("Failed to create order. Please try again.")


class SlowOrderRepository(InMemoryOrderRepository):
    """Repository whose insert hangs until the caller gives up."""

    def __init__(self):
        super().__init__()
        self.insert_started = asyncio.Event()

    async def insert(self, order):
        self.insert_started.set()
        await asyncio.sleep(10)
        return await super().insert(order)


class BrokenRollbackRepository(FailingOrderRepository):
    """Repository that refuses inserts and cannot roll back either."""

    async def rollback(self):
        raise PersistenceFailure("connection lost")
