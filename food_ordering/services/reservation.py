"""
Inventory Reservation Engine

Turns a placement request into a pending order:

    1. validate every requested line against the catalog (no writes yet)
    2. reserve stock with guarded decrements inside a transactional scope
    3. snapshot name/image/price into the line items and compute the total
    4. persist the order

Any failure after the first reservation leaves the catalog as it was:
the executor either rolls the transaction back or compensates.
"""

import logging
import random
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

from food_ordering.errors import (
    EmptyOrder,
    InsufficientStock,
    InvalidQuantity,
    InvalidReference,
    NotFound,
)
from food_ordering.models import Order, OrderLineItem, OrderStatus, new_identity, utcnow
from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.orders.base import BaseOrderRepository
from food_ordering.services.transactions.base import BaseTransactionExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryInfo:
    """Where and how the order is delivered and paid."""
    name: str
    address: str
    contact: str
    location: str
    payment_method: str


@dataclass(frozen=True)
class RequestedItem:
    """
    One requested line as received from the caller.

    ``quantity`` is kept raw; the engine decides whether it is a usable
    integer.
    """
    food_id: str
    quantity: Any


def parse_food_id(value: Any) -> str:
    """
    Return the canonical text form of an item identity.

    Raises:
        InvalidReference: If the value is not a UUID
    """
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError):
        raise InvalidReference(value) from None


def parse_quantity(value: Any) -> Optional[int]:
    """Interpret a requested quantity as an integer, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class InventoryReservationEngine:
    """
    Places orders while keeping catalog stock non-negative.

    Attributes:
        catalog: Catalog store used for validation and reservations
        orders: Repository new orders are written to
        executor: Strategy that keeps reservations and the insert together
        eta_minutes: Inclusive (min, max) delivery estimate in whole minutes
    """

    def __init__(
        self,
        catalog: BaseCatalogStore,
        orders: BaseOrderRepository,
        executor: BaseTransactionExecutor,
        eta_minutes: tuple[int, int] = (25, 30),
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.orders = orders
        self.executor = executor
        self.eta_minutes = eta_minutes
        self._clock = clock
        self._rng = rng or random.Random()

    def estimate_delivery(self, now: datetime) -> datetime:
        """Placement time plus a whole number of minutes drawn from the ETA window."""
        low, high = self.eta_minutes
        return now + timedelta(minutes=self._rng.randint(low, high))

    async def place_order(
        self,
        user_id: str,
        delivery: DeliveryInfo,
        requested: Sequence[RequestedItem],
    ) -> Order:
        """
        Validate, reserve and persist a new order.

        Args:
            user_id: Owner of the order
            delivery: Delivery and payment details
            requested: Requested lines, in order

        Returns:
            Order: The persisted order, status ``pending``

        Raises:
            EmptyOrder: No lines were requested
            InvalidReference: A line names a malformed identity
            NotFound: A line names an unknown item
            InvalidQuantity: A quantity is not an integer >= 1
            InsufficientStock: Stock cannot cover a line (before or during reservation)
            PersistenceFailure: The order could not be written
        """
        if not requested:
            raise EmptyOrder()

        lines = await self._validate(requested)

        async with self.executor.scope(self.catalog, self.orders) as scope:
            for line in lines:
                if not await scope.reserve(line.food_id, line.quantity):
                    current = await self.catalog.get_by_id(line.food_id)
                    available = current.quantity if current is not None else 0
                    logger.warning(
                        f"Reservation lost for {line.food_id}: "
                        f"requested {line.quantity}, available {available}"
                    )
                    raise InsufficientStock(line.food_id, available, line.quantity, name=line.name)

            now = self._clock()
            order = Order(
                id=new_identity(),
                user_id=user_id,
                name=delivery.name,
                address=delivery.address,
                contact=delivery.contact,
                location=delivery.location,
                payment_method=delivery.payment_method,
                items=lines,
                status=OrderStatus.PENDING,
                estimated_delivery_time=self.estimate_delivery(now),
                created_at=now,
                updated_at=now,
            )
            await scope.persist(order)

        logger.info(
            f"Order {order.id} placed for user {user_id}: "
            f"{len(lines)} line(s), total {order.total_amount:.2f} "
            f"via {self.executor.provider_name} executor"
        )
        return order

    async def _validate(self, requested: Sequence[RequestedItem]) -> list[OrderLineItem]:
        lines: list[OrderLineItem] = []
        claimed: dict[str, int] = defaultdict(int)

        for entry in requested:
            food_id = parse_food_id(entry.food_id)

            item = await self.catalog.get_by_id(food_id)
            if item is None:
                raise NotFound("Food item", food_id)

            quantity = parse_quantity(entry.quantity)
            if quantity is None or quantity < 1:
                raise InvalidQuantity(food_id, entry.quantity, name=item.name)

            # Duplicate lines for one item draw on the same stock
            claimed[food_id] += quantity
            if claimed[food_id] > item.quantity:
                raise InsufficientStock(food_id, item.quantity, claimed[food_id], name=item.name)

            lines.append(
                OrderLineItem(
                    food_id=food_id,
                    name=item.name,
                    image=item.image,
                    price=item.price,
                    quantity=quantity,
                )
            )

        return lines
