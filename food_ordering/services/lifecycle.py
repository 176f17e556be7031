"""
Order Lifecycle Manager

Moves orders through their statuses:

    pending    -> processing | completed | cancelled
    processing -> completed  | cancelled
    completed, cancelled, delivered: terminal

Every status change is a single conditional write on the order row, so
concurrent callers cannot both win the same transition. Cancelling puts
the reserved stock back into the catalog.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable

from food_ordering.errors import (
    InvalidTransition,
    NotCancellable,
    NotFound,
    PartialRestorationFailure,
)
from food_ordering.models import (
    CANCELLABLE_STATUSES,
    Order,
    OrderStatus,
    utcnow,
)
from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.orders.base import BaseOrderRepository

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    # A pending order may be delivered directly; it skips processing
    OrderStatus.PENDING: frozenset(
        {OrderStatus.PROCESSING, OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    ),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.DELIVERED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[OrderStatus(current)]


def sources_of(target: OrderStatus) -> frozenset[OrderStatus]:
    """Statuses from which ``target`` may be entered."""
    return frozenset(status for status in OrderStatus if can_transition(status, target))


@dataclass
class CancellationResult:
    """
    Outcome of a cancellation.

    Attributes:
        order: The cancelled order
        failures: Items whose stock could not be restored
    """
    order: Order
    failures: list[PartialRestorationFailure] = field(default_factory=list)

    @property
    def fully_restored(self) -> bool:
        return not self.failures


class OrderLifecycleManager:
    """Applies status transitions and their side effects."""

    def __init__(
        self,
        catalog: BaseCatalogStore,
        orders: BaseOrderRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.catalog = catalog
        self.orders = orders
        self._clock = clock

    async def cancel_order(self, order_id: str, user_id: str) -> CancellationResult:
        """
        Cancel an order owned by ``user_id`` and restock its items.

        The status change is committed before any stock is restored.
        Restoration is attempted for every line; lines that fail are
        reported in the result and do not undo the cancellation.

        Raises:
            NotCancellable: The order is missing, belongs to someone else,
                or is no longer pending/processing
        """
        order = await self.orders.update_status(
            order_id,
            {"status": OrderStatus.CANCELLED, "cancelled_at": self._clock()},
            user_id=user_id,
            allowed_from=CANCELLABLE_STATUSES,
        )
        if order is None:
            await self.orders.rollback()
            raise NotCancellable(order_id)
        await self.orders.commit()

        logger.info(f"Order {order_id} cancelled by user {user_id}")

        failures: list[PartialRestorationFailure] = []
        for line in order.line_items:
            try:
                await self.catalog.increment(line.food_id, line.quantity)
                await self.catalog.commit()
            except Exception as e:
                await self.catalog.rollback()
                failure = PartialRestorationFailure(order_id, line.food_id, line.quantity, str(e))
                logger.warning(failure.message)
                failures.append(failure)

        return CancellationResult(order=order, failures=failures)

    async def start_processing(self, order_id: str) -> Order:
        """Move a pending order to processing."""
        return await self._transition(
            order_id,
            OrderStatus.PROCESSING,
            {},
            allowed_from=sources_of(OrderStatus.PROCESSING),
        )

    async def mark_delivered(self, order_id: str) -> Order:
        """
        Complete an order and stamp its delivery time.

        Delivery is accepted from pending or processing.

        Raises:
            NotFound: The order does not exist
            InvalidTransition: The order is already in a terminal status
        """
        return await self._transition(
            order_id,
            OrderStatus.COMPLETED,
            {"delivered_at": self._clock()},
            allowed_from=sources_of(OrderStatus.COMPLETED),
        )

    async def _transition(
        self,
        order_id: str,
        target: OrderStatus,
        fields: dict[str, Any],
        allowed_from: Iterable[OrderStatus],
    ) -> Order:
        order = await self.orders.update_status(
            order_id,
            {"status": target, **fields},
            allowed_from=allowed_from,
        )
        if order is not None:
            await self.orders.commit()
            logger.info(f"Order {order_id} moved to {target.value}")
            return order

        await self.orders.rollback()
        current = await self.orders.find_by_id(order_id)
        if current is None:
            raise NotFound("Order", order_id)
        raise InvalidTransition(order_id, OrderStatus(current.status).value, target.value)
