"""
Order Repository Abstract Base Class

Persistence contract for orders. Status changes go through
``update_status`` as a conditional write, so two concurrent callers
racing on the same order cannot both succeed.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Optional

from food_ordering.models import Order, OrderStatus


class BaseOrderRepository(ABC):
    """Abstract base class for order repositories."""

    @abstractmethod
    async def insert(self, order: Order) -> Order:
        """
        Persist a new order.

        Raises:
            PersistenceFailure: If the store refuses the write
        """
        pass

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_by_user(self, user_id: str) -> list[Order]:
        """Orders of one user, newest first."""
        pass

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        fields: dict[str, Any],
        *,
        user_id: Optional[str] = None,
        allowed_from: Optional[Iterable[OrderStatus]] = None,
    ) -> Optional[Order]:
        """
        Apply ``fields`` to one order in a single conditional write.

        Args:
            order_id: Order to update
            fields: Column values to set (status, timestamps)
            user_id: When given, the order must belong to this user
            allowed_from: When given, the current status must be one of these

        Returns:
            The updated order, or None when no order matched the conditions
        """
        pass

    @abstractmethod
    async def delete_many(self, status: OrderStatus, delivered_before: datetime) -> int:
        """
        Remove orders in ``status`` delivered at or before ``delivered_before``.

        Returns:
            int: Number of removed orders
        """
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
