"""
Transactional Executor Abstract Base Class

Order placement reserves stock on several catalog rows and then writes an
order. A transactional executor makes that sequence all-or-nothing. Two
strategies share this interface:

    - AtomicTransactionExecutor: one database transaction, rolled back on error
    - CompensatingTransactionExecutor: each step committed on its own, undone
      by compensating writes when a later step fails

Design Pattern: Strategy Pattern
    - Selected by configuration (TRANSACTION_MODE / ENV_MODE)
    - Callers observe the same guarantees with either strategy
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager

from food_ordering.models import Order
from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.orders.base import BaseOrderRepository


class TransactionScope:
    """
    Write operations available while an executor scope is open.

    Attributes:
        catalog: Store whose stock is reserved
        orders: Repository the order is written to
    """

    def __init__(self, catalog: BaseCatalogStore, orders: BaseOrderRepository):
        self.catalog = catalog
        self.orders = orders

    async def reserve(self, food_id: str, quantity: int) -> bool:
        """Take stock out of the catalog; False if it is no longer available."""
        return await self.catalog.decrement_if_available(food_id, quantity)

    async def persist(self, order: Order) -> Order:
        return await self.orders.insert(order)


class BaseTransactionExecutor(ABC):
    """
    Abstract base class for transactional executors.

    Example:
        >>> executor = get_transaction_executor(session)
        >>> async with executor.scope(catalog, orders) as scope:
        ...     if not await scope.reserve(food_id, 2):
        ...         raise InsufficientStock(food_id, 0, 2)
        ...     await scope.persist(order)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the strategy.

        Returns:
            str: "atomic" or "compensating"
        """
        pass

    @abstractmethod
    def scope(
        self,
        catalog: BaseCatalogStore,
        orders: BaseOrderRepository,
    ) -> AsyncContextManager[TransactionScope]:
        """
        Open a scope whose writes are kept together.

        Leaving the scope normally makes every write durable. Leaving it
        with an exception undoes every write made inside it and re-raises.
        """
        pass
