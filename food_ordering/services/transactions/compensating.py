"""
Compensating Transactional Executor

Fallback for databases without multi-statement transactions. Every
reservation is committed as soon as it succeeds and recorded in a ledger;
if a later step fails, the ledger is replayed as increments.

The ledger is consumed entry by entry, so running the compensation again
after a partial run only retries what was not restored yet.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from food_ordering.models import Order
from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.orders.base import BaseOrderRepository
from food_ordering.services.transactions.base import (
    BaseTransactionExecutor,
    TransactionScope,
)

logger = logging.getLogger(__name__)


class CompensatingScope(TransactionScope):
    """Scope that commits each step and remembers how to undo it."""

    def __init__(self, catalog: BaseCatalogStore, orders: BaseOrderRepository):
        super().__init__(catalog, orders)
        self.ledger: list[tuple[str, int]] = []

    async def reserve(self, food_id: str, quantity: int) -> bool:
        reserved = await self.catalog.decrement_if_available(food_id, quantity)
        if reserved:
            await self.catalog.commit()
            self.ledger.append((food_id, quantity))
        return reserved

    async def persist(self, order: Order) -> Order:
        order = await self.orders.insert(order)
        await self.orders.commit()
        return order

    async def compensate(self) -> list[tuple[str, int]]:
        """
        Give back every reservation still in the ledger, newest first.

        Returns:
            Reservations that could not be restored; they stay in the
            ledger so a later call retries only those.
        """
        unrestored: list[tuple[str, int]] = []
        while self.ledger:
            food_id, quantity = self.ledger.pop()
            try:
                await self.catalog.increment(food_id, quantity)
                await self.catalog.commit()
            except Exception as e:
                await self.catalog.rollback()
                logger.error(f"Failed to restore {quantity} unit(s) of {food_id}: {e}")
                unrestored.append((food_id, quantity))
            else:
                logger.info(f"Restored {quantity} unit(s) of {food_id}")
        self.ledger = list(reversed(unrestored))
        return unrestored


class CompensatingTransactionExecutor(BaseTransactionExecutor):
    """Executor that undoes committed reservations by compensation."""

    @property
    def provider_name(self) -> str:
        return "compensating"

    @asynccontextmanager
    async def scope(
        self,
        catalog: BaseCatalogStore,
        orders: BaseOrderRepository,
    ) -> AsyncIterator[CompensatingScope]:
        scope = CompensatingScope(catalog, orders)
        try:
            yield scope
        except BaseException:
            # Cancellation lands here too; committed reservations must come back
            try:
                await orders.rollback()
            except Exception as e:
                logger.error(f"Order rollback failed before compensation: {e}")
            unrestored = await scope.compensate()
            if unrestored:
                logger.critical(
                    f"Placement rollback left stock unrestored: {unrestored}"
                )
            raise
