"""
Atomic Transactional Executor

Runs a whole placement inside the session's transaction. Used where the
database supports multi-statement transactions (production by default).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from food_ordering.errors import PersistenceFailure
from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.orders.base import BaseOrderRepository
from food_ordering.services.transactions.base import (
    BaseTransactionExecutor,
    TransactionScope,
)

logger = logging.getLogger(__name__)


class AtomicTransactionExecutor(BaseTransactionExecutor):
    """
    All-or-nothing executor on a single ``AsyncSession``.

    The catalog store and the order repository handed to ``scope`` must
    share this session; the executor commits once on success and rolls
    back on any error.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def provider_name(self) -> str:
        return "atomic"

    @asynccontextmanager
    async def scope(
        self,
        catalog: BaseCatalogStore,
        orders: BaseOrderRepository,
    ) -> AsyncIterator[TransactionScope]:
        try:
            yield TransactionScope(catalog, orders)
        except Exception:
            await self.session.rollback()
            logger.info("Atomic placement rolled back")
            raise

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Atomic placement commit failed: {e}")
            raise PersistenceFailure("Failed to create order. Please try again.") from e
