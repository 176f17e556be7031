"""
Retention Sweeper

Removes completed orders once they have been delivered for longer than
the retention window. The sweeper is a plain object with an explicit
``start()``/``stop()`` lifecycle; the FastAPI lifespan owns the running
instance, and the Celery task calls ``sweep()`` directly.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import AsyncContextManager, Callable, Optional

from food_ordering.models import OrderStatus, utcnow
from food_ordering.services.orders.base import BaseOrderRepository

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Periodic cleanup of delivered orders.

    Attributes:
        repository_scope: Factory of short-lived repositories, one per sweep
        retention: How long a completed order is kept after delivery
        interval: Seconds between two sweeps

    Example:
        >>> sweeper = RetentionSweeper(order_repository_scope())
        >>> await sweeper.start()   # sweeps now, then every hour
        >>> ...
        >>> await sweeper.stop()
    """

    def __init__(
        self,
        repository_scope: Callable[[], AsyncContextManager[BaseOrderRepository]],
        retention: timedelta = timedelta(minutes=30),
        interval: float = 3600.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository_scope = repository_scope
        self.retention = retention
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> int:
        """
        Delete every completed order delivered at or before now - retention.

        Returns:
            int: Number of removed orders
        """
        cutoff = self._clock() - self.retention
        async with self.repository_scope() as repository:
            removed = await repository.delete_many(OrderStatus.COMPLETED, cutoff)
            await repository.commit()

        if removed:
            logger.info(f"Retention sweep removed {removed} completed order(s)")
        else:
            logger.debug("Retention sweep found nothing to remove")
        return removed

    async def start(self) -> None:
        """Start sweeping in the background: once immediately, then every interval."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="retention-sweeper")
        logger.info(
            f"Retention sweeper started (every {self.interval:.0f}s, "
            f"retention {self.retention})"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Retention sweeper stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep()
            except Exception as e:
                # The next tick retries
                logger.exception(f"Retention sweep failed: {e}")
            await asyncio.sleep(self.interval)
