"""
Transactional Executor Factory

Provides a single entry point for obtaining the executor that keeps order
placement all-or-nothing. The rest of the application stays agnostic
about which strategy is in use.

Usage:
    from food_ordering.services.transactions import get_transaction_executor

    executor = get_transaction_executor(session)
    async with executor.scope(catalog, orders) as scope:
        ...

Strategy Switching:
    - TRANSACTION_MODE=atomic → AtomicTransactionExecutor
    - TRANSACTION_MODE=compensating → CompensatingTransactionExecutor
    - TRANSACTION_MODE=auto (default) → atomic in production, compensating elsewhere
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from food_ordering.core.config import get_settings
from food_ordering.services.transactions.atomic import AtomicTransactionExecutor
from food_ordering.services.transactions.base import (
    BaseTransactionExecutor,
    TransactionScope,
)
from food_ordering.services.transactions.compensating import (
    CompensatingScope,
    CompensatingTransactionExecutor,
)

logger = logging.getLogger(__name__)


def get_transaction_executor(session: AsyncSession) -> BaseTransactionExecutor:
    """
    Get the configured transactional executor for one session.

    Returns:
        BaseTransactionExecutor: Atomic or compensating executor
    """
    settings = get_settings()

    if settings.use_atomic_transactions:
        executor = AtomicTransactionExecutor(session)
    else:
        executor = CompensatingTransactionExecutor()

    logger.debug(
        f"Transaction executor: {executor.provider_name} "
        f"({settings.env_mode.value} mode, {settings.transaction_mode.value})"
    )
    return executor


__all__ = [
    "get_transaction_executor",
    "BaseTransactionExecutor",
    "TransactionScope",
    "AtomicTransactionExecutor",
    "CompensatingTransactionExecutor",
    "CompensatingScope",
]
