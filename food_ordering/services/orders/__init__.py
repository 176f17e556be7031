"""
Order Repository Package

Provides the repository interface, its SQL implementation and a scope
factory for code that runs outside a request (sweeper, Celery tasks).

Usage:
    from food_ordering.services.orders import order_repository_scope

    repository_scope = order_repository_scope()
    async with repository_scope() as repository:
        removed = await repository.delete_many(...)
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from food_ordering.database import async_session_maker
from food_ordering.services.orders.base import BaseOrderRepository
from food_ordering.services.orders.sql import SqlOrderRepository


def order_repository_scope(
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
) -> Callable[[], AsyncContextManager[BaseOrderRepository]]:
    """
    Build a factory of short-lived repositories, one session each.

    Args:
        session_maker: Session factory to use (defaults to the application's)

    Returns:
        A zero-argument async context manager factory
    """

    @asynccontextmanager
    async def scope() -> AsyncIterator[BaseOrderRepository]:
        async with (session_maker or async_session_maker)() as session:
            yield SqlOrderRepository(session)

    return scope


__all__ = [
    "BaseOrderRepository",
    "SqlOrderRepository",
    "order_repository_scope",
]
