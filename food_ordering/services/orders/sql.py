"""
SQL Order Repository

SQLAlchemy implementation of the order repository on the ``orders``
table. Like the catalog store it leaves commits to its caller.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from food_ordering.errors import PersistenceFailure
from food_ordering.models import Order, OrderStatus, utcnow
from food_ordering.services.orders.base import BaseOrderRepository

logger = logging.getLogger(__name__)


class SqlOrderRepository(BaseOrderRepository):
    """Order repository backed by the ``orders`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, order: Order) -> Order:
        self.session.add(order)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert order {order.id}: {e}")
            raise PersistenceFailure("Failed to create order. Please try again.") from e
        return order

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        return await self.session.get(Order, order_id, populate_existing=True)

    async def find_by_user(self, user_id: str) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        order_id: str,
        fields: dict[str, Any],
        *,
        user_id: Optional[str] = None,
        allowed_from: Optional[Iterable[OrderStatus]] = None,
    ) -> Optional[Order]:
        stmt = update(Order).where(Order.id == order_id)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        if allowed_from is not None:
            stmt = stmt.where(Order.status.in_(list(allowed_from)))
        stmt = stmt.values(**fields, updated_at=utcnow()).execution_options(
            synchronize_session=False
        )

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update order {order_id}: {e}")
            raise PersistenceFailure() from e

        if result.rowcount == 0:
            return None
        return await self.find_by_id(order_id)

    async def delete_many(self, status: OrderStatus, delivered_before: datetime) -> int:
        stmt = (
            delete(Order)
            .where(Order.status == status, Order.delivered_at <= delivered_before)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete {status.value} orders: {e}")
            raise PersistenceFailure() from e
        return result.rowcount

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailure() from e

    async def rollback(self) -> None:
        await self.session.rollback()
