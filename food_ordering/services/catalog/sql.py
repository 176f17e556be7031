"""
SQL Catalog Store

SQLAlchemy implementation of the catalog store. Stock changes are issued
as single conditional UPDATE statements so the database serializes
concurrent reservations on the same row:

    UPDATE food_items SET quantity = quantity - :q
    WHERE id = :id AND quantity >= :q

A row count of zero means another writer got there first.
"""

import logging
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from food_ordering.errors import NotFound, PersistenceFailure
from food_ordering.models import FoodItem, utcnow
from food_ordering.services.catalog.base import BaseCatalogStore

logger = logging.getLogger(__name__)


class SqlCatalogStore(BaseCatalogStore):
    """
    Catalog store backed by the ``food_items`` table.

    The store never commits on its own; the caller (a transactional
    executor, the lifecycle manager or a route) decides when the session
    commits.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, food_id: str) -> Optional[FoodItem]:
        # populate_existing refreshes rows already in the identity map,
        # which bulk UPDATE statements do not synchronize.
        return await self.session.get(FoodItem, food_id, populate_existing=True)

    async def decrement_if_available(self, food_id: str, quantity: int) -> bool:
        stmt = (
            update(FoodItem)
            .where(FoodItem.id == food_id, FoodItem.quantity >= quantity)
            .values(quantity=FoodItem.quantity - quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Stock decrement failed for {food_id}: {e}")
            raise PersistenceFailure() from e
        reserved = result.rowcount == 1
        logger.debug(f"Decrement {food_id} by {quantity}: {'ok' if reserved else 'refused'}")
        return reserved

    async def increment(self, food_id: str, quantity: int) -> None:
        stmt = (
            update(FoodItem)
            .where(FoodItem.id == food_id)
            .values(quantity=FoodItem.quantity + quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Stock increment failed for {food_id}: {e}")
            raise PersistenceFailure() from e
        if result.rowcount == 0:
            raise NotFound("Food item", food_id)

    async def list_items(self) -> list[FoodItem]:
        result = await self.session.execute(select(FoodItem).order_by(FoodItem.name))
        return list(result.scalars().all())

    async def create(self, **fields: Any) -> FoodItem:
        item = FoodItem(**fields)
        self.session.add(item)
        await self._flush()
        return item

    async def update(self, food_id: str, **fields: Any) -> Optional[FoodItem]:
        item = await self.get_by_id(food_id)
        if item is None:
            return None
        for key, value in fields.items():
            setattr(item, key, value)
        await self._flush()
        return item

    async def delete(self, food_id: str) -> bool:
        result = await self.session.execute(
            delete(FoodItem)
            .where(FoodItem.id == food_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailure() from e

    async def rollback(self) -> None:
        await self.session.rollback()

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailure() from e
