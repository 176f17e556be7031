"""
Catalog Store Abstract Base Class

Defines the interface contract for catalog storage. The reservation
engine and the lifecycle manager only ever touch stock through
``decrement_if_available`` and ``increment``, which implementations must
execute as single atomic operations on the backing store.

Design Pattern: Strategy Pattern
    - The ordering services depend on this interface, not on SQL
    - Tests plug in an in-memory implementation
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from food_ordering.models import FoodItem


class BaseCatalogStore(ABC):
    """
    Abstract base class for catalog stores.

    Example:
        >>> store = SqlCatalogStore(session)
        >>> if await store.decrement_if_available(item_id, 3):
        ...     await store.commit()
    """

    @abstractmethod
    async def get_by_id(self, food_id: str) -> Optional[FoodItem]:
        """
        Fetch a catalog item with its current stock.

        Returns:
            FoodItem or None when the identity is unknown
        """
        pass

    @abstractmethod
    async def decrement_if_available(self, food_id: str, quantity: int) -> bool:
        """
        Atomically take ``quantity`` units out of stock.

        The check and the decrement are one operation: when another writer
        consumed the stock first, nothing changes and False is returned.

        Returns:
            bool: True if the stock was reserved
        """
        pass

    @abstractmethod
    async def increment(self, food_id: str, quantity: int) -> None:
        """
        Atomically put ``quantity`` units back into stock.

        Raises:
            NotFound: If the item no longer exists
        """
        pass

    @abstractmethod
    async def list_items(self) -> list[FoodItem]:
        pass

    @abstractmethod
    async def create(self, **fields: Any) -> FoodItem:
        pass

    @abstractmethod
    async def update(self, food_id: str, **fields: Any) -> Optional[FoodItem]:
        """Apply a partial update; None when the item does not exist."""
        pass

    @abstractmethod
    async def delete(self, food_id: str) -> bool:
        """Remove an item; False when it did not exist."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
