"""
Catalog Store Package

Usage:
    from food_ordering.services.catalog import SqlCatalogStore

    store = SqlCatalogStore(session)
    item = await store.get_by_id(food_id)
"""

from food_ordering.services.catalog.base import BaseCatalogStore
from food_ordering.services.catalog.sql import SqlCatalogStore

__all__ = [
    "BaseCatalogStore",
    "SqlCatalogStore",
]
