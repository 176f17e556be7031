"""
                        Services Module

Contains the ordering business logic and its storage seams.

Services:
    - catalog: catalog store (stock reads, guarded decrement, increment)
    - orders: order repository
    - transactions: atomic / compensating executors
    - reservation: order placement with stock reservation
    - lifecycle: cancellation, processing and delivery
    - retention: cleanup of delivered orders
"""

from food_ordering.services.lifecycle import CancellationResult, OrderLifecycleManager
from food_ordering.services.reservation import (
    DeliveryInfo,
    InventoryReservationEngine,
    RequestedItem,
)
from food_ordering.services.retention import RetentionSweeper

__all__ = [
    "CancellationResult",
    "DeliveryInfo",
    "InventoryReservationEngine",
    "OrderLifecycleManager",
    "RequestedItem",
    "RetentionSweeper",
]
