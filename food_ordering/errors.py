"""
Ordering Exceptions

Raised by the catalog store, order repository and the ordering services
when a business rule is violated. The API layer maps them to HTTP
responses through ``status_code`` and ``to_dict()``.
"""

from typing import Any, Optional


class OrderingError(Exception):
    """Base exception for all ordering errors."""

    status_code = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, **self.context}


class EmptyOrder(OrderingError):
    """Raised when an order is placed without items."""

    def __init__(self):
        super().__init__("No items in order")


class InvalidReference(OrderingError):
    """Raised when an item reference is not a valid identity."""

    def __init__(self, food_id: Any):
        self.food_id = food_id
        super().__init__(f"Invalid food_id format: {food_id}", food_id=str(food_id))


class NotFound(OrderingError):
    """Raised when a catalog item or order does not exist."""

    status_code = 404

    def __init__(self, kind: str, identity: str):
        self.kind = kind
        self.identity = identity
        super().__init__(f"{kind} not found with ID: {identity}", id=identity)


class InvalidQuantity(OrderingError):
    """Raised when a requested quantity is not an integer >= 1."""

    def __init__(self, food_id: str, quantity: Any, name: Optional[str] = None):
        self.food_id = food_id
        self.quantity = quantity
        label = name or food_id
        super().__init__(
            f"Invalid quantity for {label}: {quantity!r}",
            food_id=food_id,
            quantity=str(quantity),
        )


class InsufficientStock(OrderingError):
    """Raised when the available stock cannot cover a request."""

    def __init__(self, food_id: str, available: int, requested: int, name: Optional[str] = None):
        self.food_id = food_id
        self.available = available
        self.requested = requested
        label = name or food_id
        super().__init__(
            f"Insufficient quantity for {label}. Available: {available}",
            food_id=food_id,
            available=available,
            requested=requested,
        )


class NotCancellable(OrderingError):
    """Raised when an order is missing, foreign or past the cancellable statuses."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found or cannot be cancelled", order_id=order_id)


class InvalidTransition(OrderingError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, order_id: str, current: str, target: str):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move order from '{current}' to '{target}'",
            order_id=order_id,
            current=current,
            target=target,
        )


class PersistenceFailure(OrderingError):
    """Raised when the database refuses a write."""

    status_code = 500

    def __init__(self, message: str = "Failed to save changes. Please try again."):
        super().__init__(message)


class PartialRestorationFailure(OrderingError):
    """
    Reported when a cancelled order's stock could not be restored for one
    item. The cancellation itself is kept.
    """

    status_code = 200

    def __init__(self, order_id: str, food_id: str, quantity: int, reason: str):
        self.order_id = order_id
        self.food_id = food_id
        self.quantity = quantity
        self.reason = reason
        super().__init__(
            f"Could not restore {quantity} unit(s) of {food_id}: {reason}",
            order_id=order_id,
            food_id=food_id,
            quantity=quantity,
        )
