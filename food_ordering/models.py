"""
SQLAlchemy Database Models

Two collections back the ordering workflow:
- food_items: the catalog, including the available stock counter
- orders: placed orders with their line items embedded as JSON snapshots
"""

import enum
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
)
from sqlalchemy.orm import validates

from food_ordering.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_identity() -> str:
    """Generate an opaque identity for a catalog item or order."""
    return str(uuid4())


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class FoodCategory(str, enum.Enum):
    """Fixed set of catalog categories."""
    FAST_FOOD = "Fast Food"
    BEVERAGES = "Beverages"
    DESSERT = "Dessert"
    VEGETARIAN = "Vegetarian"
    NON_VEGETARIAN = "Non-Vegetarian"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DELIVERED = "delivered"


CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


class FoodItem(Base):
    """
    Catalog entry.

    ``quantity`` is the available stock. It only ever changes through
    admin edits or the guarded decrement/increment statements of the
    catalog store, and the table refuses negative values.
    """
    __tablename__ = "food_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_food_items_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_food_items_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=new_identity)
    name = Column(String(100), nullable=False)
    category = Column(
        Enum(FoodCategory, values_callable=_enum_values, name="food_category"),
        nullable=False,
        index=True,
    )
    price = Column(Float, nullable=False)
    image = Column(String(500), nullable=False)
    quantity = Column(Integer, nullable=False, default=10)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<FoodItem {self.id} - {self.name} - qty {self.quantity}>"


@dataclass(frozen=True)
class OrderLineItem:
    """
    A line of an order: the item reference plus a snapshot of its name,
    image and price at placement time.
    """
    food_id: str
    name: str
    image: str
    price: float
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError("Quantity must be at least 1")
        if self.price < 0:
            raise ValueError("Price cannot be negative")

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderLineItem":
        return cls(
            food_id=str(data["food_id"]),
            name=data["name"],
            image=data["image"],
            price=float(data["price"]),
            quantity=int(data["quantity"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compute_total(lines: Iterable[OrderLineItem]) -> float:
    return round(sum(line.subtotal for line in lines), 2)


class Order(Base):
    """
    Placed order.

    Created only by the reservation engine, moved through its statuses by
    the lifecycle manager and removed by the retention sweeper.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=new_identity)
    user_id = Column(String(64), nullable=False, index=True)

    # =========================================================================
    # DELIVERY DETAILS
    # =========================================================================
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    contact = Column(String(50), nullable=False)
    location = Column(String(255), nullable=False)
    payment_method = Column(String(50), nullable=False)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Float, nullable=False, default=0.0)
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values, name="order_status"),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    estimated_delivery_time = Column(DateTime(timezone=True), nullable=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True, index=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @validates("items")
    def _recompute_total(self, key: str, value: Iterable[Any]) -> list[dict[str, Any]]:
        lines = [
            line if isinstance(line, OrderLineItem) else OrderLineItem.from_dict(line)
            for line in value
        ]
        self.total_amount = compute_total(lines)
        return [line.to_dict() for line in lines]

    @property
    def line_items(self) -> list[OrderLineItem]:
        return [OrderLineItem.from_dict(data) for data in self.items or []]

    def __repr__(self):
        return f"<Order {self.id} - {self.user_id} - {self.status.value}>"
