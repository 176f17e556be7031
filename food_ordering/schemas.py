"""
Pydantic Schemas for Request/Response Validation

Request schemas normalize what callers send (for example a ``food_id``
given as a plain string or as an embedded ``{"_id": ...}`` object) before
it reaches the ordering services. Response schemas serialize ORM objects.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from food_ordering.models import FoodCategory, OrderStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderItemRequest(BaseModel):
    """Single requested line of an order."""
    food_id: str = Field(..., examples=["3f2b8c9e-6a1d-4f6e-9d8c-2b7a1e5c4d3f"])
    # Validated by the reservation engine so the error names the item
    quantity: Any = Field(default=1, examples=[2])

    @field_validator("food_id", mode="before")
    @classmethod
    def normalize_food_id(cls, v: Any) -> str:
        """Accept a bare identity or an embedded item object."""
        if isinstance(v, dict):
            v = v.get("_id") or v.get("id")
        if v is None or v == "":
            raise ValueError("Each item must have a food_id")
        return str(v)


class OrderCreate(BaseModel):
    """Request schema for placing a new order."""
    user_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=100, examples=["John Doe"])
    address: str = Field(..., min_length=1, max_length=255, examples=["350 Fifth Avenue"])
    contact: str = Field(..., min_length=1, max_length=50, examples=["555-123-4567"])
    location: str = Field(..., min_length=1, max_length=255, examples=["Midtown"])
    payment_method: str = Field(..., min_length=1, max_length=50, examples=["cash"])
    items: List[OrderItemRequest] = Field(default_factory=list)


class OrderCancel(BaseModel):
    """Request schema for cancelling an order."""
    user_id: Optional[str] = None


class FoodItemCreate(BaseModel):
    """Request schema for adding a catalog item."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita Pizza"])
    category: FoodCategory = Field(..., examples=["Fast Food"])
    price: float = Field(..., gt=0, examples=[9.99])
    image: str = Field(..., min_length=1, max_length=500, examples=["/images/margherita.png"])
    quantity: Optional[int] = Field(default=None, ge=0)


class FoodItemUpdate(BaseModel):
    """Partial update of a catalog item; omitted fields are left as they are."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[FoodCategory] = None
    price: Optional[float] = Field(default=None, gt=0)
    image: Optional[str] = Field(default=None, min_length=1, max_length=500)
    quantity: Optional[int] = Field(default=None, ge=0)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class FoodItemResponse(BaseModel):
    """Response schema for a catalog item."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: FoodCategory
    price: float
    image: str
    quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderLineItemResponse(BaseModel):
    food_id: str
    name: str
    image: str
    price: float
    quantity: int


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    address: str
    contact: str
    location: str
    payment_method: str
    items: List[OrderLineItemResponse]
    status: OrderStatus
    total_amount: float
    estimated_delivery_time: datetime
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderCreateResponse(BaseModel):
    """Response after successfully placing an order."""
    message: str
    order: OrderResponse


class OrderActionResponse(BaseModel):
    """Response after a status change."""
    message: str
    order: OrderResponse
    warnings: List[dict[str, Any]] = Field(default_factory=list)


class FoodItemActionResponse(BaseModel):
    message: str
    food_item: FoodItemResponse


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    transaction_mode: str
    sweeper: str
    timestamp: datetime
