"""
FastAPI Application Entry Point

Food Ordering Backend - catalog management and order lifecycle.

Endpoints:
    - POST /api/orders: Place an order (reserves stock)
    - GET /api/orders?user_id=: List a user's orders
    - GET /api/orders/{id}: Get one order
    - PUT /api/orders/{id}/cancel: Cancel an order (restores stock)
    - PUT /api/orders/{id}/processing: Start preparing an order
    - PUT /api/orders/{id}/delivered: Mark an order delivered
    - GET/POST /api/foods, GET/PUT/DELETE /api/foods/{id}: Catalog
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, List, Optional

import redis
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from food_ordering.core.config import get_settings, setup_logging
from food_ordering.database import engine, get_db, init_db
from food_ordering.errors import NotFound, OrderingError
from food_ordering.schemas import (
    ErrorResponse,
    FoodItemActionResponse,
    FoodItemCreate,
    FoodItemResponse,
    FoodItemUpdate,
    HealthResponse,
    MessageResponse,
    OrderActionResponse,
    OrderCancel,
    OrderCreate,
    OrderCreateResponse,
    OrderResponse,
)
from food_ordering.services import (
    DeliveryInfo,
    InventoryReservationEngine,
    OrderLifecycleManager,
    RequestedItem,
    RetentionSweeper,
)
from food_ordering.services.catalog import SqlCatalogStore
from food_ordering.services.orders import SqlOrderRepository, order_repository_scope
from food_ordering.services.transactions import get_transaction_executor

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Atomic transactions: {settings.use_atomic_transactions}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    sweeper = RetentionSweeper(
        order_repository_scope(),
        retention=timedelta(minutes=settings.retention_minutes),
        interval=settings.sweep_interval_seconds,
    )
    app.state.sweeper = sweeper
    if settings.sweeper_enabled:
        await sweeper.start()
    else:
        logger.info("Retention sweeper disabled; relying on the Celery beat schedule")

    logger.info("Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await sweeper.stop()
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food ordering backend: catalog management, order placement with "
        "stock reservation, cancellation with restocking and delivery tracking."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_catalog_store(db: AsyncSession = Depends(get_db)) -> SqlCatalogStore:
    return SqlCatalogStore(db)


def get_order_repository(db: AsyncSession = Depends(get_db)) -> SqlOrderRepository:
    return SqlOrderRepository(db)


def get_reservation_engine(db: AsyncSession = Depends(get_db)) -> InventoryReservationEngine:
    """Reservation engine whose stores and executor share the request session."""
    return InventoryReservationEngine(
        catalog=SqlCatalogStore(db),
        orders=SqlOrderRepository(db),
        executor=get_transaction_executor(db),
        eta_minutes=(settings.delivery_eta_min_minutes, settings.delivery_eta_max_minutes),
    )


def get_lifecycle_manager(db: AsyncSession = Depends(get_db)) -> OrderLifecycleManager:
    return OrderLifecycleManager(catalog=SqlCatalogStore(db), orders=SqlOrderRepository(db))


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check Redis (Celery broker)
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    sweeper: Optional[RetentionSweeper] = getattr(request.app.state, "sweeper", None)
    sweeper_status = "running" if sweeper is not None and sweeper.is_running else "stopped"

    overall = "operational" if db_status == "healthy" and redis_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        transaction_mode="atomic" if settings.use_atomic_transactions else "compensating",
        sweeper=sweeper_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    reservation_engine: InventoryReservationEngine = Depends(get_reservation_engine),
) -> OrderCreateResponse:
    """
    Place a new order.

    Stock for every line is reserved before the order is stored; if any
    line cannot be served, nothing is reserved and no order is created.
    """
    logger.info(f"Placing order for user {order_data.user_id} ({len(order_data.items)} line(s))")

    order = await reservation_engine.place_order(
        user_id=order_data.user_id,
        delivery=DeliveryInfo(
            name=order_data.name,
            address=order_data.address,
            contact=order_data.contact,
            location=order_data.location,
            payment_method=order_data.payment_method,
        ),
        requested=[RequestedItem(item.food_id, item.quantity) for item in order_data.items],
    )

    return OrderCreateResponse(
        message="Order created successfully",
        order=OrderResponse.model_validate(order),
    )


@app.get(
    "/api/orders",
    response_model=List[OrderResponse],
    responses={400: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="List Orders of a User",
)
async def list_orders(
    user_id: Optional[str] = Query(None),
    repository: SqlOrderRepository = Depends(get_order_repository),
) -> List[OrderResponse]:
    """Retrieve every order of one user, newest first."""
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id is required")

    orders = await repository.find_by_user(user_id)
    return [OrderResponse.model_validate(order) for order in orders]


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    repository: SqlOrderRepository = Depends(get_order_repository),
) -> OrderResponse:
    """Get a specific order by ID."""
    order = await repository.find_by_id(order_id)
    if order is None:
        raise NotFound("Order", order_id)
    return OrderResponse.model_validate(order)


@app.put(
    "/api/orders/{order_id}/cancel",
    response_model=OrderActionResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Cancel Order",
)
async def cancel_order(
    order_id: str,
    body: OrderCancel,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle_manager),
) -> OrderActionResponse:
    """
    Cancel a pending or processing order and put its stock back.

    Items whose stock could not be restored are listed in ``warnings``;
    the cancellation stands regardless.
    """
    if not body.user_id:
        raise HTTPException(status_code=400, detail="User ID is required")

    result = await lifecycle.cancel_order(order_id, body.user_id)

    message = "Order cancelled successfully"
    if not result.fully_restored:
        message = "Order cancelled, but some stock could not be restored"

    return OrderActionResponse(
        message=message,
        order=OrderResponse.model_validate(result.order),
        warnings=[failure.to_dict() for failure in result.failures],
    )


@app.put(
    "/api/orders/{order_id}/processing",
    response_model=OrderActionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def start_processing(
    order_id: str,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle_manager),
) -> OrderActionResponse:
    """Move a pending order to processing."""
    order = await lifecycle.start_processing(order_id)
    return OrderActionResponse(
        message="Order is being processed",
        order=OrderResponse.model_validate(order),
    )


@app.put(
    "/api/orders/{order_id}/delivered",
    response_model=OrderActionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Mark Order Delivered",
)
async def mark_delivered(
    order_id: str,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle_manager),
) -> OrderActionResponse:
    """Complete an order and stamp its delivery time."""
    order = await lifecycle.mark_delivered(order_id)
    return OrderActionResponse(
        message="Order marked as delivered",
        order=OrderResponse.model_validate(order),
    )


# =============================================================================
# CATALOG API ENDPOINTS
# =============================================================================

@app.get(
    "/api/foods",
    response_model=List[FoodItemResponse],
    tags=["Catalog"],
)
async def list_food_items(
    catalog: SqlCatalogStore = Depends(get_catalog_store),
) -> List[FoodItemResponse]:
    """Get all food items."""
    items = await catalog.list_items()
    return [FoodItemResponse.model_validate(item) for item in items]


@app.get(
    "/api/foods/{food_id}",
    response_model=FoodItemResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Catalog"],
)
async def get_food_item(
    food_id: str,
    catalog: SqlCatalogStore = Depends(get_catalog_store),
) -> FoodItemResponse:
    item = await catalog.get_by_id(food_id)
    if item is None:
        raise NotFound("Food item", food_id)
    return FoodItemResponse.model_validate(item)


@app.post(
    "/api/foods",
    response_model=FoodItemActionResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    tags=["Catalog"],
)
async def add_food_item(
    item_data: FoodItemCreate,
    catalog: SqlCatalogStore = Depends(get_catalog_store),
) -> FoodItemActionResponse:
    """Add a new food item to the catalog."""
    fields = item_data.model_dump()
    if fields["quantity"] is None:
        fields["quantity"] = settings.default_stock_quantity

    item = await catalog.create(**fields)
    await catalog.commit()
    logger.info(f"Food item {item.id} ({item.name}) added with {item.quantity} in stock")

    return FoodItemActionResponse(
        message="Food item added successfully",
        food_item=FoodItemResponse.model_validate(item),
    )


@app.put(
    "/api/foods/{food_id}",
    response_model=FoodItemActionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Catalog"],
)
async def update_food_item(
    food_id: str,
    item_data: FoodItemUpdate,
    catalog: SqlCatalogStore = Depends(get_catalog_store),
) -> FoodItemActionResponse:
    """Update only the fields that were provided."""
    fields = item_data.model_dump(exclude_unset=True, exclude_none=True)

    item = await catalog.update(food_id, **fields)
    if item is None:
        raise NotFound("Food item", food_id)
    await catalog.commit()

    return FoodItemActionResponse(
        message="Food item updated successfully",
        food_item=FoodItemResponse.model_validate(item),
    )


@app.delete(
    "/api/foods/{food_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Catalog"],
)
async def delete_food_item(
    food_id: str,
    catalog: SqlCatalogStore = Depends(get_catalog_store),
) -> MessageResponse:
    if not await catalog.delete(food_id):
        raise NotFound("Food item", food_id)
    await catalog.commit()
    return MessageResponse(message="Food item deleted successfully")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderingError)
async def ordering_exception_handler(request: Request, exc: OrderingError) -> JSONResponse:
    """Business-rule and validation failures raised by the services."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are reported as 400, like business-rule failures."""
    errors: list[dict[str, Any]] = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    summary = ", ".join(f"{e['field']}: {e['message']}" for e in errors)
    return JSONResponse(
        status_code=400,
        content={"message": f"Validation Error: {summary}", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "message": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "food_ordering.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
