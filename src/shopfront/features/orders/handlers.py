"""API handlers for orders."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from shopfront.database import SupabaseQueryBuilder, get_db
from shopfront.database.models import Order
from shopfront.features.orders.exceptions import (
    CustomerNotFoundError,
    InsufficientStockError,
    InvalidOrderStatusError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from shopfront.features.orders.notifications import OrderNotifier
from shopfront.features.orders.service import OrderService
from shopfront.features.orders.validators import OrderCreateRequest, OrderStatusUpdateRequest
from shopfront.services.rate_limiter import default_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

order_service = OrderService()


def get_order_notifier(request: Request) -> OrderNotifier | None:
    return getattr(request.app.state, "order_notifier", None)


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def create_order(
    request: Request,
    body: OrderCreateRequest,
    db: SupabaseQueryBuilder = Depends(get_db),
    notifier: OrderNotifier | None = Depends(get_order_notifier),
) -> Order:
    """
    Place an order.

    Decrements stock for every line, stores the order and its lines, then
    queues a customer SMS and an admin email. Notification failures never
    affect the response.

    Raises:
        HTTPException: 404 if the customer or a product does not exist
        HTTPException: 400 if a product has insufficient stock
        HTTPException: 500 if database error occurs
    """
    try:
        return order_service.create_order(db, body, notifier)
    except (CustomerNotFoundError, ProductNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InsufficientStockError as e:
        logger.info(f"Order rejected: {e}", extra={"product_name": e.product_name})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error creating order: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order",
        ) from e


@router.get("/{order_id}", response_model=Order)
@default_rate_limit
async def get_order(
    request: Request,
    order_id: UUID,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Order:
    """Get an order with its customer and lines."""
    try:
        return order_service.get_order(db, order_id)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error fetching order {order_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch order",
        ) from e


@router.put("/{order_id}/status", response_model=Order)
@write_rate_limit
async def update_order_status(
    request: Request,
    order_id: UUID,
    body: OrderStatusUpdateRequest,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Order:
    """
    Change an order's status.

    Raises:
        HTTPException: 400 if the status is not pending, processing, shipped, delivered or cancelled
        HTTPException: 404 if the order does not exist
    """
    try:
        return order_service.update_status(db, order_id, body.status)
    except InvalidOrderStatusError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except OrderNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error updating order {order_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order status",
        ) from e
