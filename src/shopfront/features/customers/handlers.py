"""API handlers for customers. All routes require authentication."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from shopfront.auth.dependencies import get_current_principal, get_session_issuer
from shopfront.auth.models import Principal
from shopfront.auth.session_tokens import SessionTokenIssuer
from shopfront.database import SupabaseQueryBuilder, get_db
from shopfront.database.models import Customer, Order
from shopfront.features.customers.exceptions import (
    CustomerExistsError,
    CustomerNotFoundError,
    CustomerValidationError,
)
from shopfront.features.customers.service import CustomerService
from shopfront.features.customers.validators import (
    CustomerCreateRequest,
    CustomerCreateResponse,
)
from shopfront.features.orders.service import OrderService
from shopfront.services.rate_limiter import default_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

customer_service = CustomerService()
order_service = OrderService()


@router.post("", response_model=CustomerCreateResponse, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def create_customer(
    request: Request,
    body: CustomerCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: SupabaseQueryBuilder = Depends(get_db),
    issuer: SessionTokenIssuer = Depends(get_session_issuer),
) -> CustomerCreateResponse:
    """
    Register a customer and issue a session token for it.

    Raises:
        HTTPException: 400 if email, name or phone is missing or invalid
        HTTPException: 409 if the email is already registered
        HTTPException: 500 if database error occurs

    Example Response:
        {
            "customer": {"id": "...", "email": "jane@example.com", "name": "Jane", "phone": "0712345678", ...},
            "token": "eyJ..."
        }
    """
    try:
        customer = customer_service.create_customer(db, body)
        token = issuer.issue(customer.id, customer.email)
        logger.info(
            f"Customer {customer.id} created by {principal.user_id}",
            extra={"customer_id": str(customer.id)},
        )
        return CustomerCreateResponse(customer=customer, token=token)
    except CustomerValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except CustomerExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error creating customer: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create customer",
        ) from e


@router.get("/{customer_id}", response_model=Customer)
@default_rate_limit
async def get_customer(
    request: Request,
    customer_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Customer:
    try:
        return customer_service.get_customer(db, customer_id)
    except CustomerNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error fetching customer {customer_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customer",
        ) from e


@router.get("/{customer_id}/orders", response_model=list[Order])
@default_rate_limit
async def list_customer_orders(
    request: Request,
    customer_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Order]:
    """List a customer's orders, newest first."""
    try:
        return order_service.list_customer_orders(db, customer_id)
    except CustomerNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error listing orders for customer {customer_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch orders",
        ) from e
