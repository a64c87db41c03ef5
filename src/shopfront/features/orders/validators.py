"""Request validators for order endpoints."""

from uuid import UUID

from pydantic import BaseModel, Field


class OrderItemRequest(BaseModel):
    """One requested order line."""

    product_id: UUID
    quantity: int = Field(gt=0)


class OrderCreateRequest(BaseModel):
    """Request model for placing an order."""

    customer_id: UUID
    items: list[OrderItemRequest] = Field(min_length=1)

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "customer_id": "0f8d1c1e-3c55-4a8e-9a0e-7d2b6f1c2a10",
                "items": [{"product_id": "5b0c8f2e-9b1e-4c55-8d7a-2f6f0f3b9a11", "quantity": 2}],
            }
        }


class OrderStatusUpdateRequest(BaseModel):
    """
    Request model for changing an order's status.

    ``status`` is a plain string here; it is checked against ``OrderStatus``
    by the service so an unknown value is a 400 rather than a 422.
    """

    status: str
