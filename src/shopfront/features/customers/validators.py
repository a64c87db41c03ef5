"""Request and response validators for customer endpoints."""

import re

from pydantic import BaseModel

from shopfront.database.models import Customer
from shopfront.features.customers.exceptions import CustomerValidationError

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10}$")


class CustomerCreateRequest(BaseModel):
    """
    Request model for creating a customer.

    Fields default to empty so that missing values produce the same short
    messages as invalid ones (see ``validate_new_customer``).
    """

    email: str = ""
    name: str = ""
    phone: str = ""

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {"email": "jane@example.com", "name": "Jane Wanjiku", "phone": "0712345678"}
        }


class CustomerCreateResponse(BaseModel):
    """Created customer and a session token for it."""

    customer: Customer
    token: str


def validate_new_customer(data: CustomerCreateRequest) -> None:
    """
    Check a new customer's fields, in order: email, name, phone.

    Raises:
        CustomerValidationError: With a short message naming the first bad field
    """
    if not data.email:
        raise CustomerValidationError("Email is required")
    if not EMAIL_PATTERN.match(data.email):
        raise CustomerValidationError("Email is invalid")
    if not data.name:
        raise CustomerValidationError("Name is required")
    if not data.phone:
        raise CustomerValidationError("Phone is required")
    if not PHONE_PATTERN.match(data.phone):
        raise CustomerValidationError("Phone is invalid")
