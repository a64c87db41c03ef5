"""Business logic for customers."""

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

from shopfront.database import SupabaseQueryBuilder
from shopfront.database.models import Customer, Tables
from shopfront.features.customers.exceptions import CustomerExistsError, CustomerNotFoundError
from shopfront.features.customers.validators import CustomerCreateRequest, validate_new_customer

logger = logging.getLogger(__name__)


class CustomerService:
    """Service for managing customers."""

    def create_customer(self, db: SupabaseQueryBuilder, data: CustomerCreateRequest) -> Customer:
        """
        Validate and create a customer.

        Args:
            db: Database query builder
            data: Request body

        Returns:
            Created customer

        Raises:
            CustomerValidationError: If a field is missing or invalid
            CustomerExistsError: If the email is already registered
        """
        validate_new_customer(data)

        if db.get_by_field(Tables.CUSTOMERS, "email", data.email):
            raise CustomerExistsError(f"Customer with email {data.email} already exists")

        now = datetime.now(UTC).isoformat()
        record = db.insert_record(
            Tables.CUSTOMERS,
            {
                "id": str(uuid4()),
                "email": data.email,
                "name": data.name,
                "phone": data.phone,
                "created_at": now,
                "updated_at": now,
            },
        )
        if not record:
            raise RuntimeError("Customer insert returned no row")

        logger.info("Customer created", extra={"customer_id": record["id"]})
        return Customer.model_validate(record)

    def get_customer(self, db: SupabaseQueryBuilder, customer_id: UUID) -> Customer:
        """
        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        record = db.get_by_id(Tables.CUSTOMERS, customer_id)
        if not record:
            raise CustomerNotFoundError(f"Customer not found: {customer_id}")
        return Customer.model_validate(record)
