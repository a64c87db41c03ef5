"""Custom exceptions for customers."""


class CustomerError(Exception):
    """Base exception for customer errors."""

    pass


class CustomerValidationError(CustomerError):
    """Raised when a new customer's fields are missing or invalid."""

    pass


class CustomerExistsError(CustomerError):
    """Raised when a customer with the same email already exists."""

    pass


class CustomerNotFoundError(CustomerError):
    """Raised when a customer does not exist."""

    pass
