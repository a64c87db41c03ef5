"""Customer registration and lookup."""

from shopfront.features.customers.service import CustomerService

__all__ = ["CustomerService"]
