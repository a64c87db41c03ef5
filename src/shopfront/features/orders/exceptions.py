"""Custom exceptions for order processing."""

from shopfront.features.catalog.exceptions import ProductNotFoundError
from shopfront.features.customers.exceptions import CustomerNotFoundError


class OrderError(Exception):
    """Base exception for order errors."""

    pass


class InsufficientStockError(OrderError):
    """Raised when a product's stock is below the quantity ordered."""

    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(f"Insufficient stock for product: {product_name}")


class StockUpdateError(OrderError):
    """Raised when a product's stock could not be written back."""

    pass


class OrderNotFoundError(OrderError):
    """Raised when an order does not exist."""

    pass


class InvalidOrderStatusError(OrderError):
    """Raised when a status is not one of the order lifecycle values."""

    pass


__all__ = [
    "CustomerNotFoundError",
    "InsufficientStockError",
    "InvalidOrderStatusError",
    "OrderError",
    "OrderNotFoundError",
    "ProductNotFoundError",
    "StockUpdateError",
]
