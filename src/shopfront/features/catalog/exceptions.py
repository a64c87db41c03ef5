"""Custom exceptions for the product catalog."""


class CatalogError(Exception):
    """Base exception for catalog errors."""

    pass


class CategoryNotFoundError(CatalogError):
    """Raised when a category (or a new category's parent) does not exist."""

    pass


class ProductNotFoundError(CatalogError):
    """Raised when a product does not exist."""

    pass
