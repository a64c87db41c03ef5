"""Product catalog: hierarchical categories and products."""

from shopfront.features.catalog.service import CatalogService

__all__ = ["CatalogService"]
