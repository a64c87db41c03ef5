"""API handlers for categories and products."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from shopfront.database import SupabaseQueryBuilder, get_db
from shopfront.database.models import Category, Product
from shopfront.features.catalog.exceptions import CategoryNotFoundError, ProductNotFoundError
from shopfront.features.catalog.service import CatalogService
from shopfront.features.catalog.validators import (
    CategoryCreateRequest,
    CategoryPriceResponse,
    ProductCreateRequest,
)
from shopfront.services.rate_limiter import default_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])

catalog_service = CatalogService()


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/products", response_model=Product, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def create_product(
    request: Request,
    body: ProductCreateRequest,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Product:
    """
    Create a product.

    Raises:
        HTTPException: 404 if the category does not exist
        HTTPException: 500 if database error occurs
    """
    try:
        return catalog_service.create_product(db, body)
    except CategoryNotFoundError as e:
        raise _not_found(e) from e
    except Exception as e:
        logger.error(f"Error creating product: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product",
        ) from e


@router.get("/products", response_model=list[Product])
@default_rate_limit
async def list_products(
    request: Request,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Product]:
    """List all products ordered by name, each with its category."""
    try:
        return catalog_service.list_products(db)
    except Exception as e:
        logger.error(f"Error listing products: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch products",
        ) from e


@router.get("/products/{product_id}", response_model=Product)
@default_rate_limit
async def get_product(
    request: Request,
    product_id: UUID,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Product:
    try:
        return catalog_service.get_product(db, product_id)
    except ProductNotFoundError as e:
        raise _not_found(e) from e
    except Exception as e:
        logger.error(f"Error fetching product {product_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch product",
        ) from e


@router.get("/products/category/{category_id}", response_model=list[Product])
@default_rate_limit
async def list_products_by_category(
    request: Request,
    category_id: UUID,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Product]:
    try:
        return catalog_service.list_products_by_category(db, category_id)
    except Exception as e:
        logger.error(f"Error listing products for category {category_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch products",
        ) from e


@router.get(
    "/products/category/{category_id}/average-price", response_model=CategoryPriceResponse
)
@default_rate_limit
async def get_average_price(
    request: Request,
    category_id: UUID,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> CategoryPriceResponse:
    """
    Average price of the products in a category.

    Example Response:
        {
            "category_id": "5b0c8f2e-9b1e-4c55-8d7a-2f6f0f3b9a11",
            "category_name": "Kitchen",
            "average_price": 4250.0,
            "product_count": 4
        }
    """
    try:
        return catalog_service.average_price(db, category_id)
    except CategoryNotFoundError as e:
        raise _not_found(e) from e
    except Exception as e:
        logger.error(f"Error computing average price for {category_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute average price",
        ) from e


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def create_category(
    request: Request,
    body: CategoryCreateRequest,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Category:
    """
    Create a category. Level and path are derived from the parent.

    Raises:
        HTTPException: 404 if ``parent_id`` does not exist
    """
    try:
        return catalog_service.create_category(db, body)
    except CategoryNotFoundError as e:
        raise _not_found(e) from e
    except Exception as e:
        logger.error(f"Error creating category: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create category",
        ) from e


@router.get("/categories", response_model=list[Category])
@default_rate_limit
async def list_categories(
    request: Request,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Category]:
    try:
        return catalog_service.list_categories(db)
    except Exception as e:
        logger.error(f"Error listing categories: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch categories",
        ) from e


@router.get("/categories/{category_id}", response_model=Category)
@default_rate_limit
async def get_category(
    request: Request,
    category_id: UUID,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> Category:
    try:
        return catalog_service.get_category(db, category_id)
    except CategoryNotFoundError as e:
        raise _not_found(e) from e
    except Exception as e:
        logger.error(f"Error fetching category {category_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch category",
        ) from e


@router.get("/categories/{parent_id}/children", response_model=list[Category])
@default_rate_limit
async def list_category_children(
    request: Request,
    parent_id: UUID,
    db: SupabaseQueryBuilder = Depends(get_db),
) -> list[Category]:
    try:
        return catalog_service.list_children(db, parent_id)
    except Exception as e:
        logger.error(f"Error listing children of {parent_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch categories",
        ) from e
