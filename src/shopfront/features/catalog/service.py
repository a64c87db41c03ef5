"""Business logic for categories and products."""

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

from shopfront.database import SupabaseQueryBuilder
from shopfront.database.models import Category, Product, Tables
from shopfront.features.catalog.exceptions import CategoryNotFoundError, ProductNotFoundError
from shopfront.features.catalog.validators import (
    CategoryCreateRequest,
    CategoryPriceResponse,
    ProductCreateRequest,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for the category tree and the products in it."""

    # Categories

    def create_category(self, db: SupabaseQueryBuilder, data: CategoryCreateRequest) -> Category:
        """
        Create a category, deriving ``level`` and ``path`` from its parent.

        Args:
            db: Database query builder
            data: Validated request body

        Returns:
            Created category

        Raises:
            CategoryNotFoundError: If ``parent_id`` does not exist
        """
        if data.parent_id is not None:
            parent = self.get_category(db, data.parent_id)
            level = parent.level + 1
            path = f"{parent.path}/{data.name}"
        else:
            level = 0
            path = f"/{data.name}"

        now = datetime.now(UTC).isoformat()
        record = db.insert_record(
            Tables.CATEGORIES,
            {
                "id": str(uuid4()),
                "name": data.name,
                "description": data.description,
                "parent_id": str(data.parent_id) if data.parent_id else None,
                "level": level,
                "path": path,
                "created_at": now,
                "updated_at": now,
            },
        )
        if not record:
            raise RuntimeError("Category insert returned no row")

        logger.info(f"Category created: {path}", extra={"category_id": record["id"]})
        return Category.model_validate(record)

    def get_category(self, db: SupabaseQueryBuilder, category_id: UUID) -> Category:
        """
        Raises:
            CategoryNotFoundError: If the category does not exist
        """
        record = db.get_by_id(Tables.CATEGORIES, category_id)
        if not record:
            raise CategoryNotFoundError(f"Category not found: {category_id}")
        return Category.model_validate(record)

    def list_categories(self, db: SupabaseQueryBuilder) -> list[Category]:
        """All categories, ordered by path so each parent precedes its children."""
        records = db.list_records(Tables.CATEGORIES, order_by="path", order_desc=False)
        return [Category.model_validate(record) for record in records]

    def list_children(self, db: SupabaseQueryBuilder, parent_id: UUID) -> list[Category]:
        records = db.list_records(
            Tables.CATEGORIES,
            filters={"parent_id": str(parent_id)},
            order_by="name",
            order_desc=False,
        )
        return [Category.model_validate(record) for record in records]

    # Products

    def create_product(self, db: SupabaseQueryBuilder, data: ProductCreateRequest) -> Product:
        """
        Create a product in an existing category.

        Raises:
            CategoryNotFoundError: If ``category_id`` does not exist
        """
        category = self.get_category(db, data.category_id)

        now = datetime.now(UTC).isoformat()
        record = db.insert_record(
            Tables.PRODUCTS,
            {
                "id": str(uuid4()),
                "name": data.name,
                "description": data.description,
                "price": data.price,
                "category_id": str(data.category_id),
                "stock": data.stock,
                "image_url": data.image_url,
                "created_at": now,
                "updated_at": now,
            },
        )
        if not record:
            raise RuntimeError("Product insert returned no row")

        logger.info(f"Product created: {data.name}", extra={"product_id": record["id"]})
        return Product.model_validate({**record, "category": category})

    def get_product(self, db: SupabaseQueryBuilder, product_id: UUID) -> Product:
        """
        Fetch a product with its category embedded.

        Raises:
            ProductNotFoundError: If the product does not exist
        """
        record = db.get_by_id(Tables.PRODUCTS, product_id)
        if not record:
            raise ProductNotFoundError(f"Product not found: {product_id}")
        return self._with_categories(db, [record])[0]

    def list_products(self, db: SupabaseQueryBuilder) -> list[Product]:
        records = db.list_records(Tables.PRODUCTS, order_by="name", order_desc=False)
        return self._with_categories(db, records)

    def list_products_by_category(
        self, db: SupabaseQueryBuilder, category_id: UUID
    ) -> list[Product]:
        records = db.list_records(
            Tables.PRODUCTS,
            filters={"category_id": str(category_id)},
            order_by="name",
            order_desc=False,
        )
        return self._with_categories(db, records)

    def average_price(self, db: SupabaseQueryBuilder, category_id: UUID) -> CategoryPriceResponse:
        """
        Average price of the products directly in a category.

        An empty category reports an average of 0.0 over 0 products.

        Raises:
            CategoryNotFoundError: If the category does not exist
        """
        category = self.get_category(db, category_id)
        records = db.list_records(
            Tables.PRODUCTS, columns="id,price", filters={"category_id": str(category_id)}
        )
        prices = [float(record["price"]) for record in records]

        return CategoryPriceResponse(
            category_id=category.id,
            category_name=category.name,
            average_price=sum(prices) / len(prices) if prices else 0.0,
            product_count=len(prices),
        )

    def _with_categories(
        self, db: SupabaseQueryBuilder, records: list[dict]
    ) -> list[Product]:
        categories: dict[str, dict | None] = {}
        products = []
        for record in records:
            category_id = str(record["category_id"])
            if category_id not in categories:
                categories[category_id] = db.get_by_id(Tables.CATEGORIES, category_id)
            products.append(Product.model_validate({**record, "category": categories[category_id]}))
        return products
