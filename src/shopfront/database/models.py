"""Pydantic models for database entities."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class Tables:
    """Table names in the Supabase (PostgreSQL) schema."""

    CUSTOMERS = "customers"
    CATEGORIES = "categories"
    PRODUCTS = "products"
    ORDERS = "orders"
    ORDER_ITEMS = "order_items"


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Customer(BaseModel):
    """Customer model."""

    id: UUID
    email: str
    name: str
    phone: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Category(BaseModel):
    """
    Product category in a tree.

    Root categories have ``level`` 0 and ``path`` ``/<name>``; a child's level
    is its parent's plus one and its path extends the parent's path.
    """

    id: UUID
    name: str
    description: str | None = ""
    parent_id: UUID | None = None
    level: int = Field(default=0, ge=0)
    path: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Product(BaseModel):
    """Product model, with its category embedded on read."""

    id: UUID
    name: str
    description: str | None = ""
    price: float = Field(ge=0)
    category_id: UUID
    stock: int = Field(ge=0)
    image_url: str | None = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    category: Category | None = None


class OrderItem(BaseModel):
    """Order line. ``price`` is the product's unit price when the order was placed."""

    id: UUID
    order_id: UUID
    product_id: UUID
    quantity: int = Field(gt=0)
    price: float
    product: Product | None = None


class Order(BaseModel):
    """Order model."""

    id: UUID
    customer_id: UUID
    status: OrderStatus
    total: float
    created_at: datetime | None = None
    updated_at: datetime | None = None
    customer: Customer | None = None
    items: list[OrderItem] = Field(default_factory=list)
