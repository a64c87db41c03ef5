"""Request and response validators for catalog endpoints."""

from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreateRequest(BaseModel):
    """Request model for creating a category."""

    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    parent_id: UUID | None = Field(None, description="Parent category; omit for a root category")


class ProductCreateRequest(BaseModel):
    """Request model for creating a product."""

    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    price: float = Field(ge=0)
    category_id: UUID
    stock: int = Field(default=0, ge=0)
    image_url: str = ""

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "name": "Espresso Machine",
                "description": "15 bar pump",
                "price": 12500.0,
                "category_id": "5b0c8f2e-9b1e-4c55-8d7a-2f6f0f3b9a11",
                "stock": 10,
                "image_url": "https://cdn.example.com/espresso.jpg",
            }
        }


class CategoryPriceResponse(BaseModel):
    """Average product price within one category."""

    category_id: UUID
    category_name: str
    average_price: float
    product_count: int
