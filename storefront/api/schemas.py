"""API schemas for the storefront catalog API.

Pydantic models for response serialization.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Product Schemas
# ============================================================================


class FAQSchema(BaseModel):
    """Question and answer pair."""

    question: str
    answer: str


class ProductResponse(BaseModel):
    """Product details."""

    id: str = Field(..., description="Product ID")
    name: str
    description: str
    long_description: str | None = None
    price: Decimal = Field(..., description="Price in currency units")
    original_price: Decimal | None = Field(default=None, description="Price before the sale")
    discount_percent: int | None = Field(default=None, description="Rounded percentage saved")
    image: str
    additional_images: list[str] | None = None
    category: str = Field(..., description="Category slug")
    popular: bool = False
    sale: bool = False
    featured: bool = False
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    denominations: list[Decimal] | None = Field(
        default=None, description="Selectable face values overriding price"
    )
    how_to_use: list[str] | None = None
    faqs: list[FAQSchema] | None = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """List of products."""

    items: list[ProductResponse]
    count: int = Field(..., description="Number of items returned")


class ProductPageResponse(BaseModel):
    """One page of a category listing."""

    items: list[ProductResponse]
    next_cursor: str | None = Field(
        default=None, description="Cursor for the next page, null on the last page"
    )
    has_more: bool = Field(..., description="Whether a next page may exist")


# ============================================================================
# Review Schemas
# ============================================================================


class ReviewResponse(BaseModel):
    """Customer review."""

    id: str
    product_id: str
    user_id: str
    user_name: str
    user_avatar: str | None = None
    rating: int = Field(..., ge=1, le=5)
    date: datetime
    title: str
    content: str
    helpful: int = Field(default=0, ge=0)


class RatingBucketSchema(BaseModel):
    """Review count for one star value."""

    stars: int
    count: int
    percentage: int


class ReviewSummarySchema(BaseModel):
    """Aggregate rating information."""

    average: float
    total: int
    distribution: list[RatingBucketSchema]


class ReviewListResponse(BaseModel):
    """Reviews of a product with their summary."""

    items: list[ReviewResponse]
    summary: ReviewSummarySchema | None = None


# ============================================================================
# Category Schemas
# ============================================================================


class CategorySchema(BaseModel):
    """Storefront category."""

    slug: str
    name: str
    full_path: str
    children: list["CategorySchema"] = Field(default_factory=list)


class CategoryListResponse(BaseModel):
    """Category tree, grouped by section."""

    sections: list[CategorySchema]
