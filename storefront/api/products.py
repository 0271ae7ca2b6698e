"""Product API endpoints.

Provides read-only endpoints for product listings, search, details,
related products and reviews.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from storefront.api.schemas import (
    ErrorResponse,
    FAQSchema,
    ProductListResponse,
    ProductResponse,
    RatingBucketSchema,
    ReviewListResponse,
    ReviewResponse,
    ReviewSummarySchema,
)
from storefront.catalog.reviews import ReviewService
from storefront.catalog.service import CatalogService
from storefront.domain.entities import Product, Review, ReviewSummary

router = APIRouter(prefix="/products", tags=["Products"])

ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_catalog_service(request: Request) -> CatalogService:
    """Get the catalog service bound to the application."""
    return request.app.state.catalog_service


def get_review_service(request: Request) -> ReviewService:
    """Get the review service bound to the application."""
    return request.app.state.review_service


# ============================================================================
# Converters
# ============================================================================


def product_to_response(product: Product) -> ProductResponse:
    """Convert Product record to response schema."""
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        long_description=product.long_description,
        price=product.price,
        original_price=product.original_price,
        discount_percent=product.discount_percent,
        image=product.image,
        additional_images=list(product.additional_images) if product.additional_images is not None else None,
        category=product.category,
        popular=product.popular,
        sale=product.sale,
        featured=product.featured,
        rating=product.rating,
        review_count=product.review_count,
        denominations=list(product.denominations) if product.denominations is not None else None,
        how_to_use=list(product.how_to_use) if product.how_to_use is not None else None,
        faqs=(
            [FAQSchema(question=f.question, answer=f.answer) for f in product.faqs]
            if product.faqs is not None
            else None
        ),
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def products_to_response(products: list[Product]) -> ProductListResponse:
    return ProductListResponse(
        items=[product_to_response(p) for p in products],
        count=len(products),
    )


def review_to_response(review: Review) -> ReviewResponse:
    """Convert Review record to response schema."""
    return ReviewResponse(
        id=review.id,
        product_id=review.product_id,
        user_id=review.user_id,
        user_name=review.user_name,
        user_avatar=review.user_avatar,
        rating=review.rating,
        date=review.date,
        title=review.title,
        content=review.content,
        helpful=review.helpful,
    )


def summary_to_response(summary: ReviewSummary) -> ReviewSummarySchema:
    return ReviewSummarySchema(
        average=summary.average,
        total=summary.total,
        distribution=[
            RatingBucketSchema(stars=b.stars, count=b.count, percentage=b.percentage)
            for b in summary.distribution
        ],
    )


async def require_product(service: CatalogService, product_id: str) -> Product:
    """Load a product or raise 404."""
    product = await service.get_product(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error_code": "PRODUCT_NOT_FOUND",
                "message": f"Product not found: {product_id}",
            },
        )
    return product


# ============================================================================
# Listing Endpoints
# ============================================================================


@router.get(
    "/featured",
    response_model=ProductListResponse,
    responses=ERROR_RESPONSES,
    summary="Featured products",
)
async def list_featured(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    limit: int = Query(default=4, ge=1, le=100),
) -> ProductListResponse:
    """List featured products, newest first."""
    return products_to_response(await service.get_featured_products(limit))


@router.get(
    "/popular",
    response_model=ProductListResponse,
    responses=ERROR_RESPONSES,
    summary="Popular products",
)
async def list_popular(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    limit: int = Query(default=4, ge=1, le=100),
) -> ProductListResponse:
    """List popular products, best rated first."""
    return products_to_response(await service.get_popular_products(limit))


@router.get(
    "/sale",
    response_model=ProductListResponse,
    responses=ERROR_RESPONSES,
    summary="Products on sale",
)
async def list_sale(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    limit: int = Query(default=4, ge=1, le=100),
) -> ProductListResponse:
    """List products on sale, newest first."""
    return products_to_response(await service.get_sale_products(limit))


@router.get(
    "/search",
    response_model=ProductListResponse,
    responses=ERROR_RESPONSES,
    summary="Search products",
    description="Case-insensitive substring match on product name and description.",
)
async def search_products(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    q: str = Query(..., min_length=1, description="Search term"),
    limit: int = Query(default=10, ge=1, le=100),
) -> ProductListResponse:
    """Search products by name or description.

    Args:
        service: Catalog service.
        q: Search term.
        limit: Maximum number of matches.

    Returns:
        Matching products in catalog order.
    """
    return products_to_response(await service.search_products(q, limit))


# ============================================================================
# Detail Endpoints
# ============================================================================


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Get product details",
)
async def get_product(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_catalog_service)],
) -> ProductResponse:
    """Get a product by ID.

    Args:
        product_id: Product identifier.
        service: Catalog service.

    Returns:
        Product details.

    Raises:
        HTTPException: If product not found.
    """
    return product_to_response(await require_product(service, product_id))


@router.get(
    "/{product_id}/related",
    response_model=ProductListResponse,
    responses={404: {"model": ErrorResponse}, **ERROR_RESPONSES},
    summary="Related products",
    description="Other products from the same category, newest first.",
)
async def list_related(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    limit: int = Query(default=3, ge=1, le=100),
) -> ProductListResponse:
    """List products related to a product."""
    product = await require_product(service, product_id)
    related = await service.get_related_products(product.id, product.category, limit)
    return products_to_response(related)


@router.get(
    "/{product_id}/reviews",
    response_model=ReviewListResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Product reviews",
)
async def list_reviews(
    product_id: str,
    reviews: Annotated[ReviewService, Depends(get_review_service)],
) -> ReviewListResponse:
    """List a product's reviews, newest first, with their summary.

    A product without reviews gets an empty list and no summary.
    """
    items = await reviews.get_reviews(product_id)
    summary = reviews.summarize(items)
    return ReviewListResponse(
        items=[review_to_response(r) for r in items],
        summary=summary_to_response(summary) if summary else None,
    )
