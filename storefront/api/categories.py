"""Category API endpoints.

Provides the category tree and paginated category listings.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from storefront.api.products import get_catalog_service, product_to_response
from storefront.api.schemas import (
    CategoryListResponse,
    CategorySchema,
    ErrorResponse,
    ProductPageResponse,
)
from storefront.catalog.service import CatalogService
from storefront.catalog.taxonomy import Category, Taxonomy

router = APIRouter(prefix="/categories", tags=["Categories"])


def get_taxonomy_dep(request: Request) -> Taxonomy:
    """Get the taxonomy bound to the application."""
    return request.app.state.taxonomy


def category_to_schema(category: Category) -> CategorySchema:
    return CategorySchema(
        slug=category.slug,
        name=category.name,
        full_path=category.full_path,
        children=[category_to_schema(c) for c in category.children],
    )


@router.get("", response_model=CategoryListResponse, summary="Category tree")
async def list_categories(
    taxonomy: Annotated[Taxonomy, Depends(get_taxonomy_dep)],
) -> CategoryListResponse:
    """List storefront sections with their categories."""
    return CategoryListResponse(
        sections=[category_to_schema(s) for s in taxonomy.get_sections()],
    )


@router.get(
    "/{category}/products",
    response_model=ProductPageResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Category listing page",
    description=(
        "Newest products of a category. Pass the returned next_cursor "
        "to fetch the following page."
    ),
)
async def list_category_products(
    category: str,
    service: Annotated[CatalogService, Depends(get_catalog_service)],
    limit: int = Query(default=6, ge=1, le=100),
    cursor: str | None = Query(default=None, description="Opaque pagination cursor"),
) -> ProductPageResponse:
    """Get one page of a category listing.

    Args:
        category: Category slug.
        service: Catalog service.
        limit: Page size.
        cursor: Cursor from the previous page, if any.

    Returns:
        Page of products with the cursor for the next page.
    """
    page = await service.get_next_products_batch(category, cursor=cursor, limit=limit)
    return ProductPageResponse(
        items=[product_to_response(p) for p in page.products],
        next_cursor=page.next_cursor.encode() if page.next_cursor else None,
        has_more=page.next_cursor is not None,
    )
