"""Storefront catalog API main application module.

This module builds the FastAPI application and configures core
middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.categories import router as categories_router
from storefront.api.health import router as health_router
from storefront.api.live import router as live_router
from storefront.api.middleware import setup_middleware
from storefront.api.products import router as products_router
from storefront.catalog.generator import GeneratorConfig, ProductGenerator
from storefront.catalog.reviews import ReviewService
from storefront.catalog.service import PRODUCTS, REVIEWS, CatalogService
from storefront.catalog.taxonomy import get_taxonomy
from storefront.domain.exceptions import InvalidQueryError, StoreUnavailableError, ValidationError
from storefront.infrastructure.config import Settings
from storefront.infrastructure.config import settings as default_settings
from storefront.infrastructure.logging import configure_logging
from storefront.infrastructure.memory_store import InMemoryDocumentStore
from storefront.infrastructure.sql_store import SqlDocumentStore
from storefront.infrastructure.store import DocumentStore

logger = structlog.get_logger()


# ============================================================================
# Store Setup
# ============================================================================


def seed_memory_store(store: InMemoryDocumentStore, config: GeneratorConfig) -> int:
    """Fill an in-memory store with generated products and reviews.

    Returns:
        Number of products written.
    """
    generator = ProductGenerator(config)
    count = 0
    for product in generator.generate():
        store.put(PRODUCTS, product.id, product.to_document())
        for review in generator.generate_reviews(product):
            store.put(REVIEWS, review.id, review.to_document())
        count += 1
    return count


def build_store(settings: Settings) -> DocumentStore:
    """Create the document store selected by configuration."""
    if settings.store_backend == "sql":
        return SqlDocumentStore.from_url(
            settings.database_url,
            poll_interval=settings.store_poll_interval,
            echo=settings.debug,
        )

    store = InMemoryDocumentStore()
    if settings.seed_on_startup:
        count = seed_memory_store(
            store,
            GeneratorConfig(seed=settings.seed, products_per_category=settings.products_per_category),
        )
        logger.info("Seeded in-memory catalog", product_count=count, seed=settings.seed)
    return store


# ============================================================================
# Exception Handlers
# ============================================================================


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: list | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details or [],
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "ERROR"
        message = str(detail)
        details = []

    return error_response(request, exc.status_code, error_code, message, details, exc.headers)


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Report store failures as retryable."""
    retry_after = request.app.state.settings.store_retry_after_seconds
    return error_response(
        request,
        503,
        "STORE_UNAVAILABLE",
        "The catalog is temporarily unavailable",
        [{"field": None, "message": exc.message}],
        headers={"Retry-After": str(retry_after)},
    )


async def invalid_query_handler(request: Request, exc: InvalidQueryError) -> JSONResponse:
    return error_response(
        request,
        400,
        "INVALID_QUERY",
        exc.message,
        [{"field": exc.parameter, "message": exc.details["reason"]}],
    )


async def invalid_record_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Stored data failed validation; not the client's fault."""
    logger.error("Invalid record served", path=request.url.path, error=exc.message)
    return error_response(
        request,
        500,
        "INVALID_RECORD",
        "A catalog record is malformed",
        [{"field": exc.field, "message": exc.details["reason"]}],
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return error_response(request, 500, "INTERNAL_ERROR", "An internal error occurred")


# ============================================================================
# Application Factory
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    settings: Settings = app.state.settings
    logger.info(
        "Starting storefront catalog API",
        version=settings.api_version,
        debug=settings.debug,
        store_backend=settings.store_backend,
    )

    yield

    # Shutdown
    logger.info("Shutting down storefront catalog API")
    await app.state.store.close()


def create_app(store: DocumentStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API application.

    Args:
        store: Document store to serve from; built from settings if omitted.
        settings: Configuration; the environment-loaded settings if omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or default_settings
    configure_logging(settings.log_level, settings.log_json)
    if store is None:
        store = build_store(settings)

    app = FastAPI(
        title="Storefront Catalog API",
        description="Read-only catalog queries for a digital-goods storefront",
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.store = store
    app.state.catalog_service = CatalogService(store)
    app.state.review_service = ReviewService(store)
    app.state.taxonomy = get_taxonomy()

    # CORS is added first, so it runs inside the request ID and error middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware (request ID, error handling)
    setup_middleware(app)

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(categories_router)
    app.include_router(products_router)
    app.include_router(live_router)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(InvalidQueryError, invalid_query_handler)
    app.add_exception_handler(ValidationError, invalid_record_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app


app = create_app()
