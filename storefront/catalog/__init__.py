"""Product Catalog Service.

Provides catalog queries, live subscriptions, search, reviews and the
storefront taxonomy over a pluggable document store.
"""

from storefront.catalog.cursor import ProductCursor
from storefront.catalog.generator import GeneratorConfig, ProductGenerator
from storefront.catalog.reviews import ReviewService
from storefront.catalog.search import LinearScanSearch, SearchBackend
from storefront.catalog.service import CatalogService, ProductPage
from storefront.catalog.subscriptions import Subscription, SubscriptionState, SubscriptionStream
from storefront.catalog.taxonomy import Category, Taxonomy, get_taxonomy

__all__ = [
    # Taxonomy
    "Category",
    "Taxonomy",
    "get_taxonomy",
    # Generator
    "GeneratorConfig",
    "ProductGenerator",
    # Queries
    "CatalogService",
    "ProductCursor",
    "ProductPage",
    # Search
    "LinearScanSearch",
    "SearchBackend",
    # Subscriptions
    "Subscription",
    "SubscriptionState",
    "SubscriptionStream",
    # Reviews
    "ReviewService",
]
