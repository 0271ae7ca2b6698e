"""Domain layer for the storefront catalog.

Exports catalog records and the exception taxonomy.
"""

from storefront.domain.entities import FAQ, Product, RatingBucket, Review, ReviewSummary
from storefront.domain.exceptions import (
    CatalogError,
    InvalidQueryError,
    StoreUnavailableError,
    ValidationError,
)

__all__ = [
    # Records
    "FAQ",
    "Product",
    "RatingBucket",
    "Review",
    "ReviewSummary",
    # Exceptions
    "CatalogError",
    "InvalidQueryError",
    "StoreUnavailableError",
    "ValidationError",
]
