"""Product review reads for the product detail page."""

import structlog

from storefront.catalog.service import REVIEWS, translate_store_errors
from storefront.domain.entities import Review, ReviewSummary
from storefront.domain.exceptions import ValidationError
from storefront.infrastructure.store import DocumentStore, Query

logger = structlog.get_logger()


class ReviewService:
    """Service for product reviews.

    Example usage:
        service = ReviewService(store)
        reviews = await service.get_reviews("p1")
        summary = service.summarize(reviews)
    """

    def __init__(self, store: DocumentStore) -> None:
        """Initialize service with a document store.

        Args:
            store: Document store holding the reviews collection.
        """
        self.store = store

    async def get_reviews(self, product_id: str) -> list[Review]:
        """Get a product's reviews, newest first.

        Args:
            product_id: Product ID.

        Returns:
            Reviews; malformed review documents are skipped.
        """
        query = Query(REVIEWS).where("productId", "==", product_id).order("date", descending=True)
        with translate_store_errors("get_reviews", product_id=product_id):
            documents = await self.store.query(query)

        reviews = []
        for document in documents:
            try:
                reviews.append(Review.from_document(document.id, document.data))
            except ValidationError as e:
                logger.warning("Skipping malformed review", review_id=document.id, error=e.message)
        return reviews

    @staticmethod
    def summarize(reviews: list[Review]) -> ReviewSummary | None:
        """Summarize reviews; None when there are none."""
        return ReviewSummary.from_reviews(reviews)

    @staticmethod
    def mark_helpful(review: Review) -> Review:
        """Count a helpful vote without persisting it.

        Returns:
            Copy of the review with the counter incremented.
        """
        updated = review.mark_helpful()
        logger.debug("Review marked helpful", review_id=review.id, helpful=updated.helpful)
        return updated
