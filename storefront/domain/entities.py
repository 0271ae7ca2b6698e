"""Catalog records.

Product and Review are immutable records validated on construction.
Documents in the store use camelCase keys; ``from_document`` and
``to_document`` translate between the two shapes.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Self

from storefront.domain.exceptions import ValidationError


# ============================================================================
# Coercion Helpers
# ============================================================================


def as_utc(value: datetime) -> datetime:
    """Normalize a timestamp to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _decimal(value: Any, record: str, name: str, record_id: str | None) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float, str)):
        raise ValidationError(record, name, f"expected a number, got {value!r}", record_id)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(record, name, f"not a number: {value!r}", record_id) from e
    if not result.is_finite():
        raise ValidationError(record, name, "must be finite", record_id)
    return result


def _timestamp(value: Any, record: str, name: str, record_id: str | None) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValidationError(record, name, f"not a timestamp: {value!r}", record_id) from e
    if not isinstance(value, datetime):
        raise ValidationError(record, name, "timestamp is required", record_id)
    return as_utc(value)


def _whole_number(value: Any) -> Any:
    """Convert integral floats (``5.0``) to int; other values pass through."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return int(value)
    return value


def _string_list(value: Any, record: str, name: str, record_id: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(record, name, "expected a list of strings", record_id)
    return tuple(value)


def _require_text(value: Any, record: str, name: str, record_id: str | None, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        raise ValidationError(record, name, "is required", record_id)
    if not allow_empty and not value.strip():
        raise ValidationError(record, name, "must not be empty", record_id)
    return value


# ============================================================================
# Product
# ============================================================================


@dataclass(frozen=True)
class FAQ:
    """A question/answer pair shown on the product page."""

    question: str
    answer: str

    def to_dict(self) -> dict[str, str]:
        return {"question": self.question, "answer": self.answer}


@dataclass(frozen=True)
class Product:
    """A digital-goods product in the catalog.

    Attributes:
        id: Store-assigned identifier, stable for the record's lifetime.
        name: Display name.
        description: Short display text.
        price: Non-negative amount in currency units.
        image: Reference to the main display asset.
        category: Taxonomy bucket slug (exactly one per product).
        created_at: Creation timestamp, immutable after creation.
        updated_at: Advances on every mutation.
        long_description: Optional long-form text.
        original_price: Pre-sale price; never below ``price`` when on sale.
        additional_images: Extra asset references.
        popular: Popular flag.
        sale: On-sale flag.
        featured: Featured flag.
        rating: Average rating (0-5).
        review_count: Number of reviews.
        denominations: Selectable face values, in the order given.
        how_to_use: Ordered redemption instructions.
        faqs: Ordered question/answer pairs.
    """

    id: str
    name: str
    description: str
    price: Decimal
    image: str
    category: str
    created_at: datetime
    updated_at: datetime
    long_description: str | None = None
    original_price: Decimal | None = None
    additional_images: tuple[str, ...] | None = None
    popular: bool = False
    sale: bool = False
    featured: bool = False
    rating: float | None = None
    review_count: int | None = None
    denominations: tuple[Decimal, ...] | None = None
    how_to_use: tuple[str, ...] | None = None
    faqs: tuple[FAQ, ...] | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate record invariants."""
        rid = self.id if isinstance(self.id, str) else None
        _require_text(self.id, "Product", "id", rid)
        _require_text(self.name, "Product", "name", rid)
        _require_text(self.description, "Product", "description", rid, allow_empty=True)
        _require_text(self.image, "Product", "image", rid, allow_empty=True)
        _require_text(self.category, "Product", "category", rid)

        if self.price < 0:
            raise ValidationError("Product", "price", "must not be negative", rid)

        if self.sale and self.original_price is not None and self.original_price < self.price:
            raise ValidationError(
                "Product",
                "originalPrice",
                f"{self.original_price} is below sale price {self.price}",
                rid,
            )

        if self.rating is not None and not 0 <= self.rating <= 5:
            raise ValidationError("Product", "rating", "must be between 0 and 5", rid)

        if self.review_count is not None and self.review_count < 0:
            raise ValidationError("Product", "reviewCount", "must not be negative", rid)

        if self.denominations is not None:
            if not self.denominations:
                raise ValidationError("Product", "denominations", "must not be empty", rid)
            if any(d <= 0 for d in self.denominations):
                raise ValidationError("Product", "denominations", "values must be positive", rid)

        # Stored timestamps may arrive naive (e.g. from SQLite)
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "updated_at", as_utc(self.updated_at))
        if self.updated_at < self.created_at:
            raise ValidationError("Product", "updatedAt", "is earlier than createdAt", rid)

    @property
    def discount_percent(self) -> int | None:
        """Get the rounded percentage saved on a sale item.

        Returns:
            Whole-number percentage, or None when not discounted.
        """
        if not self.sale or not self.original_price or self.original_price <= self.price:
            return None
        saved = (self.original_price - self.price) / self.original_price * 100
        return int(saved.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def price_for(self, denomination: Decimal | None = None) -> Decimal:
        """Get the purchase price for a selected face value.

        Args:
            denomination: Face value chosen by the buyer, if any.

        Returns:
            The denomination when given, otherwise the list price.

        Raises:
            ValidationError: If the denomination is not offered.
        """
        if denomination is None:
            return self.price
        if not self.denominations or denomination not in self.denominations:
            raise ValidationError(
                "Product", "denominations", f"{denomination} is not offered", self.id
            )
        return denomination

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Self:
        """Create a product from a stored document.

        Args:
            doc_id: Document identifier.
            data: Document fields (camelCase keys).

        Returns:
            Validated Product.

        Raises:
            ValidationError: If the document is malformed.
        """
        original_price = data.get("originalPrice")
        rating = data.get("rating")
        review_count = data.get("reviewCount")
        denominations = data.get("denominations")
        faqs = data.get("faqs")

        if denominations is not None:
            if not isinstance(denominations, (list, tuple)):
                raise ValidationError("Product", "denominations", "expected a list", doc_id)
            denominations = tuple(
                _decimal(d, "Product", "denominations", doc_id) for d in denominations
            )

        if faqs is not None:
            try:
                faqs = tuple(FAQ(question=f["question"], answer=f["answer"]) for f in faqs)
            except (KeyError, TypeError) as e:
                raise ValidationError("Product", "faqs", "expected question/answer pairs", doc_id) from e

        if rating is not None:
            rating = float(_decimal(rating, "Product", "rating", doc_id))

        if review_count is not None and (isinstance(review_count, bool) or not isinstance(review_count, int)):
            raise ValidationError("Product", "reviewCount", "expected an integer", doc_id)

        return cls(
            id=doc_id,
            name=data.get("name"),  # type: ignore[arg-type]
            description=data.get("description"),  # type: ignore[arg-type]
            long_description=data.get("longDescription"),
            price=_decimal(data.get("price"), "Product", "price", doc_id),
            original_price=(
                _decimal(original_price, "Product", "originalPrice", doc_id)
                if original_price is not None
                else None
            ),
            image=data.get("image"),  # type: ignore[arg-type]
            additional_images=_string_list(data.get("additionalImages"), "Product", "additionalImages", doc_id),
            category=data.get("category"),  # type: ignore[arg-type]
            popular=bool(data.get("popular", False)),
            sale=bool(data.get("sale", False)),
            featured=bool(data.get("featured", False)),
            rating=rating,
            review_count=review_count,
            denominations=denominations,
            how_to_use=_string_list(data.get("howToUse"), "Product", "howToUse", doc_id),
            faqs=faqs,
            created_at=_timestamp(data.get("createdAt"), "Product", "createdAt", doc_id),
            updated_at=_timestamp(data.get("updatedAt"), "Product", "updatedAt", doc_id),
        )

    def to_document(self) -> dict[str, Any]:
        """Convert to stored document fields (id excluded).

        Returns:
            Dictionary with camelCase keys; absent optionals are omitted.
        """
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "image": self.image,
            "category": self.category,
            "popular": self.popular,
            "sale": self.sale,
            "featured": self.featured,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        optional = {
            "longDescription": self.long_description,
            "originalPrice": self.original_price,
            "additionalImages": list(self.additional_images) if self.additional_images is not None else None,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "denominations": list(self.denominations) if self.denominations is not None else None,
            "howToUse": list(self.how_to_use) if self.how_to_use is not None else None,
            "faqs": [f.to_dict() for f in self.faqs] if self.faqs is not None else None,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


# ============================================================================
# Reviews
# ============================================================================


@dataclass(frozen=True)
class Review:
    """A customer review shown on the product page."""

    id: str
    product_id: str
    user_id: str
    user_name: str
    rating: int
    date: datetime
    title: str
    content: str
    helpful: int = 0
    user_avatar: str | None = None

    def __post_init__(self) -> None:
        _require_text(self.product_id, "Review", "productId", self.id)
        if isinstance(self.rating, bool) or not isinstance(self.rating, int) or not 1 <= self.rating <= 5:
            raise ValidationError("Review", "rating", "must be an integer from 1 to 5", self.id)
        if isinstance(self.helpful, bool) or not isinstance(self.helpful, int) or self.helpful < 0:
            raise ValidationError("Review", "helpful", "must be a non-negative integer", self.id)
        object.__setattr__(self, "date", as_utc(self.date))

    def mark_helpful(self) -> Self:
        """Return a copy with the helpful counter incremented."""
        return replace(self, helpful=self.helpful + 1)

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Self:
        """Create a review from a stored document.

        Raises:
            ValidationError: If the document is malformed.
        """
        return cls(
            id=doc_id,
            product_id=data.get("productId"),  # type: ignore[arg-type]
            user_id=_require_text(data.get("userId"), "Review", "userId", doc_id),
            user_name=_require_text(data.get("userName"), "Review", "userName", doc_id, allow_empty=True),
            user_avatar=data.get("userAvatar"),
            rating=_whole_number(data.get("rating")),
            date=_timestamp(data.get("date"), "Review", "date", doc_id),
            title=_require_text(data.get("title"), "Review", "title", doc_id, allow_empty=True),
            content=_require_text(data.get("content"), "Review", "content", doc_id, allow_empty=True),
            helpful=_whole_number(data.get("helpful") or 0),
        )

    def to_document(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "productId": self.product_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "rating": self.rating,
            "date": self.date,
            "title": self.title,
            "content": self.content,
            "helpful": self.helpful,
        }
        if self.user_avatar is not None:
            data["userAvatar"] = self.user_avatar
        return data


@dataclass(frozen=True)
class RatingBucket:
    """Review count for one star value."""

    stars: int
    count: int
    percentage: int


@dataclass(frozen=True)
class ReviewSummary:
    """Aggregate of a product's reviews.

    Attributes:
        average: Mean rating rounded to one decimal.
        total: Number of reviews.
        distribution: Buckets for 5 down to 1 stars.
    """

    average: float
    total: int
    distribution: tuple[RatingBucket, ...]

    @classmethod
    def from_reviews(cls, reviews: list[Review]) -> Self | None:
        """Summarize reviews.

        Args:
            reviews: Reviews of a single product.

        Returns:
            ReviewSummary, or None when there are no reviews.
        """
        if not reviews:
            return None
        total = len(reviews)
        mean = Decimal(sum(r.rating for r in reviews)) / total
        average = float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
        distribution = []
        for stars in (5, 4, 3, 2, 1):
            count = sum(1 for r in reviews if r.rating == stars)
            percentage = int((Decimal(count * 100) / total).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
            distribution.append(RatingBucket(stars=stars, count=count, percentage=percentage))
        return cls(average=average, total=total, distribution=tuple(distribution))
