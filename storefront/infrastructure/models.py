"""SQLAlchemy models backing the SQL document store.

Each table stores one collection. Columns mirror the document fields;
``FIELD_COLUMNS`` maps camelCase document keys to column attributes so
logical queries can be translated to SQL.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Self

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront.infrastructure.database import Base
from storefront.infrastructure.store import DOCUMENT_ID, Document


def _utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DocumentRowMixin:
    """Conversion between table rows and documents."""

    FIELD_COLUMNS: ClassVar[dict[str, str]] = {}
    # Fields that are always present in the document, even when false
    REQUIRED_FIELDS: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def column_for(cls, field_name: str) -> Any:
        """Get the mapped column for a document field.

        Raises:
            KeyError: If the collection has no such field.
        """
        if field_name == DOCUMENT_ID:
            return cls.id  # type: ignore[attr-defined]
        return getattr(cls, cls.FIELD_COLUMNS[field_name])

    def to_document(self) -> Document:
        data: dict[str, Any] = {}
        for key, attr in self.FIELD_COLUMNS.items():
            value = _utc(getattr(self, attr))
            if value is not None or key in self.REQUIRED_FIELDS:
                data[key] = value
        doc_id = self.id  # type: ignore[attr-defined]
        return Document(id=doc_id, data=self._decode(data))

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Self:
        row = cls(id=doc_id)
        encoded = cls._encode(dict(data))
        for key, attr in cls.FIELD_COLUMNS.items():
            setattr(row, attr, encoded.get(key))
        return row

    @classmethod
    def _encode(cls, data: dict[str, Any]) -> dict[str, Any]:
        return data

    @classmethod
    def _decode(cls, data: dict[str, Any]) -> dict[str, Any]:
        return data


class ProductRow(DocumentRowMixin, Base):
    """Row in the products collection."""

    __tablename__ = "products"

    FIELD_COLUMNS = {
        "name": "name",
        "description": "description",
        "longDescription": "long_description",
        "price": "price",
        "originalPrice": "original_price",
        "image": "image",
        "additionalImages": "additional_images",
        "category": "category",
        "popular": "popular",
        "sale": "sale",
        "featured": "featured",
        "rating": "rating",
        "reviewCount": "review_count",
        "denominations": "denominations",
        "howToUse": "how_to_use",
        "faqs": "faqs",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }
    REQUIRED_FIELDS = frozenset({"popular", "sale", "featured"})

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    long_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    additional_images: Mapped[list | None] = mapped_column(JSON, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    sale: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    review_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    denominations: Mapped[list | None] = mapped_column(JSON, nullable=True)
    how_to_use: Mapped[list | None] = mapped_column(JSON, nullable=True)
    faqs: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductRow(id={self.id}, category={self.category})>"

    @classmethod
    def _encode(cls, data: dict[str, Any]) -> dict[str, Any]:
        # JSON columns cannot hold Decimal
        if data.get("denominations") is not None:
            data["denominations"] = [str(d) for d in data["denominations"]]
        for key in ("popular", "sale", "featured"):
            data[key] = bool(data.get(key, False))
        return data

    @classmethod
    def _decode(cls, data: dict[str, Any]) -> dict[str, Any]:
        if data.get("denominations") is not None:
            data["denominations"] = [Decimal(d) for d in data["denominations"]]
        return data


class ReviewRow(DocumentRowMixin, Base):
    """Row in the reviews collection."""

    __tablename__ = "reviews"

    FIELD_COLUMNS = {
        "productId": "product_id",
        "userId": "user_id",
        "userName": "user_name",
        "userAvatar": "user_avatar",
        "rating": "rating",
        "date": "date",
        "title": "title",
        "content": "content",
        "helpful": "helpful",
    }

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    product_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    user_avatar: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    helpful: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ReviewRow(id={self.id}, product_id={self.product_id})>"


COLLECTION_MODELS: dict[str, type[DocumentRowMixin]] = {
    "products": ProductRow,
    "reviews": ReviewRow,
}
