"""Pagination cursors.

A cursor marks a position in the category listing, which is ordered by
``createdAt`` descending with the product id as tie-breaker. Cursors
travel to clients as opaque URL-safe tokens.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Self

from storefront.domain.entities import Product, as_utc
from storefront.domain.exceptions import InvalidQueryError
from storefront.infrastructure.store import Document


@dataclass(frozen=True)
class ProductCursor:
    """Position of a product in the category listing.

    Attributes:
        created_at: Creation time of the last product seen.
        product_id: ID of the last product seen.
    """

    created_at: datetime
    product_id: str

    @classmethod
    def after(cls, product: Product) -> Self:
        """Build the cursor that resumes right after a product."""
        return cls(created_at=as_utc(product.created_at), product_id=product.id)

    @classmethod
    def from_document(cls, document: Document) -> Self:
        """Build the cursor that resumes right after a stored document."""
        created_at = document.get("createdAt")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(created_at=as_utc(created_at), product_id=document.id)

    def values(self) -> tuple[Any, ...]:
        """Get keyset values aligned with the listing's ordering."""
        return (self.created_at, self.product_id)

    def encode(self) -> str:
        """Encode as an opaque token.

        Returns:
            URL-safe base64 string without padding.
        """
        payload = json.dumps(
            {"t": self.created_at.isoformat(), "id": self.product_id},
            separators=(",", ":"),
        )
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> Self:
        """Decode a token produced by ``encode``.

        Args:
            token: Opaque cursor string.

        Returns:
            ProductCursor instance.

        Raises:
            InvalidQueryError: If the token is malformed.
        """
        padded = token + "=" * (-len(token) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
            created_at = datetime.fromisoformat(payload["t"])
            product_id = payload["id"]
        except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
            raise InvalidQueryError("cursor", "malformed pagination cursor") from e
        if not isinstance(product_id, str) or not product_id:
            raise InvalidQueryError("cursor", "malformed pagination cursor")
        return cls(created_at=as_utc(created_at), product_id=product_id)

    def __str__(self) -> str:
        return self.encode()
