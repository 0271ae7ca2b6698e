"""Domain exceptions.

All catalog-level errors raised by records and the query layer.
Point lookups that find nothing return None; they never raise.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors should inherit from this class to allow
    catching them at the API layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Store Errors
# ============================================================================


class StoreUnavailableError(CatalogError):
    """Raised when the underlying document store call fails.

    Covers connectivity, permission and quota failures alike. Callers
    may retry; the catalog layer never does.
    """

    def __init__(self, operation: str, reason: str | None = None) -> None:
        """Initialize store unavailable error.

        Args:
            operation: Catalog operation that hit the store.
            reason: Underlying error text, if any.
        """
        message = f"Document store unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation


# ============================================================================
# Record Errors
# ============================================================================


class ValidationError(CatalogError):
    """Raised when a record does not have the expected shape."""

    def __init__(
        self,
        record_type: str,
        field: str,
        reason: str,
        record_id: str | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            record_type: Type of record (e.g., "Product", "Review").
            field: Offending field name.
            reason: Explanation of what is wrong with the field.
            record_id: ID of the record, when known.
        """
        subject = f"{record_type}({record_id})" if record_id else record_type
        super().__init__(
            f"Invalid {subject}.{field}: {reason}",
            details={
                "record_type": record_type,
                "record_id": record_id,
                "field": field,
                "reason": reason,
            },
        )
        self.field = field


# ============================================================================
# Query Errors
# ============================================================================


class InvalidQueryError(CatalogError):
    """Raised when a catalog request carries an unusable argument."""

    def __init__(self, parameter: str, reason: str) -> None:
        """Initialize invalid query error.

        Args:
            parameter: Name of the offending argument (e.g., "limit").
            reason: Why the value was rejected.
        """
        super().__init__(
            f"Invalid {parameter}: {reason}",
            details={"parameter": parameter, "reason": reason},
        )
        self.parameter = parameter
