"""Custom exceptions for invoiceflow.

All exceptions derive from :class:`InvoicingError` so callers can catch the
entire family with a single ``except InvoicingError`` clause.

Hierarchy::

    InvoicingError
    ├── ValidationError
    │   └── InvalidStatusTransitionError
    ├── NotFoundError
    ├── ConflictError
    ├── OrganizationResolutionError
    └── PersistenceError
        └── InvoiceItemsWriteError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from invoiceflow.core.types import Invoice


class InvoicingError(Exception):
    """Base exception for all invoiceflow errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details: dict[str, Any] = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | details={self.details}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class ValidationError(InvoicingError):
    """Raised when an item or header field is malformed or out of range.

    Always raised before any persistence call is made.
    """

    def __init__(
        self,
        field: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"{field}: {reason}", details)
        self.field = field
        self.reason = reason


class InvalidStatusTransitionError(ValidationError):
    """Raised when a status change is not allowed from the invoice's current status."""

    def __init__(
        self,
        invoice_id: str,
        current: str,
        requested: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            "status",
            f"cannot change invoice {invoice_id!r} from {current!r} to {requested!r}",
            details,
        )
        self.invoice_id = invoice_id
        self.current = current
        self.requested = requested


class NotFoundError(InvoicingError):
    """Raised when a referenced organization, invoice or customer does not exist."""

    def __init__(
        self,
        entity: str,
        identifier: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = (
            f"{entity.capitalize()} not found: {identifier!r}"
            if identifier
            else f"{entity.capitalize()} not found"
        )
        super().__init__(message, details)
        self.entity = entity
        self.identifier = identifier


class OrganizationResolutionError(InvoicingError):
    """Raised when a request does not identify its organization."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Could not resolve organization: {reason}", details)
        self.reason = reason


class ConflictError(InvoicingError):
    """Raised when a write collides with a uniqueness constraint.

    A duplicate ``invoice_number`` within one organization lands here; the
    allocator never produces one, the store constraint is the backstop.
    """

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Conflict: {reason}", details)
        self.reason = reason


class PersistenceError(InvoicingError):
    """Raised when the storage backend fails in a way the core cannot interpret."""

    def __init__(
        self,
        operation: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Persistence operation {operation!r} failed: {reason}", details)
        self.operation = operation
        self.reason = reason


class InvoiceItemsWriteError(PersistenceError):
    """Raised when the invoice header was written but its items were not.

    On creation (``updated=False``) the header exists in the store with zero
    items. On update (``updated=True``) the header carries the new totals
    while the previous items are still stored, so the totals no longer match
    the items. ``invoice`` carries the written header either way so the
    caller can retry the update or delete the invoice.
    """

    def __init__(
        self,
        invoice: Invoice,
        reason: str,
        details: dict[str, Any] | None = None,
        *,
        updated: bool = False,
    ) -> None:
        super().__init__("replace_invoice_items", reason, details)
        self.invoice = invoice
        self.updated = updated


__all__ = [
    "ConflictError",
    "InvalidStatusTransitionError",
    "InvoiceItemsWriteError",
    "InvoicingError",
    "NotFoundError",
    "OrganizationResolutionError",
    "PersistenceError",
    "ValidationError",
]
