"""Abstract invoice storage interface.

The invoicing core never talks to a database directly. It consumes this
repository interface, which has one implementation per backend
(SQLAlchemy, in-memory).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from invoiceflow.core.exceptions import ValidationError
from invoiceflow.core.types import utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence

    from invoiceflow.core.types import (
        Customer,
        Invoice,
        InvoiceItem,
        InvoiceStatus,
        Organization,
    )

ModelT = TypeVar("ModelT", bound=BaseModel)

# Header fields that update_invoice_header() accepts. Identity, numbering,
# ownership and creation time are immutable once written.
UPDATABLE_INVOICE_FIELDS: frozenset[str] = frozenset(
    {
        "customer_id",
        "customer_name",
        "customer_phone",
        "customer_email",
        "customer_address",
        "status",
        "issue_date",
        "due_date",
        "currency",
        "subtotal",
        "tax_amount",
        "discount_amount",
        "total_amount",
        "notes",
        "terms",
    }
)

UPDATABLE_ORGANIZATION_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "slug",
        "email",
        "phone",
        "address",
        "invoice_terms",
        "invoice_additional_info",
    }
)


UPDATABLE_CUSTOMER_FIELDS: frozenset[str] = frozenset({"name", "email", "phone", "address"})


class InvoiceStore(ABC):
    """Abstract base class for invoice storage implementations.

    Implementations:
    - SQLAlchemyInvoiceStore: PostgreSQL / SQLite via async SQLAlchemy
    - InMemoryInvoiceStore: Testing and development

    Error contract:
    - unknown ids raise :class:`~invoiceflow.core.exceptions.NotFoundError`
    - uniqueness violations raise :class:`~invoiceflow.core.exceptions.ConflictError`
    - any other backend failure raises
      :class:`~invoiceflow.core.exceptions.PersistenceError`

    Example:
        ```python
        store = SQLAlchemyInvoiceStore(database_url="sqlite+aiosqlite:///:memory:")
        await store.initialize()

        org = await store.create_organization(Organization(name="Acme"))
        counter = await store.increment_and_get_counter(org.id)   # 1
        ```
    """

    #################
    # Organizations #
    #################

    @abstractmethod
    async def create_organization(self, organization: Organization) -> Organization:
        """Insert a new organization.

        Raises:
            ConflictError: If the id or slug is already taken
        """

    @abstractmethod
    async def get_organization(self, organization_id: str) -> Organization:
        """Get organization by id.

        Raises:
            NotFoundError: If the organization does not exist
        """

    @abstractmethod
    async def update_organization(
        self, organization_id: str, fields: dict[str, Any]
    ) -> Organization:
        """Update settings of an organization (never its counter).

        Raises:
            NotFoundError: If the organization does not exist
            ValueError: If *fields* names a non-updatable column
        """

    @abstractmethod
    async def increment_and_get_counter(self, organization_id: str) -> int:
        """Atomically increment the organization's invoice counter and return it.

        Two concurrent calls for the same organization must observe distinct
        values. This is the only operation in the store that needs mutual
        exclusion.

        Raises:
            NotFoundError: If the organization does not exist
        """

    #############
    # Customers #
    #############

    @abstractmethod
    async def create_customer(self, customer: Customer) -> Customer:
        """Insert a customer.

        Raises:
            NotFoundError: If the owning organization does not exist
        """

    @abstractmethod
    async def get_customer(self, customer_id: str) -> Customer:
        """Get customer by id.

        Raises:
            NotFoundError: If the customer does not exist
        """

    @abstractmethod
    async def update_customer(self, customer_id: str, fields: dict[str, Any]) -> Customer:
        """Update a customer record.

        Invoices that already reference the customer keep their snapshot.

        Raises:
            NotFoundError: If the customer does not exist
            ValueError: If *fields* names a non-updatable column
        """

    @abstractmethod
    async def list_customers(self, organization_id: str) -> list[Customer]:
        """List an organization's customers ordered by name."""

    ############
    # Invoices #
    ############

    @abstractmethod
    async def create_invoice_header(self, invoice: Invoice) -> Invoice:
        """Insert an invoice header without items.

        Raises:
            NotFoundError: If the owning organization does not exist
            ConflictError: If ``invoice_number`` is already used in the organization
        """

    @abstractmethod
    async def get_invoice(self, invoice_id: str) -> Invoice:
        """Get invoice header by id.

        Raises:
            NotFoundError: If the invoice does not exist
        """

    @abstractmethod
    async def update_invoice_header(self, invoice_id: str, fields: dict[str, Any]) -> Invoice:
        """Apply *fields* to the header and bump ``updated_at``.

        Raises:
            NotFoundError: If the invoice does not exist
            ValidationError: If the updated header is not a valid invoice
            ValueError: If *fields* names an immutable column
        """

    @abstractmethod
    async def update_invoice_status(
        self, invoice_id: str, expected: InvoiceStatus, status: InvoiceStatus
    ) -> Invoice | None:
        """Set *status* only if the stored status is still *expected*.

        The check and the write are one atomic step, so two concurrent
        changes from the same status cannot both succeed.

        Returns:
            The updated header, or None if the status is no longer *expected*
            (or the invoice is gone)
        """

    @abstractmethod
    async def delete_invoice(self, invoice_id: str) -> None:
        """Delete the invoice and all of its items.

        Raises:
            NotFoundError: If the invoice does not exist
        """

    @abstractmethod
    async def list_invoices(
        self,
        organization_id: str,
        status: InvoiceStatus | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Invoice]:
        """List an organization's invoices, newest first.

        Args:
            organization_id: Owning organization
            status: Optional status filter
            search: Case-insensitive substring of invoice number or customer name
            skip: Number of invoices to skip (pagination)
            limit: Maximum number of invoices to return
        """

    @abstractmethod
    async def replace_invoice_items(
        self, invoice_id: str, items: Sequence[InvoiceItem]
    ) -> list[InvoiceItem]:
        """Delete every item of the invoice, then insert *items*.

        Raises:
            NotFoundError: If the invoice does not exist
        """

    @abstractmethod
    async def list_invoice_items(self, invoice_id: str) -> list[InvoiceItem]:
        """Return the invoice's items in position order (empty if none or unknown)."""

    async def count_invoices(self, organization_id: str) -> int:
        """Count an organization's invoices.

        Default implementation lists them; backends should override.
        """
        return len(await self.list_invoices(organization_id, limit=1_000_000))

    async def initialize(self) -> None:  # noqa: B027
        """Prepare the backend (create tables …). No-op by default."""

    async def close(self) -> None:  # noqa: B027
        """Release backend resources. No-op by default."""


def check_fields(fields: dict[str, Any], allowed: frozenset[str], entity: str) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Cannot update {entity} field(s): {', '.join(sorted(unknown))}")


def apply_update(current: ModelT, fields: dict[str, Any], entity: str) -> ModelT:
    """Return *current* with *fields* applied and ``updated_at`` refreshed.

    The result is validated as a whole model, so cross-field rules such as
    the invoice total hold before anything is stored.

    Raises:
        ValidationError: If the updated entity is not a valid model
    """
    try:
        return type(current).model_validate(
            {**current.model_dump(), **fields, "updated_at": utcnow()}
        )
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"{entity}.{loc}" if loc else entity, first["msg"]) from exc


__all__ = [
    "UPDATABLE_CUSTOMER_FIELDS",
    "UPDATABLE_INVOICE_FIELDS",
    "UPDATABLE_ORGANIZATION_FIELDS",
    "InvoiceStore",
    "apply_update",
    "check_fields",
]
