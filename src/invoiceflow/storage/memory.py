"""In-memory invoice storage implementation for testing and development.

WARNING: This implementation stores data in memory only. All data is lost
when the process restarts, and counters are only atomic within one process.
Use ONLY for testing and development.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from invoiceflow.core.exceptions import ConflictError, NotFoundError
from invoiceflow.core.types import InvoiceStatus, utcnow
from invoiceflow.storage.base import (
    UPDATABLE_CUSTOMER_FIELDS,
    UPDATABLE_INVOICE_FIELDS,
    UPDATABLE_ORGANIZATION_FIELDS,
    InvoiceStore,
    apply_update,
    check_fields,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from invoiceflow.core.types import Customer, Invoice, InvoiceItem, Organization

logger = logging.getLogger(__name__)


class InMemoryInvoiceStore(InvoiceStore):
    """In-memory invoice storage for testing and development.

    Organization counters are guarded by one :class:`asyncio.Lock` per
    organization, so concurrent allocations inside one event loop never
    observe the same value.

    DO NOT USE IN PRODUCTION - all data is lost on restart!

    Example:
        ```python
        store = InMemoryInvoiceStore()
        org = await store.create_organization(Organization(name="Acme"))
        await store.increment_and_get_counter(org.id)   # 1
        store.clear()
        ```

    Attributes:
        _organizations: Organization id -> Organization
        _customers: Customer id -> Customer
        _invoices: Invoice id -> Invoice header
        _items: Invoice id -> items in position order
    """

    def __init__(self) -> None:
        self._organizations: dict[str, Organization] = {}
        self._customers: dict[str, Customer] = {}
        self._invoices: dict[str, Invoice] = {}
        self._items: dict[str, list[InvoiceItem]] = {}
        self._counter_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        logger.info("Initialized in-memory invoice store")

    #################
    # Organizations #
    #################

    async def create_organization(self, organization: Organization) -> Organization:
        if organization.id in self._organizations:
            raise ConflictError(f"organization id {organization.id!r} already exists")
        if organization.slug and any(
            o.slug == organization.slug for o in self._organizations.values()
        ):
            raise ConflictError(f"organization slug {organization.slug!r} already exists")

        self._organizations[organization.id] = organization
        logger.info("Created organization: %s (%s)", organization.id, organization.name)
        return organization

    async def get_organization(self, organization_id: str) -> Organization:
        if organization_id not in self._organizations:
            logger.warning("Organization not found: %s", organization_id)
            raise NotFoundError("organization", organization_id)
        return self._organizations[organization_id]

    async def update_organization(
        self, organization_id: str, fields: dict[str, Any]
    ) -> Organization:
        check_fields(fields, UPDATABLE_ORGANIZATION_FIELDS, "organization")
        organization = await self.get_organization(organization_id)
        slug = fields.get("slug")
        if slug and any(
            o.slug == slug and o.id != organization_id for o in self._organizations.values()
        ):
            raise ConflictError(f"organization slug {slug!r} already exists")

        updated = apply_update(organization, fields, "organization")
        self._organizations[organization_id] = updated
        logger.info("Updated organization: %s", organization_id)
        return updated

    async def increment_and_get_counter(self, organization_id: str) -> int:
        await self.get_organization(organization_id)
        async with self._counter_locks[organization_id]:
            organization = await self.get_organization(organization_id)
            counter = organization.invoice_counter + 1
            self._organizations[organization_id] = organization.model_copy(
                update={"invoice_counter": counter, "updated_at": utcnow()}
            )
        logger.debug("Organization %s counter -> %d", organization_id, counter)
        return counter

    #############
    # Customers #
    #############

    async def create_customer(self, customer: Customer) -> Customer:
        await self.get_organization(customer.organization_id)
        if customer.id in self._customers:
            raise ConflictError(f"customer id {customer.id!r} already exists")
        self._customers[customer.id] = customer
        logger.info("Created customer %s for organization %s", customer.id, customer.organization_id)
        return customer

    async def get_customer(self, customer_id: str) -> Customer:
        if customer_id not in self._customers:
            logger.warning("Customer not found: %s", customer_id)
            raise NotFoundError("customer", customer_id)
        return self._customers[customer_id]

    async def update_customer(self, customer_id: str, fields: dict[str, Any]) -> Customer:
        """Update a customer; invoices keep the snapshot they were created with."""
        check_fields(fields, UPDATABLE_CUSTOMER_FIELDS, "customer")
        customer = await self.get_customer(customer_id)
        updated = apply_update(customer, fields, "customer")
        self._customers[customer_id] = updated
        return updated

    async def list_customers(self, organization_id: str) -> list[Customer]:
        customers = [
            c for c in self._customers.values() if c.organization_id == organization_id
        ]
        customers.sort(key=lambda c: c.name.lower())
        return customers

    ############
    # Invoices #
    ############

    async def create_invoice_header(self, invoice: Invoice) -> Invoice:
        await self.get_organization(invoice.organization_id)
        if invoice.id in self._invoices:
            raise ConflictError(f"invoice id {invoice.id!r} already exists")
        if any(
            inv.organization_id == invoice.organization_id
            and inv.invoice_number == invoice.invoice_number
            for inv in self._invoices.values()
        ):
            raise ConflictError(
                f"invoice number {invoice.invoice_number!r} already exists "
                f"in organization {invoice.organization_id!r}"
            )

        self._invoices[invoice.id] = invoice
        self._items[invoice.id] = []
        logger.info("Created invoice header %s (%s)", invoice.id, invoice.invoice_number)
        return invoice

    async def get_invoice(self, invoice_id: str) -> Invoice:
        if invoice_id not in self._invoices:
            logger.warning("Invoice not found: %s", invoice_id)
            raise NotFoundError("invoice", invoice_id)
        logger.debug("Retrieved invoice: %s", invoice_id)
        return self._invoices[invoice_id]

    async def update_invoice_header(self, invoice_id: str, fields: dict[str, Any]) -> Invoice:
        check_fields(fields, UPDATABLE_INVOICE_FIELDS, "invoice")
        invoice = await self.get_invoice(invoice_id)
        updated = apply_update(invoice, fields, "invoice")
        self._invoices[invoice_id] = updated
        logger.info("Updated invoice header: %s", invoice_id)
        return updated

    async def update_invoice_status(
        self, invoice_id: str, expected: InvoiceStatus, status: InvoiceStatus
    ) -> Invoice | None:
        # No await between the check and the write.
        invoice = self._invoices.get(invoice_id)
        if invoice is None or invoice.status != expected:
            return None
        updated = apply_update(invoice, {"status": status}, "invoice")
        self._invoices[invoice_id] = updated
        logger.debug("Invoice %s status %s -> %s", invoice_id, expected.value, status.value)
        return updated

    async def delete_invoice(self, invoice_id: str) -> None:
        if invoice_id not in self._invoices:
            raise NotFoundError("invoice", invoice_id)
        del self._invoices[invoice_id]
        self._items.pop(invoice_id, None)
        logger.info("Deleted invoice: %s", invoice_id)

    async def list_invoices(
        self,
        organization_id: str,
        status: InvoiceStatus | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Invoice]:
        invoices = [
            inv for inv in self._invoices.values() if inv.organization_id == organization_id
        ]
        if status is not None:
            invoices = [inv for inv in invoices if inv.status == InvoiceStatus(status)]
        if search:
            needle = search.lower()
            invoices = [
                inv
                for inv in invoices
                if needle in inv.invoice_number.lower()
                or needle in (inv.customer_name or "").lower()
            ]

        invoices.sort(key=lambda inv: (inv.created_at, inv.invoice_number), reverse=True)
        result = invoices[skip : skip + limit]
        logger.debug("Listed %d invoices for organization %s", len(result), organization_id)
        return result

    async def count_invoices(self, organization_id: str) -> int:
        return sum(1 for inv in self._invoices.values() if inv.organization_id == organization_id)

    async def replace_invoice_items(
        self, invoice_id: str, items: Sequence[InvoiceItem]
    ) -> list[InvoiceItem]:
        await self.get_invoice(invoice_id)
        stored = [
            item.model_copy(update={"invoice_id": invoice_id, "position": position})
            for position, item in enumerate(items)
        ]
        self._items[invoice_id] = stored
        logger.info("Replaced items of invoice %s (%d items)", invoice_id, len(stored))
        return list(stored)

    async def list_invoice_items(self, invoice_id: str) -> list[InvoiceItem]:
        return list(self._items.get(invoice_id, []))

    def clear(self) -> None:
        """Remove everything (for testing)."""
        self._organizations.clear()
        self._customers.clear()
        self._invoices.clear()
        self._items.clear()
        self._counter_locks.clear()
        logger.info("Cleared in-memory invoice store")


__all__ = ["InMemoryInvoiceStore"]
