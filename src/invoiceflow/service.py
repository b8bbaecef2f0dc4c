"""Invoice operations exposed to the presentation layer.

:class:`InvoiceService` ties the pieces together: boundary validation, the
calculator, the number allocator, the status machine and the store. Every
input is validated before the first write; a malformed item is reported with
its position (``items[1].quantity: must be greater than 0``).

Creation is two writes, header then items, with no transaction spanning
them. If the item write fails the header stays behind with zero items and
:class:`~invoiceflow.core.exceptions.InvoiceItemsWriteError` carries it back
to the caller, who may retry :meth:`InvoiceService.update_invoice` or delete
the invoice.
An update that fails the same way leaves the new header totals next to the
previous items.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, NoReturn

from pydantic import ValidationError as PydanticValidationError

from invoiceflow.calculator import compute_invoice_totals, price_items
from invoiceflow.core.exceptions import (
    InvoiceItemsWriteError,
    NotFoundError,
    ValidationError,
)
from invoiceflow.core.types import (
    Customer,
    CustomerSnapshot,
    DashboardSummary,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    InvoiceWithItems,
    LineItemInput,
    Organization,
)
from invoiceflow.dashboard import summarize
from invoiceflow.numbering import InvoiceNumberAllocator
from invoiceflow.status import ensure_transition
from invoiceflow.utils.validation import (
    slugify,
    validate_currency,
    validate_email,
    validate_slug,
)

if TYPE_CHECKING:
    from invoiceflow.core.config import InvoicingConfig
    from invoiceflow.storage.base import InvoiceStore

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "INR"
DEFAULT_DUE_DAYS = 30
DEFAULT_RECENT_LIMIT = 5

CustomerInput = CustomerSnapshot | Mapping[str, Any] | None
ItemInput = LineItemInput | Mapping[str, Any]


def _reason(error: Mapping[str, Any]) -> str:
    """Turn one pydantic error entry into a short, field-free reason."""
    if error["type"] == "missing":
        return "is required"
    msg = str(error["msg"])
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    if msg.startswith("Input should be "):
        msg = "must be " + msg[len("Input should be "):]
    if msg.startswith("String should have at least 1 character"):
        msg = "must not be empty"
    return msg


def _raise_first(exc: PydanticValidationError, prefix: str) -> NoReturn:
    errors = exc.errors()
    first = errors[0]
    loc = ".".join(str(part) for part in first["loc"])
    field = f"{prefix}.{loc}" if loc else prefix
    raise ValidationError(
        field,
        _reason(first),
        details={"errors": [
            {"field": ".".join(str(p) for p in e["loc"]), "reason": _reason(e)}
            for e in errors
        ]},
    ) from exc


def validate_items(items: Sequence[ItemInput] | None) -> list[LineItemInput]:
    """Validate draft line items.

    Raises:
        ValidationError: If the list is empty or any item is out of range;
            the field names the item position, e.g. ``items[0].tax_rate``
    """
    if not items:
        raise ValidationError("items", "at least one line item is required")
    validated: list[LineItemInput] = []
    for index, item in enumerate(items):
        if isinstance(item, LineItemInput):
            validated.append(item)
            continue
        try:
            validated.append(LineItemInput.model_validate(item))
        except PydanticValidationError as exc:
            _raise_first(exc, f"items[{index}]")
    return validated


def coerce_customer(customer: CustomerInput) -> CustomerSnapshot:
    """Normalise *customer* into a :class:`CustomerSnapshot` and check the email."""
    if customer is None:
        snapshot = CustomerSnapshot()
    elif isinstance(customer, CustomerSnapshot):
        snapshot = customer
    else:
        try:
            snapshot = CustomerSnapshot.model_validate(dict(customer))
        except PydanticValidationError as exc:
            _raise_first(exc, "customer")
    if snapshot.email and not validate_email(snapshot.email):
        raise ValidationError("customer.email", "must be a valid email address")
    return snapshot


class InvoiceService:
    """Create, edit, transition and report on invoices.

    Example:
        ```python
        store = InMemoryInvoiceStore()
        service = InvoiceService(store)

        org = await service.create_organization(name="Acme Traders")
        invoice = await service.create_invoice(
            org.id,
            customer={"name": "Globex", "email": "ap@globex.test"},
            items=[{"description": "Widgets", "quantity": 2, "unit_price": 100, "tax_rate": 18}],
        )
        invoice.invoice_number   # "INV-0001"
        invoice.total_amount     # Decimal("236")
        ```

    Args:
        store: Persistence backend
        config: Optional configuration supplying numbering and invoice defaults
        allocator: Override the allocator built from *store* and *config*
    """

    def __init__(
        self,
        store: InvoiceStore,
        config: InvoicingConfig | None = None,
        allocator: InvoiceNumberAllocator | None = None,
    ) -> None:
        self.store = store
        self.config = config
        if allocator is not None:
            self.allocator = allocator
        elif config is not None:
            self.allocator = InvoiceNumberAllocator.from_config(store, config)
        else:
            self.allocator = InvoiceNumberAllocator(store)

        self.default_currency = config.default_currency if config else DEFAULT_CURRENCY
        self.default_due_days = config.default_due_days if config else DEFAULT_DUE_DAYS
        self.recent_limit = config.recent_invoices_limit if config else DEFAULT_RECENT_LIMIT

    #################
    # Organizations #
    #################

    async def create_organization(
        self,
        name: str,
        *,
        slug: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        invoice_terms: str | None = None,
        invoice_additional_info: str | None = None,
    ) -> Organization:
        """Register a new organization with a zero invoice counter.

        Without a *slug* one is derived from *name* when the name yields a
        valid slug; the derived slug must be unique like an explicit one.

        Raises:
            ValidationError: If name, slug or email is malformed
            ConflictError: If the slug is taken
        """
        if slug is not None and not validate_slug(slug):
            raise ValidationError(
                "slug", "must be 3-63 lowercase letters, digits or hyphens"
            )
        if email and not validate_email(email):
            raise ValidationError("email", "must be a valid email address")
        if slug is None and validate_slug(slugify(name or "")):
            slug = slugify(name)
        try:
            organization = Organization(
                name=name,
                slug=slug,
                email=email,
                phone=phone,
                address=address,
                invoice_terms=invoice_terms,
                invoice_additional_info=invoice_additional_info,
            )
        except PydanticValidationError as exc:
            _raise_first(exc, "organization")
        return await self.store.create_organization(organization)

    async def get_organization(self, organization_id: str) -> Organization:
        return await self.store.get_organization(organization_id)

    async def update_organization(
        self, organization_id: str, fields: Mapping[str, Any]
    ) -> Organization:
        """Update organization settings such as default terms.

        The invoice counter is not a settable field.
        """
        changes = dict(fields)
        if "invoice_counter" in changes:
            raise ValidationError("invoice_counter", "is managed by the number allocator")
        if changes.get("slug") is not None and not validate_slug(changes["slug"]):
            raise ValidationError(
                "slug", "must be 3-63 lowercase letters, digits or hyphens"
            )
        if changes.get("email") and not validate_email(changes["email"]):
            raise ValidationError("email", "must be a valid email address")
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("name", "must not be empty")
        try:
            return await self.store.update_organization(organization_id, changes)
        except ValueError as exc:
            raise ValidationError("organization", str(exc)) from exc

    #############
    # Customers #
    #############

    async def create_customer(
        self,
        organization_id: str,
        name: str,
        *,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> Customer:
        if email and not validate_email(email):
            raise ValidationError("email", "must be a valid email address")
        try:
            customer = Customer(
                organization_id=organization_id,
                name=name,
                email=email,
                phone=phone,
                address=address,
            )
        except PydanticValidationError as exc:
            _raise_first(exc, "customer")
        if not customer.name.strip():
            raise ValidationError("customer.name", "must not be empty")
        return await self.store.create_customer(customer)

    async def update_customer(
        self,
        customer_id: str,
        fields: Mapping[str, Any],
        organization_id: str | None = None,
    ) -> Customer:
        """Edit a customer record; existing invoices keep their snapshot."""
        changes = dict(fields)
        if changes.get("email") and not validate_email(changes["email"]):
            raise ValidationError("email", "must be a valid email address")
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("name", "must not be empty")
        await self.get_customer(customer_id, organization_id)
        try:
            return await self.store.update_customer(customer_id, changes)
        except ValueError as exc:
            raise ValidationError("customer", str(exc)) from exc

    async def get_customer(
        self, customer_id: str, organization_id: str | None = None
    ) -> Customer:
        customer = await self.store.get_customer(customer_id)
        if organization_id is not None and customer.organization_id != organization_id:
            raise NotFoundError("customer", customer_id)
        return customer

    async def list_customers(self, organization_id: str) -> list[Customer]:
        return await self.store.list_customers(organization_id)

    ############
    # Invoices #
    ############

    async def create_invoice(
        self,
        organization_id: str,
        customer: CustomerInput,
        items: Sequence[ItemInput],
        issue_date: date | None = None,
        due_date: date | None = None,
        notes: str | None = None,
        terms: str | None = None,
        *,
        customer_id: str | None = None,
        currency: str | None = None,
        send: bool = False,
    ) -> InvoiceWithItems:
        """Create a draft invoice with a freshly allocated number.

        Args:
            organization_id: Owning organization
            customer: Customer snapshot (name, phone, email, address)
            items: Draft line items; at least one
            issue_date: Defaults to today
            due_date: Defaults to *issue_date* plus the configured due days
            notes: Defaults to the organization's additional info
            terms: Defaults to the organization's invoice terms
            customer_id: Optional customer record; blank snapshot fields
                are filled from it
            currency: Defaults to the configured currency
            send: Move the new invoice to ``sent`` right away

        Raises:
            ValidationError: Before any write, for malformed input
            NotFoundError: If the organization or customer does not exist
            InvoiceItemsWriteError: If the header was written but the items
                were not
        """
        line_items = validate_items(items)
        snapshot = coerce_customer(customer)
        issue, due = self._resolve_dates(issue_date, due_date)
        currency = currency or self.default_currency
        if not validate_currency(currency):
            raise ValidationError("currency", "must be a three-letter upper-case code")
        if customer_id is None and not (snapshot.name or "").strip():
            raise ValidationError("customer.name", "must not be empty")

        organization = await self.store.get_organization(organization_id)
        if customer_id is not None:
            record = await self.get_customer(customer_id, organization_id)
            snapshot = snapshot.fill_from(record)

        priced = price_items(line_items)
        totals = compute_invoice_totals(priced)
        number = await self.allocator.allocate_next(organization_id)

        header = await self.store.create_invoice_header(
            Invoice(
                organization_id=organization_id,
                invoice_number=number,
                customer_id=customer_id,
                customer_name=snapshot.name,
                customer_phone=snapshot.phone,
                customer_email=snapshot.email,
                customer_address=snapshot.address,
                status=InvoiceStatus.DRAFT,
                issue_date=issue,
                due_date=due,
                currency=currency,
                subtotal=totals.subtotal,
                tax_amount=totals.tax_amount,
                total_amount=totals.total,
                notes=notes if notes is not None else organization.invoice_additional_info,
                terms=terms if terms is not None else organization.invoice_terms,
            )
        )
        stored_items = await self._write_items(header, priced)
        logger.info(
            "Created invoice %s (%s) for organization %s total=%s",
            header.id, header.invoice_number, organization_id, header.total_amount,
        )

        if send:
            header = await self.set_invoice_status(header.id, InvoiceStatus.SENT)
        return InvoiceWithItems(**header.model_dump(), items=stored_items)

    async def update_invoice(
        self,
        invoice_id: str,
        customer: CustomerInput,
        items: Sequence[ItemInput],
        issue_date: date | None = None,
        due_date: date | None = None,
        notes: str | None = None,
        terms: str | None = None,
        *,
        customer_id: str | None = None,
        organization_id: str | None = None,
    ) -> InvoiceWithItems:
        """Replace the customer snapshot, dates, notes, terms and every item.

        Totals are recomputed from the new items. The organization, number,
        status and creation time are left alone. Omitted dates, notes and
        terms keep their current values.

        Raises:
            ValidationError: Before any write, for malformed input
            NotFoundError: If the invoice does not exist (or belongs to
                another organization when *organization_id* is given)
            InvoiceItemsWriteError: If the header was updated but the items
                were not replaced; the previous items are kept
        """
        line_items = validate_items(items)
        snapshot = coerce_customer(customer)
        if customer_id is None and not (snapshot.name or "").strip():
            raise ValidationError("customer.name", "must not be empty")

        current = await self.get_invoice_header(invoice_id, organization_id)
        issue, due = self._resolve_dates(
            issue_date or current.issue_date, due_date or current.due_date
        )
        if customer_id is not None:
            record = await self.get_customer(customer_id, current.organization_id)
            snapshot = snapshot.fill_from(record)

        priced = price_items(line_items)
        totals = compute_invoice_totals(priced)
        fields: dict[str, Any] = {
            "customer_name": snapshot.name,
            "customer_phone": snapshot.phone,
            "customer_email": snapshot.email,
            "customer_address": snapshot.address,
            "issue_date": issue,
            "due_date": due,
            "subtotal": totals.subtotal,
            "tax_amount": totals.tax_amount,
            "discount_amount": Decimal("0"),
            "total_amount": totals.total,
            "notes": notes if notes is not None else current.notes,
            "terms": terms if terms is not None else current.terms,
        }
        if customer_id is not None:
            fields["customer_id"] = customer_id

        header = await self.store.update_invoice_header(invoice_id, fields)
        stored_items = await self._write_items(header, priced, updated=True)
        logger.info(
            "Updated invoice %s (%s) total=%s items=%d",
            header.id, header.invoice_number, header.total_amount, len(stored_items),
        )
        return InvoiceWithItems(**header.model_dump(), items=stored_items)

    async def set_invoice_status(
        self,
        invoice_id: str,
        status: InvoiceStatus | str,
        organization_id: str | None = None,
    ) -> Invoice:
        """Move an invoice to *status*.

        Setting a non-terminal invoice to its current status returns it
        unchanged.

        The write only lands if the stored status is still the one checked.
        When another request changed it first, the change is checked again
        against the new status, so a paid invoice is never cancelled.

        Raises:
            NotFoundError: If the invoice does not exist
            InvalidStatusTransitionError: If the change is not allowed
            ValidationError: If *status* is not a known status
        """
        try:
            requested = InvoiceStatus(status)
        except ValueError as exc:
            allowed = ", ".join(s.value for s in InvoiceStatus)
            raise ValidationError("status", f"must be one of: {allowed}") from exc

        while True:
            current = await self.get_invoice_header(invoice_id, organization_id)
            ensure_transition(invoice_id, current.status, requested)
            if requested == current.status:
                return current

            updated = await self.store.update_invoice_status(
                invoice_id, current.status, requested
            )
            if updated is not None:
                break
            # Another writer changed the status first; check again from there.
            logger.info("Invoice %s status changed concurrently, re-checking", invoice_id)

        logger.info(
            "Invoice %s status %s -> %s", invoice_id, current.status.value, requested.value
        )
        return updated

    async def delete_invoice(self, invoice_id: str, organization_id: str | None = None) -> None:
        """Delete the invoice together with its items."""
        await self.get_invoice_header(invoice_id, organization_id)
        await self.store.delete_invoice(invoice_id)
        logger.info("Deleted invoice %s", invoice_id)

    async def get_invoice_header(
        self, invoice_id: str, organization_id: str | None = None
    ) -> Invoice:
        invoice = await self.store.get_invoice(invoice_id)
        if organization_id is not None and invoice.organization_id != organization_id:
            logger.warning(
                "Invoice %s requested by foreign organization %s", invoice_id, organization_id
            )
            raise NotFoundError("invoice", invoice_id)
        return invoice

    async def get_invoice(
        self, invoice_id: str, organization_id: str | None = None
    ) -> InvoiceWithItems:
        header = await self.get_invoice_header(invoice_id, organization_id)
        items = await self.store.list_invoice_items(invoice_id)
        return InvoiceWithItems(**header.model_dump(), items=items)

    async def list_invoices(
        self,
        organization_id: str,
        status: InvoiceStatus | str | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Invoice]:
        """List invoice headers, newest first.

        *search* matches the invoice number or customer name, ignoring case.
        """
        if status is not None:
            try:
                status = InvoiceStatus(status)
            except ValueError as exc:
                allowed = ", ".join(s.value for s in InvoiceStatus)
                raise ValidationError("status", f"must be one of: {allowed}") from exc
        return await self.store.list_invoices(
            organization_id, status=status, search=search or None, skip=skip, limit=limit
        )

    async def dashboard(self, organization_id: str) -> DashboardSummary:
        """Revenue, outstanding amount, counts and recent invoices."""
        await self.store.get_organization(organization_id)
        count = await self.store.count_invoices(organization_id)
        invoices = await self.store.list_invoices(organization_id, limit=max(count, 1))
        return summarize(invoices, recent=self.recent_limit)

    ###########
    # Helpers #
    ###########

    def _resolve_dates(self, issue_date: date | None, due_date: date | None) -> tuple[date, date]:
        issue = issue_date or date.today()
        due = due_date or issue + timedelta(days=self.default_due_days)
        if due < issue:
            raise ValidationError("due_date", "must not be before issue_date")
        return issue, due

    async def _write_items(
        self, header: Invoice, priced: Sequence[Any], *, updated: bool = False
    ) -> list[InvoiceItem]:
        items = [
            InvoiceItem(invoice_id=header.id, position=position, **item.model_dump())
            for position, item in enumerate(priced)
        ]
        try:
            return await self.store.replace_invoice_items(header.id, items)
        except Exception as exc:
            logger.error(
                "Items of invoice %s (%s) were not written: %s",
                header.id, header.invoice_number, exc,
            )
            raise InvoiceItemsWriteError(header, str(exc), updated=updated) from exc


__all__ = ["InvoiceService", "coerce_customer", "validate_items"]
