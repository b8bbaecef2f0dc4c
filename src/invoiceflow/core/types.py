"""Core types and data models for invoiceflow.

Every persisted entity is a frozen pydantic model. Stores hand out
validated copies and never mutate a model in place.
Money and quantities are :class:`~decimal.Decimal` throughout.
"""
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


class InvoiceStatus(StrEnum):
    """Invoice lifecycle status."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Organization(BaseModel):
    """Tenant boundary: owns customers, invoices and the numbering counter.

    ``invoice_terms`` and ``invoice_additional_info`` pre-populate ``terms``
    and ``notes`` of new invoices. They are copied at creation time, so
    editing them later does not touch existing invoices.

    Example
    -------
    .. code-block:: python

        org = Organization(name="Acme Traders", slug="acme-traders")
        updated = org.model_copy(update={"invoice_terms": "Net 15"})
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    slug: str | None = Field(default=None, max_length=63, description="Unique URL-safe handle")
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None)
    invoice_counter: int = Field(
        default=0, ge=0, description="Number of invoice numbers allocated so far"
    )
    invoice_terms: str | None = Field(default=None, description="Default terms for new invoices")
    invoice_additional_info: str | None = Field(
        default=None, description="Default notes for new invoices"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Customer(BaseModel):
    """A customer record, scoped to one organization."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, min_length=1, max_length=64)
    organization_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CustomerSnapshot(BaseModel):
    """Customer details copied onto an invoice.

    A point-in-time copy: later edits to the referenced :class:`Customer`
    are never propagated to invoices that already carry a snapshot.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    address: str | None = None

    @classmethod
    def from_customer(cls, customer: Customer) -> CustomerSnapshot:
        return cls(
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            address=customer.address,
        )

    def fill_from(self, customer: Customer) -> CustomerSnapshot:
        """Return a copy whose blank fields are taken from *customer*."""
        source = CustomerSnapshot.from_customer(customer)
        return self.model_copy(
            update={
                name: getattr(source, name)
                for name in ("name", "phone", "email", "address")
                if not getattr(self, name)
            }
        )


class LineItemInput(BaseModel):
    """A draft line item as submitted by a client, before pricing."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal = Field(..., ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Percent")

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class PricedItem(LineItemInput):
    """A draft line item with its derived ``amount`` attached."""

    amount: Decimal


class InvoiceItem(BaseModel):
    """A stored line item. Owned by exactly one invoice."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    invoice_id: str = Field(..., min_length=1)
    position: int = Field(default=0, ge=0, description="Order within the invoice")
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = Decimal("0")
    amount: Decimal
    created_at: datetime = Field(default_factory=utcnow)


class InvoiceTotals(BaseModel):
    """Invoice-level aggregates computed from line items."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


class Invoice(BaseModel):
    """Invoice header.

    Financial fields are derived from the items and never edited by hand.
    ``total_amount == subtotal + tax_amount - discount_amount`` holds exactly.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, min_length=1, max_length=64)
    organization_id: str = Field(..., min_length=1)
    invoice_number: str = Field(..., min_length=1, max_length=50)
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    customer_address: str | None = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: date
    due_date: date
    currency: str = Field(default="INR", min_length=3, max_length=3)
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    notes: str | None = None
    terms: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_total(self) -> Invoice:
        expected = self.subtotal + self.tax_amount - self.discount_amount
        if self.total_amount != expected:
            raise ValueError(
                f"total_amount {self.total_amount} does not equal "
                f"subtotal + tax_amount - discount_amount ({expected})"
            )
        return self


class InvoiceWithItems(Invoice):
    """Invoice header together with its line items, in position order."""

    items: list[InvoiceItem] = Field(default_factory=list)


class DashboardSummary(BaseModel):
    """Aggregates shown on an organization's dashboard."""

    model_config = ConfigDict(frozen=True)

    total_revenue: Decimal = Decimal("0")
    outstanding: Decimal = Decimal("0")
    invoice_count: int = 0
    paid_count: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    recent: list[Invoice] = Field(default_factory=list)


__all__ = [
    "Customer",
    "CustomerSnapshot",
    "DashboardSummary",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "InvoiceTotals",
    "InvoiceWithItems",
    "LineItemInput",
    "Organization",
    "PricedItem",
    "new_id",
    "utcnow",
]
