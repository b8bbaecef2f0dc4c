"""Pydantic request schemas for the invoice API.

Field ranges are deliberately not declared here: the service checks them and
reports the failing field by position (``items[2].tax_rate``). These models
only fix the JSON shape and the types.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    name:                    str
    slug:                    str | None = None
    email:                   str | None = None
    phone:                   str | None = None
    address:                 str | None = None
    invoice_terms:           str | None = None
    invoice_additional_info: str | None = None


class OrganizationUpdate(BaseModel):
    name:                    str | None = None
    slug:                    str | None = None
    email:                   str | None = None
    phone:                   str | None = None
    address:                 str | None = None
    invoice_terms:           str | None = None
    invoice_additional_info: str | None = None


class CustomerCreate(BaseModel):
    name:    str
    email:   str | None = None
    phone:   str | None = None
    address: str | None = None


class CustomerUpdate(BaseModel):
    name:    str | None = None
    email:   str | None = None
    phone:   str | None = None
    address: str | None = None


class CustomerInfo(BaseModel):
    name:    str | None = None
    phone:   str | None = None
    email:   str | None = None
    address: str | None = None


class LineItemCreate(BaseModel):
    description: str
    quantity:    Decimal = Decimal("1")
    unit_price:  Decimal
    tax_rate:    Decimal = Decimal("0")


class InvoiceCreate(BaseModel):
    customer:    CustomerInfo = Field(default_factory=CustomerInfo)
    customer_id: str | None = None
    items:       list[LineItemCreate] = Field(default_factory=list)
    issue_date:  date | None = None
    due_date:    date | None = None
    notes:       str | None = None
    terms:       str | None = None
    currency:    str | None = None
    send:        bool = False


class InvoiceUpdate(BaseModel):
    customer:    CustomerInfo = Field(default_factory=CustomerInfo)
    customer_id: str | None = None
    items:       list[LineItemCreate] = Field(default_factory=list)
    issue_date:  date | None = None
    due_date:    date | None = None
    notes:       str | None = None
    terms:       str | None = None


class InvoiceStatusUpdate(BaseModel):
    status: str


__all__ = [
    "CustomerCreate",
    "CustomerInfo",
    "CustomerUpdate",
    "InvoiceCreate",
    "InvoiceStatusUpdate",
    "InvoiceUpdate",
    "LineItemCreate",
    "OrganizationCreate",
    "OrganizationUpdate",
]
