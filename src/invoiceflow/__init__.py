"""invoiceflow: multi-tenant invoicing core with a FastAPI front end.

Quick start
-----------
.. code-block:: python

    from invoiceflow import InvoiceService, InMemoryInvoiceStore

    service = InvoiceService(InMemoryInvoiceStore())
    org = await service.create_organization(name="Acme Traders")
    invoice = await service.create_invoice(
        org.id,
        customer={"name": "Globex"},
        items=[{"description": "Widgets", "quantity": 2, "unit_price": 100, "tax_rate": 18}],
    )
    invoice.invoice_number   # "INV-0001"

    # or as a web service
    from invoiceflow import InvoicingConfig, create_app
    app = create_app(InvoicingConfig(database_url="sqlite+aiosqlite:///./invoices.db"))

Public API
----------
Core types
    Organization, Customer, CustomerSnapshot, Invoice, InvoiceItem,
    InvoiceWithItems, InvoiceStatus, LineItemInput, InvoiceTotals,
    DashboardSummary

Configuration
    InvoicingConfig

Computation
    compute_line_amount, compute_invoice_totals, quantize_money,
    InvoiceNumberAllocator, format_invoice_number, can_transition

Service, manager and app
    InvoiceService, InvoicingManager, create_app

Storage backends
    InvoiceStore (ABC), InMemoryInvoiceStore, SQLAlchemyInvoiceStore

Exceptions
    InvoicingError and all its subclasses
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

try:
    __version__: str = _pkg_version("invoiceflow")
except PackageNotFoundError:  # running from source without install
    __version__ = "0.0.0+dev"

__license__ = "MIT"

# Configuration
from invoiceflow.core.config import InvoicingConfig

# Exceptions
from invoiceflow.core.exceptions import (
    ConflictError,
    InvalidStatusTransitionError,
    InvoiceItemsWriteError,
    InvoicingError,
    NotFoundError,
    OrganizationResolutionError,
    PersistenceError,
    ValidationError,
)
from invoiceflow.core.types import (
    Customer,
    CustomerSnapshot,
    DashboardSummary,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceWithItems,
    LineItemInput,
    Organization,
)

# Computation
from invoiceflow.calculator import (
    compute_invoice_totals,
    compute_line_amount,
    quantize_money,
)
from invoiceflow.numbering import InvoiceNumberAllocator, format_invoice_number
from invoiceflow.status import can_transition

# Service & manager
from invoiceflow.service import InvoiceService
from invoiceflow.manager import InvoicingManager

# Storage
from invoiceflow.storage.base import InvoiceStore
from invoiceflow.storage.database import SQLAlchemyInvoiceStore
from invoiceflow.storage.memory import InMemoryInvoiceStore

# HTTP
from invoiceflow.api import create_app

__all__ = [  # noqa: RUF022
    "__version__",
    # Types
    "Organization",
    "Customer",
    "CustomerSnapshot",
    "Invoice",
    "InvoiceItem",
    "InvoiceWithItems",
    "InvoiceStatus",
    "LineItemInput",
    "InvoiceTotals",
    "DashboardSummary",
    # Config
    "InvoicingConfig",
    # Exceptions
    "InvoicingError",
    "ValidationError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "ConflictError",
    "OrganizationResolutionError",
    "PersistenceError",
    "InvoiceItemsWriteError",
    # Computation
    "compute_line_amount",
    "compute_invoice_totals",
    "quantize_money",
    "InvoiceNumberAllocator",
    "format_invoice_number",
    "can_transition",
    # Service & manager
    "InvoiceService",
    "InvoicingManager",
    "create_app",
    # Storage
    "InvoiceStore",
    "InMemoryInvoiceStore",
    "SQLAlchemyInvoiceStore",
]
