"""Shared pytest fixtures for the invoiceflow test suite.

Design philosophy
-----------------
- All fixtures that touch I/O use SQLite in-memory so the test suite runs
  without any external services.
- Fixtures are async where the SUT is async.
- Scope is kept at "function" by default to guarantee full isolation.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from invoiceflow.core.types import Invoice, InvoiceItem, InvoiceStatus, Organization
from invoiceflow.service import InvoiceService
from invoiceflow.storage.memory import InMemoryInvoiceStore

SQLITE_URL = "sqlite+aiosqlite:///:memory:"

# ---------------------------------------------------------------------------
# Domain builders
# ---------------------------------------------------------------------------

def make_invoice(
    organization_id: str,
    number: str = "INV-0001",
    status: InvoiceStatus = InvoiceStatus.DRAFT,
    total: str = "100",
    customer_name: str | None = "Globex",
    **overrides,
) -> Invoice:
    """Build an invoice header whose totals are consistent."""
    fields = {
        "organization_id": organization_id,
        "invoice_number": number,
        "status": status,
        "customer_name": customer_name,
        "issue_date": date(2024, 4, 1),
        "due_date": date(2024, 5, 1),
        "subtotal": Decimal(total),
        "total_amount": Decimal(total),
    }
    fields.update(overrides)
    return Invoice(**fields)


def make_item(invoice_id: str, description: str = "Widget", quantity: str = "1",
              unit_price: str = "100", tax_rate: str = "0") -> InvoiceItem:
    q, p, r = Decimal(quantity), Decimal(unit_price), Decimal(tax_rate)
    return InvoiceItem(
        invoice_id=invoice_id,
        description=description,
        quantity=q,
        unit_price=p,
        tax_rate=r,
        amount=q * p * (1 + r / 100),
    )


@pytest.fixture
def acme() -> Organization:
    return Organization(
        id="org-acme",
        name="Acme Traders",
        slug="acme-traders",
        invoice_terms="Payment within 30 days",
        invoice_additional_info="Thank you for your business",
    )


@pytest.fixture
def globex() -> Organization:
    return Organization(id="org-globex", name="Globex LLC", slug="globex")


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_store() -> InMemoryInvoiceStore:
    return InMemoryInvoiceStore()


@pytest.fixture
async def populated_store(
    memory_store: InMemoryInvoiceStore,
    acme: Organization,
    globex: Organization,
) -> InMemoryInvoiceStore:
    """In-memory store with two organizations and nothing else."""
    await memory_store.create_organization(acme)
    await memory_store.create_organization(globex)
    return memory_store


@pytest.fixture
async def sqlite_store():
    """SQLite-backed invoice store for integration tests."""
    from invoiceflow.storage.database import SQLAlchemyInvoiceStore

    store = SQLAlchemyInvoiceStore(database_url=SQLITE_URL, pool_size=1)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def populated_sqlite_store(sqlite_store, acme: Organization, globex: Organization):
    await sqlite_store.create_organization(acme)
    await sqlite_store.create_organization(globex)
    return sqlite_store


# ---------------------------------------------------------------------------
# Service & config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sqlite_config():
    """InvoicingConfig for SQLite; usable without a real DB."""
    from invoiceflow.core.config import InvoicingConfig
    return InvoicingConfig(database_url=SQLITE_URL)


@pytest.fixture
def service(populated_store: InMemoryInvoiceStore) -> InvoiceService:
    return InvoiceService(populated_store)


@pytest.fixture
def widget_items() -> list[dict]:
    return [
        {"description": "Widgets", "quantity": 2, "unit_price": 100, "tax_rate": 18},
        {"description": "Delivery", "quantity": 1, "unit_price": 50, "tax_rate": 0},
    ]
