"""Integration tests for SQLAlchemyInvoiceStore backed by SQLite (no PG needed).

Uses sqlite+aiosqlite in-memory with StaticPool for fast, hermetic testing.
"""
from __future__ import annotations

from datetime import UTC, date
from decimal import Decimal

import pytest
from conftest import make_invoice, make_item

from invoiceflow.core.exceptions import ConflictError, NotFoundError, ValidationError
from invoiceflow.core.types import Customer, InvoiceStatus, Organization
from invoiceflow.storage.database import SQLAlchemyInvoiceStore


class TestConstruction:

    def test_mysql_is_refused(self) -> None:
        with pytest.raises(ValueError, match="RETURNING"):
            SQLAlchemyInvoiceStore(database_url="mysql+aiomysql://u:p@localhost/db")

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, sqlite_store: SQLAlchemyInvoiceStore) -> None:
        await sqlite_store.initialize()
        assert await sqlite_store.count_invoices("anything") == 0


class TestOrganizations:

    @pytest.mark.asyncio
    async def test_create_and_get(self, sqlite_store: SQLAlchemyInvoiceStore, acme) -> None:
        await sqlite_store.create_organization(acme)
        fetched = await sqlite_store.get_organization(acme.id)
        assert fetched.name == acme.name
        assert fetched.slug == "acme-traders"
        assert fetched.invoice_terms == "Payment within 30 days"
        assert fetched.invoice_counter == 0
        assert fetched.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_duplicate_id(self, populated_sqlite_store, acme) -> None:
        with pytest.raises(ConflictError):
            await populated_sqlite_store.create_organization(acme)

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, populated_sqlite_store) -> None:
        with pytest.raises(ConflictError):
            await populated_sqlite_store.create_organization(
                Organization(name="Copycat", slug="globex")
            )

    @pytest.mark.asyncio
    async def test_store_usable_after_conflict(self, populated_sqlite_store, acme) -> None:
        with pytest.raises(ConflictError):
            await populated_sqlite_store.create_organization(acme)
        assert await populated_sqlite_store.increment_and_get_counter(acme.id) == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, sqlite_store: SQLAlchemyInvoiceStore) -> None:
        with pytest.raises(NotFoundError):
            await sqlite_store.get_organization("ghost")

    @pytest.mark.asyncio
    async def test_update(self, populated_sqlite_store, acme) -> None:
        updated = await populated_sqlite_store.update_organization(
            acme.id, {"invoice_additional_info": "Bank: 0042"}
        )
        assert updated.invoice_additional_info == "Bank: 0042"
        fetched = await populated_sqlite_store.get_organization(acme.id)
        assert fetched.invoice_additional_info == "Bank: 0042"

    @pytest.mark.asyncio
    async def test_update_missing(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.update_organization("ghost", {"name": "X"})

    @pytest.mark.asyncio
    async def test_update_slug_conflict(self, populated_sqlite_store, globex) -> None:
        with pytest.raises(ConflictError):
            await populated_sqlite_store.update_organization(globex.id, {"slug": "acme-traders"})

    @pytest.mark.asyncio
    async def test_counter(self, populated_sqlite_store, acme) -> None:
        assert await populated_sqlite_store.increment_and_get_counter(acme.id) == 1
        assert await populated_sqlite_store.increment_and_get_counter(acme.id) == 2
        assert (await populated_sqlite_store.get_organization(acme.id)).invoice_counter == 2

    @pytest.mark.asyncio
    async def test_counter_unknown_organization(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.increment_and_get_counter("ghost")


class TestCustomers:

    @pytest.mark.asyncio
    async def test_create_update_list(self, populated_sqlite_store, acme) -> None:
        customer = await populated_sqlite_store.create_customer(
            Customer(organization_id=acme.id, name="Globex", email="ap@globex.test")
        )
        await populated_sqlite_store.create_customer(
            Customer(organization_id=acme.id, name="alpha")
        )
        updated = await populated_sqlite_store.update_customer(customer.id, {"phone": "555-0100"})
        assert updated.phone == "555-0100"
        assert updated.email == "ap@globex.test"

        names = [c.name for c in await populated_sqlite_store.list_customers(acme.id)]
        assert names == ["alpha", "Globex"]

    @pytest.mark.asyncio
    async def test_unknown_organization(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.create_customer(
                Customer(organization_id="ghost", name="X")
            )

    @pytest.mark.asyncio
    async def test_get_and_update_missing(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.get_customer("ghost")
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.update_customer("ghost", {"name": "X"})


class TestInvoices:

    @pytest.mark.asyncio
    async def test_header_round_trip(self, populated_sqlite_store, acme) -> None:
        invoice = make_invoice(
            acme.id,
            "INV-0007",
            customer_phone="555-0100",
            notes="Thank you",
            subtotal=Decimal("200"),
            tax_amount=Decimal("36"),
            total_amount=Decimal("236"),
        )
        await populated_sqlite_store.create_invoice_header(invoice)
        fetched = await populated_sqlite_store.get_invoice(invoice.id)

        assert fetched.invoice_number == "INV-0007"
        assert fetched.status == InvoiceStatus.DRAFT
        assert fetched.issue_date == date(2024, 4, 1)
        assert fetched.due_date == date(2024, 5, 1)
        assert fetched.subtotal == Decimal("200")
        assert fetched.tax_amount == Decimal("36")
        assert fetched.total_amount == Decimal("236")
        assert fetched.customer_phone == "555-0100"
        assert fetched.created_at.tzinfo == UTC

    @pytest.mark.asyncio
    async def test_duplicate_number(self, populated_sqlite_store, acme, globex) -> None:
        await populated_sqlite_store.create_invoice_header(make_invoice(acme.id, "INV-0001"))
        await populated_sqlite_store.create_invoice_header(make_invoice(globex.id, "INV-0001"))
        with pytest.raises(ConflictError):
            await populated_sqlite_store.create_invoice_header(make_invoice(acme.id, "INV-0001"))

    @pytest.mark.asyncio
    async def test_unknown_organization(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.create_invoice_header(make_invoice("ghost"))

    @pytest.mark.asyncio
    async def test_update_status_and_notes(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        await populated_sqlite_store.update_invoice_header(
            invoice.id, {"status": InvoiceStatus.PAID, "notes": "Settled"}
        )
        fetched = await populated_sqlite_store.get_invoice(invoice.id)
        assert fetched.status == InvoiceStatus.PAID
        assert fetched.notes == "Settled"

    @pytest.mark.asyncio
    async def test_update_breaking_total_not_committed(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        with pytest.raises(ValidationError, match="total_amount"):
            await populated_sqlite_store.update_invoice_header(
                invoice.id, {"total_amount": Decimal("7")}
            )
        fetched = await populated_sqlite_store.get_invoice(invoice.id)
        assert fetched.total_amount == Decimal("100")

    @pytest.mark.asyncio
    async def test_status_update_checks_expected(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        assert await populated_sqlite_store.update_invoice_status(
            invoice.id, InvoiceStatus.SENT, InvoiceStatus.PAID
        ) is None
        sent = await populated_sqlite_store.update_invoice_status(
            invoice.id, InvoiceStatus.DRAFT, InvoiceStatus.SENT
        )
        assert sent.status == InvoiceStatus.SENT
        assert await populated_sqlite_store.update_invoice_status(
            "ghost", InvoiceStatus.DRAFT, InvoiceStatus.SENT
        ) is None

    @pytest.mark.asyncio
    async def test_update_immutable_field_refused(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        with pytest.raises(ValueError):
            await populated_sqlite_store.update_invoice_header(
                invoice.id, {"organization_id": "org-globex"}
            )

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, populated_sqlite_store, acme) -> None:
        await populated_sqlite_store.create_invoice_header(
            make_invoice(acme.id, "INV-0001", customer_name="Globex")
        )
        await populated_sqlite_store.create_invoice_header(
            make_invoice(acme.id, "INV-0002", customer_name="100%_Co")
        )

        for needle in ("_", "%", "0%_"):
            found = await populated_sqlite_store.list_invoices(acme.id, search=needle)
            assert [i.customer_name for i in found] == ["100%_Co"]
        assert await populated_sqlite_store.list_invoices(acme.id, search="\\") == []

    @pytest.mark.asyncio
    async def test_list_filters(self, populated_sqlite_store, acme, globex) -> None:
        for number, status, name in [
            ("INV-0001", InvoiceStatus.PAID, "Globex"),
            ("INV-0002", InvoiceStatus.SENT, "Initech"),
            ("INV-0003", InvoiceStatus.SENT, "globex asia"),
        ]:
            await populated_sqlite_store.create_invoice_header(
                make_invoice(acme.id, number, status, customer_name=name)
            )
        await populated_sqlite_store.create_invoice_header(make_invoice(globex.id, "INV-0001"))

        everything = await populated_sqlite_store.list_invoices(acme.id)
        assert [i.invoice_number for i in everything] == ["INV-0003", "INV-0002", "INV-0001"]

        sent = await populated_sqlite_store.list_invoices(acme.id, status=InvoiceStatus.SENT)
        assert {i.invoice_number for i in sent} == {"INV-0002", "INV-0003"}

        found = await populated_sqlite_store.list_invoices(acme.id, search="Globex")
        assert [i.invoice_number for i in found] == ["INV-0003", "INV-0001"]

        page = await populated_sqlite_store.list_invoices(acme.id, skip=2, limit=5)
        assert [i.invoice_number for i in page] == ["INV-0001"]

        assert await populated_sqlite_store.count_invoices(acme.id) == 3
        assert await populated_sqlite_store.count_invoices(globex.id) == 1


class TestItems:

    @pytest.mark.asyncio
    async def test_replace_and_list_in_order(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        await populated_sqlite_store.replace_invoice_items(
            invoice.id,
            [make_item(invoice.id, "First"), make_item(invoice.id, "Second"),
             make_item(invoice.id, "Third")],
        )
        items = await populated_sqlite_store.list_invoice_items(invoice.id)
        assert [i.description for i in items] == ["First", "Second", "Third"]
        assert [i.position for i in items] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_replace_discards_previous(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        await populated_sqlite_store.replace_invoice_items(
            invoice.id, [make_item(invoice.id, "Old")]
        )
        await populated_sqlite_store.replace_invoice_items(
            invoice.id, [make_item(invoice.id, "New A"), make_item(invoice.id, "New B")]
        )
        items = await populated_sqlite_store.list_invoice_items(invoice.id)
        assert [i.description for i in items] == ["New A", "New B"]

    @pytest.mark.asyncio
    async def test_replace_unknown_invoice(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.replace_invoice_items("ghost", [make_item("ghost")])

    @pytest.mark.asyncio
    async def test_decimals_survive_storage(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        await populated_sqlite_store.replace_invoice_items(
            invoice.id,
            [make_item(invoice.id, quantity="1.5", unit_price="19.99", tax_rate="5"),
             make_item(invoice.id, quantity="3", unit_price="0.1", tax_rate="12.5")],
        )
        first, second = await populated_sqlite_store.list_invoice_items(invoice.id)
        assert first.amount == Decimal("31.48425")
        assert first.unit_price == Decimal("19.99")
        assert second.amount == Decimal("0.3375")
        assert isinstance(second.quantity, Decimal)

    @pytest.mark.asyncio
    async def test_delete_cascades_to_items(self, populated_sqlite_store, acme) -> None:
        invoice = await populated_sqlite_store.create_invoice_header(make_invoice(acme.id))
        await populated_sqlite_store.replace_invoice_items(
            invoice.id, [make_item(invoice.id), make_item(invoice.id)]
        )
        await populated_sqlite_store.delete_invoice(invoice.id)

        assert await populated_sqlite_store.list_invoice_items(invoice.id) == []
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.get_invoice(invoice.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, populated_sqlite_store) -> None:
        with pytest.raises(NotFoundError):
            await populated_sqlite_store.delete_invoice("ghost")
