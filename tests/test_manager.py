"""InvoicingManager lifecycle, wiring and health check tests.

API contract:
  - InvoicingManager(config, *, store=None); no ``app`` argument.
  - create_lifespan(config, *, store=None) is a @staticmethod returning a
    lifespan callable that publishes the manager, config and service on
    ``app.state``.
"""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI

from invoiceflow.manager import InvoicingManager
from invoiceflow.service import InvoiceService
from invoiceflow.storage.memory import InMemoryInvoiceStore


def _make_config(**kwargs):
    from invoiceflow.core.config import InvoicingConfig
    defaults = dict(database_url="sqlite+aiosqlite:///:memory:")
    defaults.update(kwargs)
    return InvoicingConfig(**defaults)


class TestConstruction:

    def test_creates_without_io(self) -> None:
        m = InvoicingManager(_make_config())
        assert m.initialized is False

    def test_stores_config_and_override(self) -> None:
        cfg = _make_config()
        store = InMemoryInvoiceStore()
        m = InvoicingManager(cfg, store=store)
        assert m.config is cfg
        assert m._custom_store is store


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_initialize_with_custom_store(self) -> None:
        store = InMemoryInvoiceStore()
        m = InvoicingManager(_make_config(invoice_number_prefix="BILL-"), store=store)
        await m.initialize()

        assert m.initialized is True
        assert m.store is store
        assert isinstance(m.service, InvoiceService)
        assert m.service.allocator.prefix == "BILL-"
        await m.shutdown()
        assert m.initialized is False

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self) -> None:
        store = AsyncMock(spec=InMemoryInvoiceStore)
        m = InvoicingManager(_make_config(), store=store)
        await m.initialize()
        await m.initialize()
        store.initialize.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_before_initialize_is_noop(self) -> None:
        store = AsyncMock(spec=InMemoryInvoiceStore)
        m = InvoicingManager(_make_config(), store=store)
        await m.shutdown()
        store.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_store_is_sqlalchemy(self) -> None:
        from invoiceflow.storage.database import SQLAlchemyInvoiceStore

        async with InvoicingManager(_make_config()) as m:
            assert isinstance(m.store, SQLAlchemyInvoiceStore)
            org = await m.service.create_organization("Acme Traders", slug="acme-traders")
            invoice = await m.service.create_invoice(
                org.id,
                customer={"name": "Globex"},
                items=[{"description": "Widgets", "quantity": 2, "unit_price": 100,
                        "tax_rate": 18}],
            )
            assert invoice.invoice_number == "INV-0001"
            fetched = await m.service.get_invoice(invoice.id)
            assert [i.description for i in fetched.items] == ["Widgets"]
        assert m.initialized is False


class TestHealthCheck:

    @pytest.mark.asyncio
    async def test_not_initialized(self) -> None:
        m = InvoicingManager(_make_config(), store=InMemoryInvoiceStore())
        report = await m.health_check()
        assert report["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_healthy(self) -> None:
        async with InvoicingManager(_make_config(), store=InMemoryInvoiceStore()) as m:
            report = await m.health_check()
        assert report["status"] == "healthy"
        assert report["components"]["store"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_store_failure(self) -> None:
        store = InMemoryInvoiceStore()
        async with InvoicingManager(_make_config(), store=store) as m:
            store.count_invoices = AsyncMock(side_effect=RuntimeError("db gone"))
            report = await m.health_check()
        assert report["status"] == "unhealthy"
        assert report["components"]["store"]["error"] == "db gone"


class TestLifespan:

    @pytest.mark.asyncio
    async def test_publishes_state(self) -> None:
        cfg = _make_config()
        store = InMemoryInvoiceStore()
        app = FastAPI()
        lifespan = InvoicingManager.create_lifespan(cfg, store=store)

        async with lifespan(app):
            assert app.state.invoicing_config is cfg
            assert app.state.invoicing_manager.initialized is True
            assert app.state.invoice_service.store is store
        assert app.state.invoicing_manager.initialized is False
