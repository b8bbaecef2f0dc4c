"""Invoicing manager: storage lifecycle and service wiring.

The manager owns the store and the :class:`~invoiceflow.service.InvoiceService`
built on top of it. It holds no FastAPI reference; the application is only
touched inside :meth:`InvoicingManager.create_lifespan`, where ``app.state``
is populated for the request dependencies.

Integration::

    app = FastAPI(lifespan=InvoicingManager.create_lifespan(config))
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from invoiceflow.service import InvoiceService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI
    from starlette.types import Lifespan

    from invoiceflow.core.config import InvoicingConfig
    from invoiceflow.storage.base import InvoiceStore

logger = logging.getLogger(__name__)


class InvoicingManager:
    """Orchestrator for the invoicing components.

    Lifecycle
    ---------
    1. **Construct**: stores configuration and overrides, no I/O.
    2. **initialize()**: builds the store (unless one was supplied) and
       creates its tables.
    3. **shutdown()**: disposes the engine.

    Parameters
    ----------
    config:
        Validated :class:`~invoiceflow.core.config.InvoicingConfig`.
    store:
        Override the default
        :class:`~invoiceflow.storage.database.SQLAlchemyInvoiceStore`.
        Useful for testing with
        :class:`~invoiceflow.storage.memory.InMemoryInvoiceStore`.
    """

    def __init__(
        self,
        config: InvoicingConfig,
        *,
        store: InvoiceStore | None = None,
    ) -> None:
        self.config = config
        self._initialized = False
        self._custom_store = store

        # These are set during initialize()
        self.store: InvoiceStore
        self.service: InvoiceService

        logger.info(
            "InvoicingManager created prefix=%s width=%d",
            config.invoice_number_prefix,
            config.invoice_number_width,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create the store and its tables.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        if self._initialized:
            return

        logger.info("InvoicingManager initialising …")
        self._initialize_storage()
        await self.store.initialize()
        self.service = InvoiceService(self.store, self.config)

        self._initialized = True
        logger.info("InvoicingManager initialised")

    async def shutdown(self) -> None:
        """Release the store's resources (connection pools …)."""
        if not self._initialized:
            return

        logger.info("InvoicingManager shutting down …")
        await self.store.close()
        self._initialized = False
        logger.info("InvoicingManager shutdown complete")

    async def __aenter__(self) -> InvoicingManager:
        """Support ``async with InvoicingManager(config) as m:`` in tests."""
        await self.initialize()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.shutdown()

    @staticmethod
    def create_lifespan(
        config: InvoicingConfig,
        *,
        store: InvoiceStore | None = None,
    ) -> Lifespan[FastAPI]:
        """Build a FastAPI ``lifespan`` context manager that manages an
        :class:`InvoicingManager`.

        The lifespan callable:

        1. Creates the :class:`InvoicingManager`.
        2. Calls ``manager.initialize()``.
        3. Publishes the manager, config and service on ``app.state``.
        4. Yields (application serves requests).
        5. Calls ``manager.shutdown()`` on teardown.
        """

        @asynccontextmanager
        async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
            manager = InvoicingManager(config, store=store)
            app.state.invoicing_manager = manager
            app.state.invoicing_config = config

            await manager.initialize()
            app.state.invoice_service = manager.service

            try:
                yield
            finally:
                await manager.shutdown()

        return _lifespan

    def _initialize_storage(self) -> None:
        if self._custom_store is not None:
            self.store = self._custom_store
        else:
            from invoiceflow.storage.database import SQLAlchemyInvoiceStore
            self.store = SQLAlchemyInvoiceStore(
                database_url=self.config.database_url,
                pool_size=self.config.database_pool_size,
                max_overflow=self.config.database_max_overflow,
                echo=self.config.database_echo,
            )

    async def health_check(self) -> dict[str, Any]:
        """Return health information for the store."""
        health: dict[str, Any] = {"status": "healthy", "components": {}}
        if not self._initialized:
            health["status"] = "unhealthy"
            health["components"]["store"] = {"status": "unhealthy", "error": "not initialised"}
            return health
        try:
            # Any cheap round-trip will do; an unknown organization counts zero.
            await self.store.count_invoices("__health__")
            health["components"]["store"] = {
                "status": "healthy",
                "backend": type(self.store).__name__,
            }
        except Exception as exc:
            health["status"] = "unhealthy"
            health["components"]["store"] = {
                "status": "unhealthy",
                "error": str(exc),
            }
        return health


__all__ = ["InvoicingManager"]
