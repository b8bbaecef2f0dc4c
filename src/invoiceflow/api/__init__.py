"""FastAPI application for invoiceflow.

Example:
    ```python
    from invoiceflow.api import create_app
    from invoiceflow.core.config import InvoicingConfig

    app = create_app(InvoicingConfig())   # reads INVOICEFLOW_* variables
    ```
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from invoiceflow.api.errors import register_exception_handlers
from invoiceflow.api.routes import router
from invoiceflow.manager import InvoicingManager

if TYPE_CHECKING:
    from invoiceflow.core.config import InvoicingConfig
    from invoiceflow.storage.base import InvoiceStore


def create_app(config: InvoicingConfig, *, store: InvoiceStore | None = None) -> FastAPI:
    """Build the invoice API.

    Args:
        config: Application configuration
        store: Optional store override (defaults to the SQLAlchemy store
            built from ``config.database_url``)
    """
    from invoiceflow import __version__

    app = FastAPI(
        title="invoiceflow",
        description="Multi-tenant invoicing API",
        version=__version__,
        lifespan=InvoicingManager.create_lifespan(config, store=store),
    )
    register_exception_handlers(app)
    app.include_router(router)
    return app


__all__ = ["create_app"]
