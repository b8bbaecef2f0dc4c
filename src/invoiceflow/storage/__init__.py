"""Storage implementations for invoice data.

This module provides the storage backends behind :class:`InvoiceStore`:
- SQLAlchemy: Production persistent storage (PostgreSQL, SQLite)
- In-Memory: Testing and development

Example:
    ```python
    # Production: PostgreSQL
    from invoiceflow.storage.database import SQLAlchemyInvoiceStore

    store = SQLAlchemyInvoiceStore(
        database_url="postgresql+asyncpg://localhost/invoices"
    )
    await store.initialize()

    # Development: In-Memory
    from invoiceflow.storage.memory import InMemoryInvoiceStore

    store = InMemoryInvoiceStore()
    org = await store.create_organization(Organization(name="Acme"))
    ```
"""

from invoiceflow.storage.base import InvoiceStore
from invoiceflow.storage.database import SQLAlchemyInvoiceStore
from invoiceflow.storage.memory import InMemoryInvoiceStore

__all__ = [
    "InMemoryInvoiceStore",
    "InvoiceStore",
    "SQLAlchemyInvoiceStore",
]
