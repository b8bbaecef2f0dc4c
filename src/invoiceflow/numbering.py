"""Per-organization invoice number allocation.

The counter lives in the store, next to the organization row. Allocation is
one atomic increment-and-read there; this module only formats the result.
Numbers are unique and strictly increasing per organization. Gaps appear
when an invoice creation fails after its number was allocated, and that is
acceptable: a number is never handed out twice.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from invoiceflow.core.config import InvoicingConfig
    from invoiceflow.storage.base import InvoiceStore

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "INV-"
DEFAULT_WIDTH = 4


def format_invoice_number(
    counter: int,
    prefix: str = DEFAULT_PREFIX,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Format *counter* as an invoice number.

    The width is a minimum, never a maximum.

    >>> format_invoice_number(7)
    'INV-0007'
    >>> format_invoice_number(12345)
    'INV-12345'
    """
    if counter < 1:
        raise ValueError(f"Invoice counter must be positive, got {counter}")
    return f"{prefix}{counter:0{width}d}"


class InvoiceNumberAllocator:
    """Hand out ``INV-0001``, ``INV-0002`` … for each organization.

    The allocator holds no counter of its own. Every call goes to
    :meth:`InvoiceStore.increment_and_get_counter`, which must be atomic with
    respect to concurrent callers (a single ``UPDATE … RETURNING`` in the
    SQL store, a per-organization lock in the in-memory store). Several
    service instances can therefore share one database safely.

    Example
    -------
    .. code-block:: python

        allocator = InvoiceNumberAllocator(store)
        number = await allocator.allocate_next(org.id)   # "INV-0001"

    Parameters
    ----------
    store:
        Persistence backend owning the organization counters.
    prefix:
        Literal prefix of every number.
    width:
        Minimum zero-padded width of the numeric part.
    """

    def __init__(
        self,
        store: InvoiceStore,
        prefix: str = DEFAULT_PREFIX,
        width: int = DEFAULT_WIDTH,
    ) -> None:
        self.store = store
        self.prefix = prefix
        self.width = width

    @classmethod
    def from_config(cls, store: InvoiceStore, config: InvoicingConfig) -> InvoiceNumberAllocator:
        return cls(
            store,
            prefix=config.invoice_number_prefix,
            width=config.invoice_number_width,
        )

    async def allocate_next(self, organization_id: str) -> str:
        """Allocate the next invoice number for *organization_id*.

        Raises:
            NotFoundError: If the organization does not exist
            PersistenceError: If the store fails; the number may or may not
                have been consumed, and a retry will never reuse it
        """
        counter = await self.store.increment_and_get_counter(organization_id)
        number = format_invoice_number(counter, self.prefix, self.width)
        logger.info("Allocated invoice number %s for organization %s", number, organization_id)
        return number


__all__ = ["DEFAULT_PREFIX", "DEFAULT_WIDTH", "InvoiceNumberAllocator", "format_invoice_number"]
