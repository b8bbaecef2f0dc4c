"""Invoice status state machine.

=========  ==============================
from       to
=========  ==============================
draft      sent, paid, cancelled
sent       paid, overdue, cancelled
overdue    paid, cancelled
paid       (terminal)
cancelled  (terminal)
=========  ==============================

``paid`` and ``cancelled`` are terminal: every further change is rejected.
Nothing here moves an invoice on its own; ``sent`` becomes ``overdue`` only
when a caller asks for it.
"""
from __future__ import annotations

import logging

from invoiceflow.core.exceptions import InvalidStatusTransitionError
from invoiceflow.core.types import InvoiceStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset(
        {InvoiceStatus.SENT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED}
    ),
    InvoiceStatus.SENT: frozenset(
        {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}
    ),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES: frozenset[InvoiceStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def is_terminal(status: InvoiceStatus | str) -> bool:
    return InvoiceStatus(status) in TERMINAL_STATUSES


def can_transition(current: InvoiceStatus | str, requested: InvoiceStatus | str) -> bool:
    """Return True if an invoice in *current* may be set to *requested*.

    Setting a non-terminal invoice to the status it already has is allowed
    and is a no-op for the caller.
    """
    current = InvoiceStatus(current)
    requested = InvoiceStatus(requested)
    if is_terminal(current):
        return False
    return requested == current or requested in ALLOWED_TRANSITIONS[current]


def ensure_transition(
    invoice_id: str,
    current: InvoiceStatus | str,
    requested: InvoiceStatus | str,
) -> None:
    """Raise :class:`InvalidStatusTransitionError` unless the change is allowed."""
    if not can_transition(current, requested):
        logger.warning(
            "Rejected status change invoice=%s %s -> %s", invoice_id, current, requested
        )
        raise InvalidStatusTransitionError(
            invoice_id=invoice_id,
            current=InvoiceStatus(current).value,
            requested=InvoiceStatus(requested).value,
            details={
                "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[InvoiceStatus(current)])
            },
        )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "can_transition",
    "ensure_transition",
    "is_terminal",
]
