"""Dashboard aggregates: pure reducers over a list of invoices."""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from invoiceflow.calculator import to_decimal
from invoiceflow.core.types import DashboardSummary, Invoice, InvoiceStatus

REVENUE_STATUSES: frozenset[str] = frozenset({InvoiceStatus.PAID.value})
# "pending" is not an InvoiceStatus; it is accepted so records from older
# exports that still carry it are counted as outstanding.
OUTSTANDING_STATUSES: frozenset[str] = frozenset(
    {InvoiceStatus.SENT.value, "pending", InvoiceStatus.OVERDUE.value}
)


def _get(invoice: Any, name: str) -> Any:
    if isinstance(invoice, dict):
        return invoice[name]
    return getattr(invoice, name)


def _status(invoice: Any) -> str:
    return str(_get(invoice, "status"))


def _total(invoice: Any) -> Decimal:
    if isinstance(invoice, dict) and "total_amount" not in invoice:
        return to_decimal(invoice["total"])
    return to_decimal(_get(invoice, "total_amount"))


def sum_by_status(invoices: Iterable[Any], statuses: Iterable[str]) -> Decimal:
    """Sum ``total_amount`` over invoices whose status is in *statuses*."""
    wanted = {str(s) for s in statuses}
    return sum((_total(inv) for inv in invoices if _status(inv) in wanted), Decimal("0"))


def total_revenue(invoices: Iterable[Any]) -> Decimal:
    """Sum of ``total_amount`` over paid invoices."""
    return sum_by_status(invoices, REVENUE_STATUSES)


def outstanding_amount(invoices: Iterable[Any]) -> Decimal:
    """Sum of ``total_amount`` over invoices still awaiting payment."""
    return sum_by_status(invoices, OUTSTANDING_STATUSES)


def count_by_status(invoices: Iterable[Any]) -> dict[str, int]:
    return dict(Counter(_status(inv) for inv in invoices))


def paid_count(invoices: Iterable[Any]) -> int:
    return sum(1 for inv in invoices if _status(inv) in REVENUE_STATUSES)


def summarize(invoices: Sequence[Invoice], recent: int = 5) -> DashboardSummary:
    """Build the full :class:`DashboardSummary` for one organization's invoices."""
    newest_first = sorted(invoices, key=lambda inv: inv.created_at, reverse=True)
    return DashboardSummary(
        total_revenue=total_revenue(invoices),
        outstanding=outstanding_amount(invoices),
        invoice_count=len(invoices),
        paid_count=paid_count(invoices),
        by_status=count_by_status(invoices),
        recent=newest_first[:recent],
    )


__all__ = [
    "OUTSTANDING_STATUSES",
    "REVENUE_STATUSES",
    "count_by_status",
    "outstanding_amount",
    "paid_count",
    "sum_by_status",
    "summarize",
    "total_revenue",
]
