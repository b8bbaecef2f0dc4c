"""Invoice arithmetic: line amounts and invoice totals.

Everything here is pure and synchronous. Inputs are expected to have been
validated already (see :mod:`invoiceflow.service`); nothing in this module
raises for out-of-range quantities, prices or tax rates.

No rounding is applied to computed amounts. :func:`quantize_money` exists
for display only.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from invoiceflow.core.types import InvoiceTotals, LineItemInput, PricedItem

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert *value* to :class:`Decimal` without binary-float drift.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than ``Decimal(0.1000000000000000055511151231257827...)``.

    >>> to_decimal(0.1)
    Decimal('0.1')
    >>> to_decimal("18")
    Decimal('18')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def compute_line_amount(quantity: Any, unit_price: Any, tax_rate: Any = 0) -> Decimal:
    """Return ``quantity * unit_price * (1 + tax_rate / 100)``.

    >>> compute_line_amount(2, 100, 18)
    Decimal('236')
    """
    net = to_decimal(quantity) * to_decimal(unit_price)
    return net + net * to_decimal(tax_rate) / _HUNDRED


def compute_invoice_totals(items: Iterable[Any]) -> InvoiceTotals:
    """Aggregate *items* into subtotal, tax and total.

    Each item may be a model or a mapping exposing ``quantity``,
    ``unit_price`` and ``tax_rate`` (a missing tax rate counts as zero).
    An empty iterable yields all-zero totals.

    >>> totals = compute_invoice_totals([
    ...     {"quantity": 2, "unit_price": 100, "tax_rate": 18},
    ...     {"quantity": 1, "unit_price": 50, "tax_rate": 0},
    ... ])
    >>> totals.subtotal, totals.tax_amount, totals.total
    (Decimal('250'), Decimal('36'), Decimal('286'))
    """
    subtotal = _ZERO
    tax_amount = _ZERO
    for item in items:
        net = to_decimal(_field(item, "quantity")) * to_decimal(_field(item, "unit_price"))
        rate = _field(item, "tax_rate")
        subtotal += net
        tax_amount += net * to_decimal(rate if rate is not None else 0) / _HUNDRED
    return InvoiceTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def price_items(items: Iterable[LineItemInput]) -> list[PricedItem]:
    """Attach the derived ``amount`` to every draft item, keeping order."""
    return [
        PricedItem(
            **item.model_dump(),
            amount=compute_line_amount(item.quantity, item.unit_price, item.tax_rate),
        )
        for item in items
    ]


def quantize_money(value: Any, places: int = 2) -> Decimal:
    """Round *value* half-up to *places* decimals for display.

    >>> quantize_money(Decimal("10.005"))
    Decimal('10.01')
    """
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


__all__ = [
    "compute_invoice_totals",
    "compute_line_amount",
    "price_items",
    "quantize_money",
    "to_decimal",
]
