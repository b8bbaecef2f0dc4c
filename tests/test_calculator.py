"""Tests for invoiceflow.calculator."""
from __future__ import annotations

from decimal import Decimal

import pytest

from invoiceflow.calculator import (
    compute_invoice_totals,
    compute_line_amount,
    price_items,
    quantize_money,
    to_decimal,
)
from invoiceflow.core.types import LineItemInput


class TestToDecimal:

    def test_float_goes_through_str(self) -> None:
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self) -> None:
        assert to_decimal(3) == Decimal("3")
        assert to_decimal("18.5") == Decimal("18.5")

    def test_decimal_passthrough(self) -> None:
        d = Decimal("1.23")
        assert to_decimal(d) is d


class TestComputeLineAmount:

    def test_quantity_price_and_tax(self) -> None:
        assert compute_line_amount(2, 100, 18) == Decimal("236")

    def test_zero_tax(self) -> None:
        assert compute_line_amount(3, "12.50", 0) == Decimal("37.50")

    def test_tax_defaults_to_zero(self) -> None:
        assert compute_line_amount(1, 50) == Decimal("50")

    def test_zero_price_is_free(self) -> None:
        assert compute_line_amount(5, 0, 18) == Decimal("0")

    def test_no_binary_float_drift(self) -> None:
        # 0.1 * 3 is 0.30000000000000004 in binary floating point
        assert compute_line_amount(3, 0.1, 0) == Decimal("0.3")

    def test_not_rounded(self) -> None:
        amount = compute_line_amount(1, "10.01", "12.5")
        assert amount == Decimal("11.26125")

    def test_full_tax_rate(self) -> None:
        assert compute_line_amount(1, 100, 100) == Decimal("200")


class TestComputeInvoiceTotals:

    def test_two_items(self) -> None:
        totals = compute_invoice_totals([
            {"quantity": 2, "unit_price": 100, "tax_rate": 18},
            {"quantity": 1, "unit_price": 50, "tax_rate": 0},
        ])
        assert totals.subtotal == Decimal("250")
        assert totals.tax_amount == Decimal("36")
        assert totals.total == Decimal("286")

    def test_empty_list_is_all_zero(self) -> None:
        totals = compute_invoice_totals([])
        assert totals.subtotal == 0
        assert totals.tax_amount == 0
        assert totals.total == 0

    def test_accepts_models(self) -> None:
        items = [
            LineItemInput(description="A", quantity=Decimal("2"), unit_price=Decimal("100"),
                          tax_rate=Decimal("18")),
        ]
        assert compute_invoice_totals(items).total == Decimal("236")

    def test_missing_tax_rate_counts_as_zero(self) -> None:
        totals = compute_invoice_totals([{"quantity": 1, "unit_price": 10}])
        assert totals.tax_amount == 0
        assert totals.total == Decimal("10")

    def test_total_is_sum_of_line_amounts(self) -> None:
        rows = [
            {"quantity": "1.5", "unit_price": "19.99", "tax_rate": "5"},
            {"quantity": "3", "unit_price": "0.35", "tax_rate": "12"},
            {"quantity": "7", "unit_price": "2.10", "tax_rate": "28"},
        ]
        totals = compute_invoice_totals(rows)
        line_sum = sum(
            compute_line_amount(r["quantity"], r["unit_price"], r["tax_rate"]) for r in rows
        )
        assert totals.total == line_sum
        assert totals.total == totals.subtotal + totals.tax_amount


class TestPriceItems:

    def test_amount_attached_in_order(self) -> None:
        priced = price_items([
            LineItemInput(description="First", quantity=Decimal("2"), unit_price=Decimal("100"),
                          tax_rate=Decimal("18")),
            LineItemInput(description="Second", unit_price=Decimal("50")),
        ])
        assert [p.description for p in priced] == ["First", "Second"]
        assert priced[0].amount == Decimal("236")
        assert priced[1].amount == Decimal("50")


class TestQuantizeMoney:

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("10.005", "10.01"),
            ("10.004", "10.00"),
            ("236", "236.00"),
            ("-1.005", "-1.01"),
        ],
    )
    def test_half_up(self, value: str, expected: str) -> None:
        assert quantize_money(Decimal(value)) == Decimal(expected)

    def test_custom_places(self) -> None:
        assert quantize_money("1.23456", places=3) == Decimal("1.235")
