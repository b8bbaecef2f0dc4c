"""Tests for the invoice status state machine."""
from __future__ import annotations

import pytest

from invoiceflow.core.exceptions import InvalidStatusTransitionError, ValidationError
from invoiceflow.core.types import InvoiceStatus
from invoiceflow.status import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    ensure_transition,
    is_terminal,
)

S = InvoiceStatus


class TestTransitionTable:

    def test_every_status_has_an_entry(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == set(InvoiceStatus)

    def test_terminal_statuses(self) -> None:
        assert TERMINAL_STATUSES == {S.PAID, S.CANCELLED}

    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (S.DRAFT, S.SENT),
            (S.DRAFT, S.PAID),
            (S.DRAFT, S.CANCELLED),
            (S.SENT, S.PAID),
            (S.SENT, S.OVERDUE),
            (S.SENT, S.CANCELLED),
            (S.OVERDUE, S.PAID),
            (S.OVERDUE, S.CANCELLED),
        ],
    )
    def test_allowed(self, current: InvoiceStatus, requested: InvoiceStatus) -> None:
        assert can_transition(current, requested)

    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (S.DRAFT, S.OVERDUE),
            (S.SENT, S.DRAFT),
            (S.OVERDUE, S.SENT),
            (S.OVERDUE, S.DRAFT),
        ],
    )
    def test_rejected(self, current: InvoiceStatus, requested: InvoiceStatus) -> None:
        assert not can_transition(current, requested)

    @pytest.mark.parametrize("requested", list(InvoiceStatus))
    def test_paid_is_terminal(self, requested: InvoiceStatus) -> None:
        assert not can_transition(S.PAID, requested)

    @pytest.mark.parametrize("requested", list(InvoiceStatus))
    def test_cancelled_is_terminal(self, requested: InvoiceStatus) -> None:
        assert not can_transition(S.CANCELLED, requested)

    @pytest.mark.parametrize("status", [S.DRAFT, S.SENT, S.OVERDUE])
    def test_same_status_is_noop_for_open_invoices(self, status: InvoiceStatus) -> None:
        assert can_transition(status, status)

    def test_accepts_plain_strings(self) -> None:
        assert can_transition("draft", "sent")
        assert is_terminal("paid")
        assert not is_terminal("overdue")


class TestEnsureTransition:

    def test_allowed_returns_none(self) -> None:
        assert ensure_transition("inv-1", S.DRAFT, S.SENT) is None

    def test_rejection_carries_context(self) -> None:
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ensure_transition("inv-1", S.SENT, S.DRAFT)
        exc = exc_info.value
        assert exc.invoice_id == "inv-1"
        assert exc.current == "sent"
        assert exc.requested == "draft"
        assert exc.details["allowed"] == ["cancelled", "overdue", "paid"]

    def test_rejection_is_a_validation_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ensure_transition("inv-1", S.PAID, S.CANCELLED)
        assert exc_info.value.field == "status"
        assert exc_info.value.details["allowed"] == []
