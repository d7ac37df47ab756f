"""Tests for invoice arithmetic and stats aggregation."""
from __future__ import annotations

from datetime import date

from stagepass import billing
from stagepass.models import Invoice


def test_line_amount_supports_fractional_quantity() -> None:
    assert billing.line_amount_cents(2, 20000) == 40000
    assert billing.line_amount_cents(1.5, 15000) == 22500
    assert billing.line_amount_cents(0.333, 100) == 33


def test_totals_round_tax_half_up() -> None:
    assert billing.compute_totals([250000, 40000], 8.75) == (290000, 25375, 315375)
    # 8.75% of 1.00 is 8.75 cents
    assert billing.compute_totals([100], 8.75) == (100, 9, 109)
    assert billing.compute_totals([], 8.75) == (0, 0, 0)


def test_due_date_follows_payment_terms() -> None:
    issued = date(2024, 1, 15)

    assert billing.due_date_for(issued, "Net 15") == date(2024, 1, 30)
    assert billing.due_date_for(issued, "Net 30") == date(2024, 2, 14)
    assert billing.due_date_for(issued, "Net 60") == date(2024, 3, 15)
    assert billing.due_date_for(issued, "Due on receipt") == date(2024, 2, 14)


def test_previous_month_wraps_year() -> None:
    assert billing.previous_month(2024, 1) == (2023, 12)
    assert billing.previous_month(2024, 7) == (2024, 6)


def _invoice(status, total, issued, paid=None) -> Invoice:
    return Invoice(status=status, total_cents=total, issue_date=issued, paid_date=paid)


def test_invoice_stats() -> None:
    reference = date(2024, 3, 10)
    invoices = [
        _invoice("paid", 315375, date(2024, 2, 1), paid=date(2024, 3, 2)),
        _invoice("sent", 674250, date(2024, 3, 1)),
        _invoice("overdue", 435000, date(2024, 1, 20)),
        _invoice("paid", 10000, date(2024, 3, 5), paid=date(2024, 3, 9)),
        _invoice("draft", 5000, date(2024, 3, 8)),
    ]

    stats = billing.invoice_stats(invoices, reference)

    assert stats["total_outstanding_cents"] == 674250 + 435000
    assert stats["paid_this_month_cents"] == 315375 + 10000
    assert stats["overdue_amount_cents"] == 435000
    assert stats["total_invoices"] == 5
    assert stats["paid_invoices"] == 2
    assert stats["overdue_invoices"] == 1
    assert stats["avg_payment_time_days"] == (30 + 4) / 2
    assert stats["this_month_revenue_cents"] == 674250 + 10000 + 5000
    assert stats["last_month_revenue_cents"] == 315375


def test_invoice_stats_january_looks_back_to_december() -> None:
    invoices = [_invoice("sent", 1000, date(2023, 12, 15))]

    stats = billing.invoice_stats(invoices, date(2024, 1, 3))

    assert stats["last_month_revenue_cents"] == 1000
    assert stats["this_month_revenue_cents"] == 0


def test_invoice_stats_empty() -> None:
    stats = billing.invoice_stats([], date(2024, 1, 1))

    assert stats["avg_payment_time_days"] == 0
    assert stats["total_invoices"] == 0
