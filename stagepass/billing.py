"""Invoice arithmetic and reporting helpers.

Amounts are integer cents. Quantities may be fractional (hours of studio time)
and tax rates are percentages, so the intermediate math is done with
``Decimal`` and rounded half-up to the cent.
"""
from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func

from .extensions import db
from .models import Invoice

PAYMENT_TERMS_DAYS = {"Net 15": 15, "Net 30": 30, "Net 60": 60}
DEFAULT_TERMS_DAYS = 30
OUTSTANDING_STATUSES = ("sent", "viewed", "overdue")


def _to_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def line_amount_cents(quantity, rate_cents: int) -> int:
    return _to_cents(Decimal(str(quantity)) * Decimal(int(rate_cents)))


def tax_cents_for(subtotal_cents: int, tax_rate) -> int:
    return _to_cents(Decimal(int(subtotal_cents)) * Decimal(str(tax_rate)) / Decimal(100))


def compute_totals(amounts: list[int], tax_rate) -> tuple[int, int, int]:
    """Return ``(subtotal, tax, total)`` in cents for the given line amounts."""
    subtotal = sum(amounts)
    tax = tax_cents_for(subtotal, tax_rate)
    return subtotal, tax, subtotal + tax


def due_date_for(issue_date: date, payment_terms: str | None) -> date:
    days = PAYMENT_TERMS_DAYS.get(payment_terms or "", DEFAULT_TERMS_DAYS)
    return issue_date + timedelta(days=days)


def next_invoice_number(year: int) -> str:
    """Next ``INV-<year>-<NNN>`` number, following the highest one issued that year."""
    prefix = f"INV-{year}-"
    numbers = db.session.query(Invoice.invoice_number).filter(
        Invoice.invoice_number.like(f"{prefix}%")
    )
    highest = 0
    for (number,) in numbers:
        try:
            highest = max(highest, int(number[len(prefix):]))
        except ValueError:
            continue
    return f"{prefix}{highest + 1:03d}"


def invoice_matches(invoice: Invoice, text: str) -> bool:
    """Literal, case-folded substring match on number, client name and item descriptions."""
    needle = text.casefold()
    fields = [invoice.invoice_number, invoice.client.name if invoice.client else None]
    fields += [item.description for item in invoice.items]
    return any(needle in (value or "").casefold() for value in fields)


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def invoice_stats(invoices: list[Invoice], reference: date) -> dict[str, object]:
    """Aggregate billing figures relative to ``reference`` (normally today)."""
    last_year, last_month = previous_month(reference.year, reference.month)

    def in_month(value: date | None, year: int, month: int) -> bool:
        return value is not None and value.year == year and value.month == month

    outstanding = sum(inv.total_cents for inv in invoices if inv.status in OUTSTANDING_STATUSES)
    paid_this_month = sum(
        inv.total_cents
        for inv in invoices
        if in_month(inv.paid_date, reference.year, reference.month)
    )
    overdue = [inv for inv in invoices if inv.status == "overdue"]
    paid = [inv for inv in invoices if inv.status == "paid"]

    # Paid invoices without a paid date count toward the divisor only.
    payment_days = sum(
        (inv.paid_date - inv.issue_date).days for inv in paid if inv.paid_date
    )
    avg_payment_time = payment_days / len(paid) if paid else 0

    this_month_revenue = sum(
        inv.total_cents
        for inv in invoices
        if in_month(inv.issue_date, reference.year, reference.month)
    )
    last_month_revenue = sum(
        inv.total_cents
        for inv in invoices
        if in_month(inv.issue_date, last_year, last_month)
    )

    return {
        "total_outstanding_cents": outstanding,
        "paid_this_month_cents": paid_this_month,
        "overdue_amount_cents": sum(inv.total_cents for inv in overdue),
        "total_invoices": len(invoices),
        "paid_invoices": len(paid),
        "overdue_invoices": len(overdue),
        "avg_payment_time_days": round(avg_payment_time, 2),
        "this_month_revenue_cents": this_month_revenue,
        "last_month_revenue_cents": last_month_revenue,
    }


def invoice_count_by_status() -> dict[str, int]:
    rows = db.session.query(Invoice.status, func.count(Invoice.invoice_id)).group_by(Invoice.status)
    return {status: count for status, count in rows}
