# Overview: Aggregation of ledger amounts into totals and gross income.

"""
Reporting Service

Sums amounts across sales, purchases, and expenses for one client,
optionally narrowed to a store and an inclusive date range matched against
each record kind's own date column.

Amounts are summed as Decimal in application code over the full matching
set (no pagination). An empty set sums to 0.00.

gross_income = total_sales - total_purchases - total_expenses
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ..extensions import db
from ..models import Sale, Purchase, Expense
from ..models.ledger import format_amount


ZERO = Decimal("0.00")


@dataclass(frozen=True)
class ReportScope:
    client_id: int
    store_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None


def _total(model, scope: ReportScope) -> Decimal:
    date_column = getattr(model, model.date_field)
    query = db.session.query(model.amount).filter(model.client_id == scope.client_id)
    if scope.store_id is not None:
        query = query.filter(model.store_id == scope.store_id)
    if scope.start_date is not None:
        query = query.filter(date_column >= scope.start_date)
    if scope.end_date is not None:
        query = query.filter(date_column <= scope.end_date)

    total = ZERO
    for (amount,) in query:
        total += Decimal(amount or 0)
    return total.quantize(ZERO)


def total_sales(scope: ReportScope) -> Decimal:
    return _total(Sale, scope)


def total_purchases(scope: ReportScope) -> Decimal:
    return _total(Purchase, scope)


def total_expenses(scope: ReportScope) -> Decimal:
    return _total(Expense, scope)


def gross_income(scope: ReportScope) -> dict:
    sales = total_sales(scope)
    purchases = total_purchases(scope)
    expenses = total_expenses(scope)
    return {
        "totalSales": sales,
        "totalPurchases": purchases,
        "totalExpenses": expenses,
        "grossIncome": sales - purchases - expenses,
    }


def serialize_totals(totals: dict) -> dict:
    """Decimal values -> two-place strings for JSON."""
    return {key: format_amount(value) for key, value in totals.items()}
