# Overview: Service-layer operations for store-level transactions.

"""
Store-scoped generic money movements (sale, purchase, expense).

Transactions carry no client_id; the tenant check is applied to the store
they belong to. Date filters match created_at, inclusive of the whole end
day.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from ..errors import UpstreamError
from ..extensions import db
from ..models import Transaction, TRANSACTION_TYPES
from ..models.ledger import format_amount
from ..validation import TRANSACTION_POLICY, enforce_rules_transaction, validate_payload
from .tenant_service import Principal, require_store_access


def _created_between(query, start: date | None, end: date | None):
    if start is not None:
        query = query.filter(Transaction.created_at >= datetime.combine(start, time.min))
    if end is not None:
        query = query.filter(Transaction.created_at < datetime.combine(end + timedelta(days=1), time.min))
    return query


def list_store_transactions(
    principal: Principal,
    store_id: int,
    *,
    type_: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Transaction]:
    require_store_access(principal, store_id)

    query = db.session.query(Transaction).filter(Transaction.store_id == store_id)
    # Unknown types are ignored rather than rejected
    if type_ in TRANSACTION_TYPES:
        query = query.filter(Transaction.type == type_)
    query = _created_between(query, start, end)
    return query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()


def create_transaction(principal: Principal, payload: dict) -> Transaction:
    patch = validate_payload(model=Transaction, payload=payload, policy=TRANSACTION_POLICY, partial=False)
    enforce_rules_transaction(patch)
    require_store_access(principal, patch["store_id"])

    transaction = Transaction(
        store_id=patch["store_id"],
        type=patch["type"],
        amount=patch["amount"],
        category=patch["category"],
        description=patch.get("description") or "",
        created_by=principal.user_id,
    )
    db.session.add(transaction)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UpstreamError("Failed to create transaction", details={"reason": str(exc)}) from exc
    return transaction


def store_summary(
    principal: Principal,
    store_id: int,
    *,
    start: date | None = None,
    end: date | None = None,
) -> dict:
    """
    Totals per type for one store.

    netTotal = sales - purchases - expenses.
    """
    require_store_access(principal, store_id)

    query = db.session.query(Transaction.type, Transaction.amount).filter(Transaction.store_id == store_id)
    rows = _created_between(query, start, end).all()

    totals = {kind: Decimal("0.00") for kind in TRANSACTION_TYPES}
    for type_, amount in rows:
        totals[type_] += Decimal(amount or 0)

    net = totals["sale"] - totals["purchase"] - totals["expense"]
    return {
        "summary": {
            "totalSales": format_amount(totals["sale"]),
            "totalPurchases": format_amount(totals["purchase"]),
            "totalExpenses": format_amount(totals["expense"]),
            "netTotal": format_amount(net),
        },
        "transactionCount": len(rows),
    }
