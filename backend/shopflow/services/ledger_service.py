# Overview: Read-side queries over the sales ledger (receipts, recent sales, debts, summary).

"""
Sales Ledger Service

Transactions are written only by checkout (see checkout_service) and are
never updated afterwards, so everything here is a read.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Transaction

RECENT_SALES_LIMIT = 10
RECENT_DEBTS_LIMIT = 5


class LedgerError(Exception):
    """Raised for ledger lookups that cannot be satisfied."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_transaction(shop_id: int, transaction_id: int) -> Transaction:
    record = (
        db.session.query(Transaction)
        .filter_by(id=transaction_id, shop_id=shop_id)
        .first()
    )
    if record is None:
        raise LedgerError("Transaction not found", details={"transaction_id": transaction_id})
    return record


def list_transactions(
    shop_id: int,
    debts_only: bool = False,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    """Newest first. `since` is inclusive, `until` exclusive."""
    query = db.session.query(Transaction).filter(Transaction.shop_id == shop_id)
    if debts_only:
        query = query.filter(Transaction.is_debt.is_(True))
    if since is not None:
        query = query.filter(Transaction.occurred_at >= since)
    if until is not None:
        query = query.filter(Transaction.occurred_at < until)
    query = query.order_by(Transaction.occurred_at.desc(), Transaction.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def sales_summary(shop_id: int) -> dict:
    """
    Revenue, sale count and outstanding debt for a shop.

    revenue_cents counts full totals (debt sales included); collected_cents
    is what was actually paid at the counter.
    """
    row = (
        db.session.query(
            func.count(Transaction.id),
            func.coalesce(func.sum(Transaction.total_cents), 0),
            func.coalesce(func.sum(Transaction.amount_paid_cents), 0),
            func.coalesce(func.sum(Transaction.amount_due_cents), 0),
        )
        .filter(Transaction.shop_id == shop_id)
        .one()
    )
    debt_count = (
        db.session.query(func.count(Transaction.id))
        .filter(Transaction.shop_id == shop_id, Transaction.amount_due_cents > 0)
        .scalar()
    )
    return {
        "shop_id": shop_id,
        "transaction_count": int(row[0]),
        "revenue_cents": int(row[1]),
        "collected_cents": int(row[2]),
        "outstanding_debt_cents": int(row[3]),
        "open_debt_count": int(debt_count or 0),
    }
