from __future__ import annotations

from ..extensions import db
from shopflow.time_utils import to_utc_z

WALK_IN_CUSTOMER_NAME = "Walk-in Customer"


class Transaction(db.Model):
    """
    Committed sale record (system of record for the sales ledger).

    IMMUTABLE: Created exactly once by a successful checkout commit, in the
    same database transaction as the stock decrements for its lines.
    Nothing in the application updates or deletes it afterwards.

    PAYMENT INVARIANTS (all amounts in cents):
    - amount_paid_cents + amount_due_cents == total_cents
    - amount_due_cents == 0 unless is_debt
    - sum(line_total_cents) + tax_cents == total_cents
    """
    __tablename__ = "transactions"
    __table_args__ = (
        # Composite index for shop-scoped queries by date (recent sales)
        db.Index("ix_transactions_shop_occurred", "shop_id", "occurred_at"),
        # Recent debts widget filters on is_debt
        db.Index("ix_transactions_shop_debt_occurred", "shop_id", "is_debt", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    # Commit timestamp (business time)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, index=True)  # cash, card, mobile_money, debt

    # Seller attribution comes from the identity provider, not a local user table
    seller_id = db.Column(db.String(128), nullable=False)
    seller_name = db.Column(db.String(255), nullable=False)

    # Snapshot of the customer at sale time (NULL = walk-in)
    customer_id = db.Column(db.Integer, nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False, default=WALK_IN_CUSTOMER_NAME)

    is_debt = db.Column(db.Boolean, nullable=False, default=False)
    amount_paid_cents = db.Column(db.Integer, nullable=False)
    amount_due_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("transactions", lazy=True))
    lines = db.relationship(
        "TransactionLine",
        backref="transaction",
        lazy=True,
        order_by="TransactionLine.line_number",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "payment_method": self.payment_method,
            "seller_id": self.seller_id,
            "seller_name": self.seller_name,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "is_debt": self.is_debt,
            "amount_paid_cents": self.amount_paid_cents,
            "amount_due_cents": self.amount_due_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class TransactionLine(db.Model):
    """
    Line snapshot on a committed transaction.

    product_id is a plain value, not a foreign key: the line records what was
    sold at that instant and must survive later catalog edits or deletes.
    """
    __tablename__ = "transaction_lines"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", "line_number", name="uq_transaction_lines_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)  # Effective price incl. variants
    line_total_cents = db.Column(db.Integer, nullable=False)
    variants = db.Column(db.JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "variants": list(self.variants or []),
        }
