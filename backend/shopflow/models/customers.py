from __future__ import annotations

from ..extensions import db
from shopflow.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer directory entry, scoped to a shop.

    Checkout only reads customers (for attribution on the sale record);
    total_spent_cents and last_seen_at belong to customer management.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "email", name="uq_customers_shop_email"),
        db.Index("ix_customers_shop_name", "shop_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    avatar_url = db.Column(db.String(512), nullable=True)

    total_spent_cents = db.Column(db.Integer, nullable=False, default=0)
    last_seen_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "avatar_url": self.avatar_url,
            "total_spent_cents": self.total_spent_cents,
            "last_seen_at": to_utc_z(self.last_seen_at) if self.last_seen_at else None,
            "created_at": to_utc_z(self.created_at),
        }
