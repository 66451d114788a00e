from __future__ import annotations

from ..extensions import db
from shopflow.time_utils import to_utc_z


class Shop(db.Model):
    """
    Multi-tenant root: every tenant is a Shop.

    All catalog, customer and sales rows carry shop_id. No data may cross
    shop boundaries, and services always receive shop_id explicitly.
    """
    __tablename__ = "shops"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)  # Short code for lookups

    currency = db.Column(db.String(3), nullable=False, default="USD")
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=800)  # Basis points (e.g., 800 = 8%)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "currency": self.currency,
            "tax_rate_bps": self.tax_rate_bps,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
