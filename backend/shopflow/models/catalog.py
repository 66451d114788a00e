from __future__ import annotations

from ..extensions import db
from shopflow.time_utils import to_utc_z

DEFAULT_LOW_STOCK_THRESHOLD = 10


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "name", name="uq_categories_shop_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("categories", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data with its on-hand quantity.

    MULTI-TENANT: Products are scoped to shops via shop_id.

    STOCK INVARIANT:
    quantity is never negative (CHECK constraint). It is mutated only by
    checkout commits (conditional decrement) and restocks (increment);
    product edits never touch it.

    VARIANTS:
    JSON list of {"name", "value", "additional_price_cents"}. A cart line
    picks variants by name; each adds its price to the sales price.
    """
    __tablename__ = "products"
    __table_args__ = (
        # Scan codes are unique within a shop
        db.UniqueConstraint("shop_id", "code", name="uq_products_shop_code"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_shop_name", "shop_id", "name"),
        db.Index("ix_products_shop_category", "shop_id", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    code = db.Column(db.String(64), nullable=True)
    unit = db.Column(db.String(32), nullable=False, default="unit")
    image_url = db.Column(db.String(512), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    sales_price_cents = db.Column(db.Integer, nullable=False)
    purchase_price_cents = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    initial_quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=DEFAULT_LOW_STOCK_THRESHOLD)

    variants = db.Column(db.JSON, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    shop = db.relationship("Shop", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity <= 0

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} shop_id={self.shop_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "code": self.code,
            "unit": self.unit,
            "image_url": self.image_url,
            "sales_price_cents": self.sales_price_cents,
            "purchase_price_cents": self.purchase_price_cents,
            "quantity": self.quantity,
            "initial_quantity": self.initial_quantity,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "is_out_of_stock": self.is_out_of_stock,
            "variants": list(self.variants or []),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
