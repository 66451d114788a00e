# Overview: Service-layer operations for the catalog; products, categories and live stock.

"""
Catalog Service

MULTI-TENANT: Every function takes shop_id explicitly and only ever sees rows
of that shop. A product of another shop reads exactly like a missing one.

STOCK AUTHORITY:
read_product_stock() is the only source for "how many units exist right now".
It is a point read against the database with no caching; checkout calls it
immediately before committing.
"""
from __future__ import annotations

from typing import Callable

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Category, Shop
from ..validation import ConflictError
from .concurrency import lock_for_update, run_with_retry

PRODUCT_CREATE_FIELDS = {
    "name", "description", "code", "unit", "image_url", "category_id",
    "sales_price_cents", "purchase_price_cents", "quantity",
    "low_stock_threshold", "variants",
}


class CatalogError(Exception):
    """Raised for catalog lookups and mutations that cannot proceed."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def require_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if shop is None or not shop.is_active:
        raise CatalogError("Shop not found", details={"shop_id": shop_id})
    return shop


def get_product(shop_id: int, product_id: int) -> Product:
    product = (
        db.session.query(Product)
        .filter_by(id=product_id, shop_id=shop_id)
        .first()
    )
    if product is None:
        raise CatalogError("Product not found", details={"product_id": product_id})
    return product


def read_product_stock(shop_id: int, product_id: int) -> int:
    """
    Live on-hand quantity for one product.

    Reads only the quantity column so no stale ORM instance is consulted.
    Raises CatalogError if the product does not exist in the shop.
    """
    quantity = (
        db.session.query(Product.quantity)
        .filter(Product.id == product_id, Product.shop_id == shop_id)
        .scalar()
    )
    if quantity is None:
        raise CatalogError("Product not found", details={"product_id": product_id})
    return int(quantity)


def stock_lookup_for(shop_id: int) -> Callable[[int], int]:
    """Stock lookup for a Cart: missing products read as zero units."""
    def _lookup(product_id: int) -> int:
        try:
            return read_product_stock(shop_id, product_id)
        except CatalogError:
            return 0
    return _lookup


def list_products(
    shop_id: int,
    category_id: int | None = None,
    search: str | None = None,
    limit: int | None = None,
) -> list[Product]:
    query = db.session.query(Product).filter(Product.shop_id == shop_id)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        query = query.filter(Product.name.ilike(f"%{search.strip()}%"))
    query = query.order_by(Product.name.asc(), Product.id.asc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def list_recent_products(shop_id: int, limit: int = 5) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.shop_id == shop_id)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .all()
    )


def list_low_stock(shop_id: int) -> list[Product]:
    """Products at or below their low-stock threshold, emptiest first."""
    return (
        db.session.query(Product)
        .filter(
            Product.shop_id == shop_id,
            Product.quantity <= Product.low_stock_threshold,
        )
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )


def find_product_by_code(shop_id: int, code: str) -> Product | None:
    """
    Scanner lookup: match the product code first, then a numeric product id.
    """
    code = (code or "").strip()
    if not code:
        return None
    product = db.session.query(Product).filter_by(shop_id=shop_id, code=code).first()
    if product is None and code.isdigit():
        product = db.session.query(Product).filter_by(shop_id=shop_id, id=int(code)).first()
    return product


def _require_category(shop_id: int, category_id: int | None) -> None:
    if category_id is None:
        return
    exists = db.session.query(Category.id).filter_by(id=category_id, shop_id=shop_id).first()
    if exists is None:
        raise CatalogError("Category not found", details={"category_id": category_id})


def create_product(shop_id: int, patch: dict) -> Product:
    """
    Create a product from a validated patch dict.

    The starting quantity is also recorded as initial_quantity.
    """
    require_shop(shop_id)
    _require_category(shop_id, patch.get("category_id"))

    code = patch.get("code")
    if code:
        taken = db.session.query(Product.id).filter_by(shop_id=shop_id, code=code).first()
        if taken is not None:
            raise ConflictError("Product code already exists in this shop")

    product = Product(shop_id=shop_id)
    for k, v in patch.items():
        if k in PRODUCT_CREATE_FIELDS:
            setattr(product, k, v)
    product.quantity = patch.get("quantity") or 0
    product.initial_quantity = product.quantity

    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Product code already exists in this shop")
    return product


def restock_product(shop_id: int, product_id: int, quantity: int) -> Product:
    """
    Increase on-hand quantity (receiving goods).

    Goes through the ORM with the product row locked so the version counter
    catches a concurrent writer; such conflicts are retried.
    """
    if quantity <= 0:
        raise CatalogError("Restock quantity must be > 0", details={"quantity": quantity})

    def _op():
        product = lock_for_update(
            db.session.query(Product).filter_by(id=product_id, shop_id=shop_id)
        ).first()
        if product is None:
            raise CatalogError("Product not found", details={"product_id": product_id})
        product.quantity = product.quantity + quantity
        db.session.commit()
        return product

    return run_with_retry(_op)


def delete_product(shop_id: int, product_id: int) -> None:
    """
    Remove a product from the shop's catalog.

    Past sales are untouched: transaction lines keep their own product_id,
    name and price snapshot.
    """
    product = get_product(shop_id, product_id)
    db.session.delete(product)
    db.session.commit()


def create_category(shop_id: int, name: str, image_url: str | None = None) -> Category:
    require_shop(shop_id)
    name = (name or "").strip()
    if not name:
        raise CatalogError("Category name required")
    if db.session.query(Category.id).filter_by(shop_id=shop_id, name=name).first():
        raise ConflictError("Category already exists in this shop")

    category = Category(shop_id=shop_id, name=name, image_url=image_url)
    db.session.add(category)
    db.session.commit()
    return category


def list_categories(shop_id: int) -> list[Category]:
    return (
        db.session.query(Category)
        .filter_by(shop_id=shop_id)
        .order_by(Category.name.asc())
        .all()
    )
