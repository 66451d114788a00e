# Overview: Service-layer operations for the customer directory.

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer
from ..validation import ConflictError
from shopflow.time_utils import utcnow
from .catalog_service import require_shop

CUSTOMER_UPDATE_FIELDS = {"name", "email", "phone", "avatar_url"}


class CustomerError(Exception):
    """Raised for customer operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class CustomerRef:
    """What a sale record keeps about its customer."""
    id: int
    name: str


def create_customer(
    shop_id: int,
    *,
    name: str,
    email: str | None = None,
    phone: str | None = None,
    avatar_url: str | None = None,
) -> Customer:
    require_shop(shop_id)
    name = (name or "").strip()
    if not name:
        raise CustomerError("Customer name required")

    email = (email or "").strip().lower() or None
    if email and db.session.query(Customer.id).filter_by(shop_id=shop_id, email=email).first():
        raise ConflictError("A customer with this email already exists")

    customer = Customer(
        shop_id=shop_id,
        name=name,
        email=email,
        phone=(phone or "").strip() or None,
        avatar_url=avatar_url,
        total_spent_cents=0,
        last_seen_at=utcnow(),
    )
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A customer with this email already exists")
    return customer


def get_customer(shop_id: int, customer_id: int) -> Customer:
    customer = db.session.query(Customer).filter_by(id=customer_id, shop_id=shop_id).first()
    if customer is None:
        raise CustomerError("Customer not found", details={"customer_id": customer_id})
    return customer


def update_customer(shop_id: int, customer_id: int, patch: dict) -> Customer:
    """
    Edit contact details. Only name, email, phone and avatar_url are
    writable; spend totals are never set from here.
    """
    unknown = set(patch) - CUSTOMER_UPDATE_FIELDS
    if unknown:
        raise CustomerError("Unknown or read-only fields", details={"fields": sorted(unknown)})

    customer = get_customer(shop_id, customer_id)

    changes = {}
    if "name" in patch:
        changes["name"] = (patch["name"] or "").strip()
        if not changes["name"]:
            raise CustomerError("Customer name required")
    if "email" in patch:
        changes["email"] = (patch["email"] or "").strip().lower() or None
        if changes["email"] and (
            db.session.query(Customer.id)
            .filter(
                Customer.shop_id == shop_id,
                Customer.email == changes["email"],
                Customer.id != customer_id,
            )
            .first()
        ):
            raise ConflictError("A customer with this email already exists")
    if "phone" in patch:
        changes["phone"] = (patch["phone"] or "").strip() or None
    if "avatar_url" in patch:
        changes["avatar_url"] = patch["avatar_url"] or None

    for k, v in changes.items():
        setattr(customer, k, v)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A customer with this email already exists")
    return customer


def delete_customer(shop_id: int, customer_id: int) -> None:
    """Past sales keep their customer_name snapshot."""
    customer = get_customer(shop_id, customer_id)
    db.session.delete(customer)
    db.session.commit()


def list_customers(shop_id: int) -> list[Customer]:
    return (
        db.session.query(Customer)
        .filter_by(shop_id=shop_id)
        .order_by(Customer.name.asc(), Customer.id.asc())
        .all()
    )


def resolve_customer(shop_id: int, customer_id: int | None) -> CustomerRef | None:
    """Checkout attribution lookup; None for walk-ins and unknown ids."""
    if customer_id is None:
        return None
    row = (
        db.session.query(Customer.id, Customer.name)
        .filter(Customer.id == customer_id, Customer.shop_id == shop_id)
        .first()
    )
    if row is None:
        return None
    return CustomerRef(id=row.id, name=row.name)
