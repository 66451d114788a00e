from __future__ import annotations
from datetime import datetime
from shopflow.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for a single cart line / restock
MAX_LINE_QUANTITY = 100_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is (JSON columns are checked by the enforce_rules_* helpers)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable and col.default is None:
                raise ValidationError(f"{k} cannot be null")
            if col.nullable:
                patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        price = patch[key]
        if price < 0:
            raise ValidationError(f"{key} must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch, "sales_price_cents")
    _check_price(patch, "purchase_price_cents")

    if "quantity" in patch and patch["quantity"] is not None:
        if patch["quantity"] < 0:
            raise ValidationError("quantity must be >= 0")
        if patch["quantity"] > MAX_LINE_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_LINE_QUANTITY}")

    if "low_stock_threshold" in patch and patch["low_stock_threshold"] is not None:
        if patch["low_stock_threshold"] < 0:
            raise ValidationError("low_stock_threshold must be >= 0")

    if "variants" in patch and patch["variants"] is not None:
        patch["variants"] = normalize_variants(patch["variants"])


def normalize_variants(raw: Any) -> list[dict]:
    """Validate a variants list; names must be unique within a product."""
    if not isinstance(raw, list):
        raise ValidationError("variants must be a list")

    seen = set()
    cleaned = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"variants[{i}] must be an object")
        name = str(item.get("name") or "").strip()
        if not name:
            raise ValidationError(f"variants[{i}].name is required")
        if name in seen:
            raise ValidationError(f"Duplicate variant name: {name}")
        seen.add(name)
        extra = coerce_int(f"variants[{i}].additional_price_cents", item.get("additional_price_cents", 0))
        if extra < 0:
            raise ValidationError(f"variants[{i}].additional_price_cents must be >= 0")
        cleaned.append({
            "name": name,
            "value": str(item.get("value") or "").strip(),
            "additional_price_cents": extra,
        })
    return cleaned


def enforce_rules_restock(quantity: Any) -> int:
    qty = coerce_int("quantity", quantity)
    if qty <= 0:
        raise ValidationError("quantity must be > 0 for restock")
    if qty > MAX_LINE_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_LINE_QUANTITY}")
    return qty


@dataclass(frozen=True)
class CheckoutLineInput:
    product_id: int
    quantity: int
    variants: tuple[str, ...] = ()


@dataclass(frozen=True)
class CheckoutInput:
    lines: list[CheckoutLineInput]
    payment_method: str
    customer_id: int | None = None
    amount_paid_cents: int | None = None


def parse_checkout_payload(payload: Any) -> CheckoutInput:
    """
    Shape-check a checkout request body.

    Stock and payment consistency are NOT checked here; the checkout engine
    owns those rules. Duplicate product ids are rejected because a cart holds
    one line per product.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_lines = payload.get("lines", [])
    if not isinstance(raw_lines, list):
        raise ValidationError("lines must be a list")

    lines = []
    seen = set()
    for i, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"lines[{i}] must be an object")
        if "product_id" not in raw:
            raise ValidationError(f"lines[{i}].product_id is required")
        product_id = coerce_int(f"lines[{i}].product_id", raw["product_id"])
        quantity = coerce_int(f"lines[{i}].quantity", raw.get("quantity", 1))
        if quantity < 1:
            raise ValidationError(f"lines[{i}].quantity must be >= 1")
        if quantity > MAX_LINE_QUANTITY:
            raise ValidationError(f"lines[{i}].quantity cannot exceed {MAX_LINE_QUANTITY}")
        if product_id in seen:
            raise ValidationError(f"Duplicate product_id in lines: {product_id}")
        seen.add(product_id)

        variants = raw.get("variants") or []
        if not isinstance(variants, list) or not all(isinstance(v, str) for v in variants):
            raise ValidationError(f"lines[{i}].variants must be a list of variant names")
        lines.append(CheckoutLineInput(product_id=product_id, quantity=quantity, variants=tuple(variants)))

    payment_method = payload.get("payment_method")
    if not payment_method or not isinstance(payment_method, str):
        raise ValidationError("payment_method required")

    customer_id = payload.get("customer_id")
    if customer_id is not None:
        customer_id = coerce_int("customer_id", customer_id)

    amount_paid = payload.get("amount_paid_cents")
    if amount_paid is not None:
        amount_paid = coerce_int("amount_paid_cents", amount_paid)

    return CheckoutInput(
        lines=lines,
        payment_method=payment_method.strip(),
        customer_id=customer_id,
        amount_paid_cents=amount_paid,
    )
