# Overview: Flask API route for checkout; builds a cart from the request and commits it.

# backend/shopflow/routes/checkout.py
"""
Checkout route.

One request = one checkout attempt. The request body is turned into a Cart
(product snapshots read now), then handed to the checkout engine which
re-validates stock and commits the sale atomically.

Status mapping:
- 201: committed
- 400: empty cart, invalid payment, bad payload, unknown variant
- 401: no seller identity
- 404: unknown shop
- 409: insufficient stock (details carry product_id / requested / available)
- 503: commit failure; safe to retry (retryable: true)
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..cart import Cart, CartProduct, REASON_UNKNOWN_VARIANT
from ..services import checkout_service, ledger_service
from ..services.catalog_service import CatalogError, get_product, stock_lookup_for
from ..services.checkout_service import CheckoutEngine, InsufficientStock
from ..validation import parse_checkout_payload, ValidationError
from ..decorators import require_active_shop, require_seller

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/shops/<int:shop_id>")

ERROR_STATUS = {
    checkout_service.EmptyCart.code: 400,
    checkout_service.InvalidPaymentState.code: 400,
    "TENANT_MISMATCH": 400,
    "SELLER_REQUIRED": 401,
    InsufficientStock.code: 409,
    checkout_service.CommitFailure.code: 503,
}


def _error_response(error):
    return jsonify(error.to_dict()), ERROR_STATUS.get(error.code, 400)


def build_cart(shop_id: int, checkout_input) -> Cart:
    """
    Fill a Cart from parsed input.

    Raises InsufficientStock when a line cannot be added for stock reasons
    (missing products read as 0 available) and ValidationError for unknown
    variants.
    """
    cart = Cart(shop_id=shop_id, stock_lookup=stock_lookup_for(shop_id))
    for line in checkout_input.lines:
        try:
            product = CartProduct.from_model(get_product(shop_id, line.product_id))
        except CatalogError:
            raise InsufficientStock(line.product_id, line.quantity, 0)

        update = cart.add_line(product, line.quantity, line.variants)
        if update.reason == REASON_UNKNOWN_VARIANT:
            raise ValidationError(f"Unknown variant for product {line.product_id}")
        if not update:
            available = update.available if update.available is not None else product.quantity
            raise InsufficientStock(line.product_id, update.quantity, available)

    cart.select_customer(checkout_input.customer_id)
    # Set directly: the engine owns correcting amounts on non-debt payments
    cart.payment_method = checkout_input.payment_method
    cart.amount_paid_cents = checkout_input.amount_paid_cents
    return cart


@checkout_bp.post("/checkout")
@require_active_shop
@require_seller
def checkout_route(shop_id: int):
    """
    Check out a cart.

    Body:
    {
        "lines": [{"product_id": 1, "quantity": 2, "variants": ["Size L"]}],
        "customer_id": 7,              (optional, walk-in when omitted)
        "payment_method": "debt",      (cash | card | mobile_money | debt)
        "amount_paid_cents": 4000      (debt only; others always pay in full)
    }
    """
    try:
        checkout_input = parse_checkout_payload(request.get_json(silent=True))
        cart = build_cart(shop_id, checkout_input)
    except ValidationError as e:
        return jsonify({"error": str(e), "code": "VALIDATION_ERROR"}), 400
    except InsufficientStock as e:
        return _error_response(e)

    try:
        engine = CheckoutEngine(tax_rate_bps=g.shop.tax_rate_bps)
        result = engine.checkout(cart, shop_id, g.seller)
        if not result.ok:
            return _error_response(result.error)

        cart.clear()
        record = ledger_service.get_transaction(shop_id, result.transaction_id)
        return jsonify({
            "transaction_id": result.transaction_id,
            "transaction": record.to_dict(),
        }), 201

    except Exception:
        current_app.logger.exception("Checkout failed unexpectedly")
        return jsonify({"error": "Internal server error"}), 500
