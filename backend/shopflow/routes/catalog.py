# Overview: Flask API routes for the shop catalog; products, categories and stock.

# backend/shopflow/routes/catalog.py
"""
Catalog routes.

MULTI-TENANT: Every route lives under /api/shops/<shop_id>/ and only reads
or writes rows of that shop (resolved by @require_active_shop).

Stock is only ever changed by checkout and by the restock endpoint; product
creation sets the starting quantity.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Product
from ..services import catalog_service
from ..services.catalog_service import CatalogError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    enforce_rules_restock,
    ValidationError,
    ConflictError,
)
from ..decorators import require_active_shop, require_seller

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(catalog_service.PRODUCT_CREATE_FIELDS),
    required_on_create={"name", "sales_price_cents"},
)

MAX_LIST_LIMIT = 500

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/shops/<int:shop_id>")


@catalog_bp.get("/products")
@require_active_shop
def list_products_route(shop_id: int):
    """
    Browse products.

    Query params:
    - category_id: int (optional)
    - search: str (optional) - case-insensitive name match
    - limit: int (optional, max 500)
    """
    category_id = request.args.get("category_id", type=int)
    search = request.args.get("search")
    limit = request.args.get("limit", type=int)
    if limit is not None and (limit < 1 or limit > MAX_LIST_LIMIT):
        return jsonify({"error": f"limit must be between 1 and {MAX_LIST_LIMIT}"}), 400

    products = catalog_service.list_products(shop_id, category_id=category_id, search=search, limit=limit)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@catalog_bp.get("/products/recent")
@require_active_shop
def recent_products_route(shop_id: int):
    products = catalog_service.list_recent_products(shop_id)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@catalog_bp.get("/products/low-stock")
@require_active_shop
def low_stock_route(shop_id: int):
    products = catalog_service.list_low_stock(shop_id)
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@catalog_bp.get("/products/lookup")
@require_active_shop
def lookup_product_route(shop_id: int):
    """Scanner lookup by product code (or numeric id)."""
    code = request.args.get("code", "")
    if not code.strip():
        return jsonify({"error": "code required"}), 400

    product = catalog_service.find_product_by_code(shop_id, code)
    if product is None:
        return jsonify({"error": "Product not found", "code": code}), 404
    return jsonify({"product": product.to_dict()}), 200


@catalog_bp.get("/products/<int:product_id>")
@require_active_shop
def get_product_route(shop_id: int, product_id: int):
    try:
        product = catalog_service.get_product(shop_id, product_id)
    except CatalogError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    return jsonify({"product": product.to_dict()}), 200


@catalog_bp.post("/products")
@require_active_shop
@require_seller
def create_product_route(shop_id: int):
    """Create a product with its starting stock."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = catalog_service.create_product(shop_id, patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except CatalogError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Product %s created in shop %s by seller %s", product.id, shop_id, g.seller.id
    )
    return jsonify({"product": product.to_dict()}), 201


@catalog_bp.post("/products/<int:product_id>/restock")
@require_active_shop
@require_seller
def restock_product_route(shop_id: int, product_id: int):
    """
    Receive goods: increase on-hand quantity.

    Body: {"quantity": int > 0}
    """
    payload = request.get_json(silent=True) or {}
    try:
        quantity = enforce_rules_restock(payload.get("quantity"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = catalog_service.restock_product(shop_id, product_id, quantity)
    except CatalogError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except Exception:
        current_app.logger.exception("Failed to restock product")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Product %s restocked +%s in shop %s by seller %s", product_id, quantity, shop_id, g.seller.id
    )
    return jsonify({"product": product.to_dict()}), 200


@catalog_bp.delete("/products/<int:product_id>")
@require_active_shop
@require_seller
def delete_product_route(shop_id: int, product_id: int):
    """Remove a product. Receipts that sold it keep their line snapshots."""
    try:
        catalog_service.delete_product(shop_id, product_id)
    except CatalogError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Product %s deleted from shop %s by seller %s", product_id, shop_id, g.seller.id
    )
    return jsonify({"deleted": product_id}), 200


@catalog_bp.get("/categories")
@require_active_shop
def list_categories_route(shop_id: int):
    categories = catalog_service.list_categories(shop_id)
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@catalog_bp.post("/categories")
@require_active_shop
@require_seller
def create_category_route(shop_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        category = catalog_service.create_category(
            shop_id,
            payload.get("name"),
            image_url=payload.get("image_url"),
        )
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except CatalogError as e:
        return jsonify({"error": str(e), "details": e.details}), 400

    return jsonify({"category": category.to_dict()}), 201
