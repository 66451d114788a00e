# Overview: Flask API routes for the customer directory.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import customer_service
from ..services.customer_service import CustomerError
from ..validation import ConflictError
from ..decorators import require_active_shop, require_seller

customers_bp = Blueprint("customers", __name__, url_prefix="/api/shops/<int:shop_id>/customers")


@customers_bp.get("")
@require_active_shop
def list_customers_route(shop_id: int):
    customers = customer_service.list_customers(shop_id)
    return jsonify({"customers": [c.to_dict() for c in customers]}), 200


@customers_bp.post("")
@require_active_shop
@require_seller
def create_customer_route(shop_id: int):
    """
    Create a customer.

    Body: {"name": str, "email"?: str, "phone"?: str, "avatar_url"?: str}
    Email is unique per shop (case-insensitive).
    """
    payload = request.get_json(silent=True) or {}
    try:
        customer = customer_service.create_customer(
            shop_id,
            name=payload.get("name"),
            email=payload.get("email"),
            phone=payload.get("phone"),
            avatar_url=payload.get("avatar_url"),
        )
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except CustomerError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"customer": customer.to_dict()}), 201


@customers_bp.get("/<int:customer_id>")
@require_active_shop
def get_customer_route(shop_id: int, customer_id: int):
    try:
        customer = customer_service.get_customer(shop_id, customer_id)
    except CustomerError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.patch("/<int:customer_id>")
@require_active_shop
@require_seller
def update_customer_route(shop_id: int, customer_id: int):
    """
    Edit a customer's contact details.

    Body: any of {"name", "email", "phone", "avatar_url"}
    """
    try:
        customer_service.get_customer(shop_id, customer_id)
    except CustomerError as e:
        return jsonify({"error": str(e), "details": e.details}), 404

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "JSON object body required"}), 400

    try:
        customer = customer_service.update_customer(shop_id, customer_id, payload)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except CustomerError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.delete("/<int:customer_id>")
@require_active_shop
@require_seller
def delete_customer_route(shop_id: int, customer_id: int):
    try:
        customer_service.delete_customer(shop_id, customer_id)
    except CustomerError as e:
        return jsonify({"error": str(e), "details": e.details}), 404

    current_app.logger.info(
        "Customer %s deleted from shop %s by seller %s", customer_id, shop_id, g.seller.id
    )
    return jsonify({"deleted": customer_id}), 200
