# Overview: Request decorators for API routes; seller identity and shop scoping.

from functools import wraps
from flask import request, jsonify, g

from .services.catalog_service import require_shop, CatalogError
from .services.checkout_service import SellerIdentity


def require_seller(f):
    """
    Establish the seller for the request.

    Identity is issued upstream (the auth provider in front of the API); this
    only carries it through. Sets:
    - g.seller: SellerIdentity(id, display_name)

    Returns 401 if X-Seller-Id is missing. The display name falls back to
    the id when X-Seller-Name is absent.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        seller_id = (request.headers.get("X-Seller-Id") or "").strip()
        if not seller_id:
            return jsonify({"error": "Seller identity required", "code": "SELLER_REQUIRED"}), 401

        display_name = (request.headers.get("X-Seller-Name") or "").strip() or seller_id
        g.seller = SellerIdentity(id=seller_id, display_name=display_name)

        return f(*args, **kwargs)

    return decorated_function


def require_active_shop(f):
    """
    Resolve the <shop_id> URL segment to an active Shop.

    MULTI-TENANT: Sets g.shop; everything downstream filters by g.shop.id.
    Unknown or deactivated shops return 404.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.shop = require_shop(kwargs["shop_id"])
        except CatalogError:
            return jsonify({"error": "Shop not found"}), 404
        return f(*args, **kwargs)

    return decorated_function
