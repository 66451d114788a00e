# Overview: Flask API routes for the sales ledger; receipts, recent sales and debts.

# backend/shopflow/routes/sales.py
"""Sales ledger API routes (read-only; sales are created by checkout)"""

from flask import Blueprint, request, jsonify

from ..services import ledger_service
from ..services.ledger_service import LedgerError
from ..decorators import require_active_shop
from shopflow.time_utils import ledger_window


sales_bp = Blueprint("sales", __name__, url_prefix="/api/shops/<int:shop_id>/transactions")

MAX_LIST_LIMIT = 500


def _parse_bool(value) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@sales_bp.get("")
@require_active_shop
def list_transactions_route(shop_id: int):
    """
    List transactions, newest first.

    Query params:
    - debts_only: bool (optional)
    - since / until: ISO-8601 datetimes (optional; since inclusive, until exclusive)
    - limit: int (optional, max 500)
    """
    debts_only = _parse_bool(request.args.get("debts_only", "false"))
    limit = request.args.get("limit", type=int)
    if limit is not None and (limit < 1 or limit > MAX_LIST_LIMIT):
        return jsonify({"error": f"limit must be between 1 and {MAX_LIST_LIMIT}"}), 400

    try:
        since, until = ledger_window(request.args.get("since"), request.args.get("until"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    records = ledger_service.list_transactions(
        shop_id,
        debts_only=debts_only,
        since=since,
        until=until,
        limit=limit,
    )
    return jsonify({
        "transactions": [r.to_dict(include_lines=False) for r in records],
    }), 200


@sales_bp.get("/summary")
@require_active_shop
def summary_route(shop_id: int):
    return jsonify({"summary": ledger_service.sales_summary(shop_id)}), 200


@sales_bp.get("/<int:transaction_id>")
@require_active_shop
def get_transaction_route(shop_id: int, transaction_id: int):
    """Receipt view: transaction with its line snapshots."""
    try:
        record = ledger_service.get_transaction(shop_id, transaction_id)
    except LedgerError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    return jsonify({"transaction": record.to_dict()}), 200
