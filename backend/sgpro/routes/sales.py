# Overview: Flask API routes for sales; validates sale payloads and maps Store results to HTTP.

"""
Sales routes.

Sales are immutable once recorded: there is no update endpoint.
Recording a sale takes its quantities out of stock; deleting a sale
puts them back into products that still exist.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..validation import ConflictError, ValidationError, validate_sale_payload
from ..services.reporting_service import ReportError, check_range

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

PERIODS = {"today", "week", "month", "year", "all"}


def sale_to_dict(sale) -> dict:
    data = sale.to_dict()
    # Flag lines whose product has since been deleted
    for item, row in zip(sale.items, data["items"]):
        row["productAvailable"] = g.store.get_sale_item_product(item) is not None
    return data


@sales_bp.get("")
@require_auth
@require_permission("sales.view")
def list_sales():
    """
    List sales, newest first.

    Query params:
    - q: str (optional) - search client or sale id
    - period: today|week|month|year|all (optional)
    - start, end: YYYY-MM-DD (optional, inclusive)
    """
    query = request.args.get("q")
    period = request.args.get("period")
    start = request.args.get("start")
    end = request.args.get("end")

    if period and period not in PERIODS:
        return jsonify({"error": f"period must be one of: {', '.join(sorted(PERIODS))}"}), 400

    try:
        check_range(start, end)
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    if period:
        sales = g.store.get_sales_by_period(period)
    else:
        sales = g.store.filter_sales_by_date(start, end)

    if query:
        matching = {s.id for s in g.store.search_sales(query)}
        sales = [s for s in sales if s.id in matching]

    return jsonify({
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "total": g.store.get_total_sales(sales),
    }), 200


@sales_bp.get("/<sale_id>")
@require_auth
@require_permission("sales.view")
def get_sale_route(sale_id: str):
    sale = g.store.get_sale(sale_id)
    if sale is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify(sale_to_dict(sale)), 200


@sales_bp.post("")
@require_auth
@require_permission("sales.create")
def create_sale_route():
    """
    Record a sale.

    Body: {"client": str, "items": [{"productId": str, "quantity": int, "price"?: number}], "date"?: str}
    Returns 201 with the sale, 400 on invalid input, 409 on insufficient stock.
    """
    payload = request.get_json(silent=True) or {}

    try:
        cleaned = validate_sale_payload(payload, store=g.store)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        sale = g.store.add_sale(cleaned)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    if sale is None:
        return jsonify({"error": "Sale could not be recorded"}), 409

    return jsonify(sale_to_dict(sale)), 201


@sales_bp.delete("/<sale_id>")
@require_auth
@require_permission("sales.delete")
def delete_sale_route(sale_id: str):
    if not g.store.delete_sale(sale_id):
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"success": True}), 200
