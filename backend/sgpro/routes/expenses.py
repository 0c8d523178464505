# Overview: Flask API routes for expense operations; validates input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..validation import (
    DATE,
    NUMBER,
    STR,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_expense,
    validate_payload,
)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={
        "description": STR,
        "category": STR,
        "value": NUMBER,
        "date": DATE,
        "notes": STR,
    },
    required_on_create=frozenset({"description", "category", "value"}),
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
@require_permission("expenses.view")
def list_expenses():
    """
    Query params:
    - q: str (optional) - search description or category
    - start, end: YYYY-MM-DD (optional, inclusive)
    """
    query = request.args.get("q")
    expenses = g.store.filter_expenses_by_date(request.args.get("start"), request.args.get("end"))

    if query:
        matching = {e.id for e in g.store.search_expenses(query)}
        expenses = [e for e in expenses if e.id in matching]

    return jsonify({
        "items": [e.to_dict() for e in expenses],
        "count": len(expenses),
        "total": g.store.get_total_expenses(expenses),
    }), 200


@expenses_bp.get("/by-category")
@require_auth
@require_permission("expenses.view")
def expenses_by_category():
    expenses = g.store.filter_expenses_by_date(request.args.get("start"), request.args.get("end"))
    return jsonify({"categories": g.store.get_expenses_by_category(expenses)}), 200


@expenses_bp.get("/<expense_id>")
@require_auth
@require_permission("expenses.view")
def get_expense_route(expense_id: str):
    expense = g.store.get_expense(expense_id)
    if expense is None:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(expense.to_dict()), 200


@expenses_bp.post("")
@require_auth
@require_permission("expenses.create")
def create_expense_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    patch.setdefault("notes", "")
    expense = g.store.add_expense(patch)
    return jsonify(expense.to_dict()), 201


@expenses_bp.put("/<expense_id>")
@require_auth
@require_permission("expenses.edit")
def update_expense_route(expense_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    expense = g.store.update_expense(expense_id, patch)
    if expense is None:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(expense.to_dict()), 200


@expenses_bp.delete("/<expense_id>")
@require_auth
@require_permission("expenses.delete")
def delete_expense_route(expense_id: str):
    if not g.store.delete_expense(expense_id):
        return jsonify({"error": "Expense not found"}), 404
    return jsonify({"success": True}), 200
