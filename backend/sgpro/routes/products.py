# Overview: Flask API routes for product operations; validates input and returns JSON responses.

"""
Product management routes.

- Read operations require products.view
- Writes require products.create / products.edit / products.delete
Validation happens here; the Store persists whatever it is given.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..utils import calculate_margin
from ..validation import (
    INT,
    NUMBER,
    STR,
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "code": STR,
        "name": STR,
        "category": STR,
        "cost": NUMBER,
        "price": NUMBER,
        "stock": INT,
        "description": STR,
    },
    required_on_create=frozenset({"code", "name", "cost", "price", "stock"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def product_to_dict(product) -> dict:
    data = product.to_dict()
    data["margin"] = calculate_margin(product.cost, product.price)
    return data


@products_bp.get("")
@require_auth
@require_permission("products.view")
def list_products():
    """
    List products.

    Query params:
    - q: str (optional) - search name, code or category
    - low_stock: int (optional) - only products with stock below this threshold
    """
    query = request.args.get("q")
    low_stock = request.args.get("low_stock", type=int)

    if low_stock is not None:
        products = g.store.get_low_stock_products(low_stock)
    else:
        products = g.store.search_products(query)

    return jsonify({
        "items": [product_to_dict(p) for p in products],
        "count": len(products),
    }), 200


@products_bp.get("/top-selling")
@require_auth
@require_permission("products.view")
def top_selling_products():
    limit = request.args.get("limit", default=5, type=int)
    return jsonify({"items": g.store.get_top_selling_products(limit)}), 200


@products_bp.get("/<product_id>")
@require_auth
@require_permission("products.view")
def get_product_route(product_id: str):
    product = g.store.get_product(product_id)
    if product is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(product_to_dict(product)), 200


@products_bp.post("")
@require_auth
@require_permission("products.create")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch, store=g.store)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    patch.setdefault("category", "")
    patch.setdefault("description", "")
    product = g.store.add_product(patch)
    return jsonify(product_to_dict(product)), 201


@products_bp.put("/<product_id>")
@require_auth
@require_permission("products.edit")
def update_product_route(product_id: str):
    if g.store.get_product(product_id) is None:
        return jsonify({"error": "Product not found"}), 404

    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch, store=g.store, product_id=product_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = g.store.update_product(product_id, patch)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(product_to_dict(product)), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_permission("products.delete")
def delete_product_route(product_id: str):
    if not g.store.delete_product(product_id):
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"success": True}), 200
