# Overview: Flask API routes for stores and their products; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from wms.decorators import require_user
from wms.errors import ServiceError
from wms.services import products_service, store_service, tenant_service


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_user
def list_stores():
    """Stores across every warehouse where the caller holds stores:view."""
    return jsonify({"stores": tenant_service.list_my_stores(g.current_user.id)}), 200


@stores_bp.get("/<int:store_id>")
@require_user
def get_store(store_id: int):
    return jsonify({"store": store_service.get_store(g.current_user.id, store_id)}), 200


@stores_bp.put("/<int:store_id>")
@require_user
def update_store(store_id: int):
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.update_store(g.current_user.id, store_id, data)
        return jsonify({"store": store.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.delete("/<int:store_id>")
@require_user
def delete_store(store_id: int):
    try:
        store_service.delete_store(g.current_user.id, store_id)
        return jsonify({"deleted": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to delete store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<int:store_id>/products")
@require_user
def list_products(store_id: int):
    products = products_service.list_store_products(g.current_user.id, store_id)
    return jsonify({"products": products}), 200


@stores_bp.post("/<int:store_id>/products")
@require_user
def create_product(store_id: int):
    data = request.get_json(silent=True) or {}
    try:
        product = products_service.create_product(g.current_user.id, store_id, data)
        return jsonify({"product": product.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500
