# Overview: Flask API routes for products; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from wms.decorators import require_user
from wms.errors import ServiceError
from wms.services import products_service, tenant_service


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_user
def list_products():
    """Products across every store the caller may view inventory in."""
    return jsonify({"products": tenant_service.list_my_products(g.current_user.id)}), 200


@products_bp.get("/<int:product_id>")
@require_user
def get_product(product_id: int):
    return jsonify({"product": products_service.get_product(g.current_user.id, product_id)}), 200


@products_bp.put("/<int:product_id>")
@require_user
def update_product(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        product = products_service.update_product(g.current_user.id, product_id, payload)
        return jsonify({"product": product.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_user
def delete_product(product_id: int):
    try:
        products_service.delete_product(g.current_user.id, product_id)
        return jsonify({"deleted": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<int:product_id>/image")
@require_user
def upload_image(product_id: int):
    """Multipart upload; the file field is named "image"."""
    upload = request.files.get("image")
    if upload is None or not upload.filename:
        return jsonify({"error": "image file required", "code": "validation_error"}), 400
    try:
        products_service.set_product_image(g.current_user.id, product_id, upload.stream, upload.filename)
        return jsonify({"product": products_service.get_product(g.current_user.id, product_id)}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to store product image")
        return jsonify({"error": "Internal server error"}), 500
