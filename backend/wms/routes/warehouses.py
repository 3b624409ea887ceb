# Overview: Flask API routes for warehouses and their stores; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from wms.decorators import require_user
from wms.errors import ServiceError
from wms.services import store_service, tenant_service, warehouse_service


warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api/warehouses")


@warehouses_bp.get("")
@require_user
def list_warehouses():
    """Every warehouse the caller belongs to, with role and totals."""
    return jsonify({"warehouses": tenant_service.list_my_warehouses(g.current_user.id)}), 200


@warehouses_bp.post("")
@require_user
def create_warehouse():
    """Any identified user may create a warehouse; the creator becomes owner."""
    data = request.get_json(silent=True) or {}
    try:
        warehouse = warehouse_service.create_warehouse(
            g.current_user.id,
            name=data.get("name"),
            description=data.get("description") or "",
        )
        return jsonify({"warehouse": warehouse.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.get("/by-name/<string:name>")
@require_user
def get_warehouse_by_name(name: str):
    warehouse = tenant_service.get_warehouse_by_name(g.current_user.id, name)
    return jsonify({"warehouse": warehouse.to_dict()}), 200


@warehouses_bp.get("/<int:warehouse_id>")
@require_user
def get_warehouse(warehouse_id: int):
    """Warehouse details; the summary is included when the caller may view stores."""
    warehouse = warehouse_service.get_warehouse(g.current_user.id, warehouse_id)
    payload = {"warehouse": warehouse.to_dict()}
    try:
        payload["summary"] = warehouse_service.get_warehouse_summary(g.current_user.id, warehouse_id)
    except ServiceError:
        payload["summary"] = None
    return jsonify(payload), 200


@warehouses_bp.put("/<int:warehouse_id>")
@require_user
def update_warehouse(warehouse_id: int):
    data = request.get_json(silent=True) or {}
    try:
        warehouse = warehouse_service.update_warehouse(g.current_user.id, warehouse_id, data)
        return jsonify({"warehouse": warehouse.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.delete("/<int:warehouse_id>")
@require_user
def delete_warehouse(warehouse_id: int):
    """Deletes the warehouse with its memberships, invitations, stores and products."""
    try:
        warehouse_service.delete_warehouse(g.current_user.id, warehouse_id)
        return jsonify({"deleted": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to delete warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.get("/<int:warehouse_id>/stores")
@require_user
def list_stores(warehouse_id: int):
    stores = store_service.list_warehouse_stores(g.current_user.id, warehouse_id)
    return jsonify({"stores": stores}), 200


@warehouses_bp.post("/<int:warehouse_id>/stores")
@require_user
def create_store(warehouse_id: int):
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.create_store(g.current_user.id, warehouse_id, data)
        return jsonify({"store": store.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500
