# Overview: Flask API routes for warehouse memberships; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from wms.decorators import require_user
from wms.errors import ServiceError
from wms.services import membership_service


members_bp = Blueprint("members", __name__, url_prefix="/api/warehouses/<int:warehouse_id>/members")


@members_bp.get("")
@require_user
def list_members(warehouse_id: int):
    members = membership_service.list_members(g.current_user.id, warehouse_id)
    return jsonify({"members": members}), 200


@members_bp.put("/<int:user_id>")
@require_user
def change_role(warehouse_id: int, user_id: int):
    """
    Change a member's role.

    Requires: roles:change in the warehouse
    Body: {"role": "owner" | "manager" | "staff"}
    """
    data = request.get_json(silent=True) or {}
    try:
        membership = membership_service.change_role(g.current_user.id, warehouse_id, user_id, data.get("role"))
        return jsonify({"membership": membership.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to change member role")
        return jsonify({"error": "Internal server error"}), 500


@members_bp.delete("/<int:user_id>")
@require_user
def remove_member(warehouse_id: int, user_id: int):
    try:
        membership_service.remove_member(g.current_user.id, warehouse_id, user_id)
        return jsonify({"removed": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to remove member")
        return jsonify({"error": "Internal server error"}), 500
