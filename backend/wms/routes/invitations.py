# Overview: Flask API routes for invitations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from wms.decorators import require_user
from wms.errors import ServiceError
from wms.services import invitation_service


invitations_bp = Blueprint("invitations", __name__, url_prefix="/api")


@invitations_bp.get("/invitations")
@require_user
def list_my_invitations():
    """Pending invitations addressed to the caller's email."""
    return jsonify({"invitations": invitation_service.list_my_invitations(g.current_user.id)}), 200


@invitations_bp.get("/warehouses/<int:warehouse_id>/invitations")
@require_user
def list_warehouse_invitations(warehouse_id: int):
    invitations = invitation_service.list_warehouse_invitations(g.current_user.id, warehouse_id)
    return jsonify({"invitations": invitations}), 200


@invitations_bp.post("/warehouses/<int:warehouse_id>/invitations")
@require_user
def invite_user(warehouse_id: int):
    """
    Invite an email address to the warehouse.

    Requires: users:invite
    Body: {"email": "...", "role": "owner" | "manager" | "staff"}
    """
    data = request.get_json(silent=True) or {}
    try:
        invitation = invitation_service.invite_user(
            g.current_user.id,
            warehouse_id,
            email=data.get("email"),
            role=data.get("role"),
        )
        return jsonify({"invitation": invitation.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create invitation")
        return jsonify({"error": "Internal server error"}), 500


@invitations_bp.post("/invitations/<int:invitation_id>/accept")
@require_user
def accept_invitation(invitation_id: int):
    try:
        membership = invitation_service.accept_invitation(g.current_user.id, invitation_id)
        return jsonify({"membership": membership.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to accept invitation")
        return jsonify({"error": "Internal server error"}), 500


@invitations_bp.post("/invitations/<int:invitation_id>/decline")
@require_user
def decline_invitation(invitation_id: int):
    try:
        invitation_service.decline_invitation(g.current_user.id, invitation_id)
        return jsonify({"declined": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to decline invitation")
        return jsonify({"error": "Internal server error"}), 500


@invitations_bp.delete("/invitations/<int:invitation_id>")
@require_user
def cancel_invitation(invitation_id: int):
    try:
        invitation_service.cancel_invitation(g.current_user.id, invitation_id)
        return jsonify({"cancelled": True}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to cancel invitation")
        return jsonify({"error": "Internal server error"}), 500
