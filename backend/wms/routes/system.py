# backend/wms/routes/system.py
"""
System health, caller identity and stored-object endpoints.
"""

import time
from flask import Blueprint, current_app, g, jsonify, send_from_directory, abort

from ..decorators import require_user
from ..extensions import db
from ..models import Membership, User, Warehouse
from ..services.object_storage import LocalObjectStorage, get_object_storage

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a few cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        warehouse_count = db.session.query(Warehouse).count()
        membership_count = db.session.query(Membership).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "warehouses": warehouse_count,
                "memberships": membership_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_search_health() -> dict:
    embedder = current_app.extensions.get("wms.embedder")
    if embedder is None:
        return {"status": "disabled", "warning": "OPENAI_API_KEY not configured"}
    return {"status": "healthy", "model": current_app.config.get("EMBEDDING_MODEL")}


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    search = check_search_health()
    status = "healthy" if database["status"] == "healthy" else "unhealthy"
    code = 200 if status == "healthy" else 503
    return jsonify({
        "status": status,
        "checks": {
            "database": database,
            "search": search,
        },
    }), code


@system_bp.get("/api/me")
@require_user
def me():
    return jsonify({"user": g.current_user.to_dict()}), 200


@system_bp.get("/uploads/<path:ref>")
def get_upload(ref: str):
    storage = get_object_storage()
    # Remote backends hand out their own URLs
    if not isinstance(storage, LocalObjectStorage) or storage.get_url(ref) is None:
        abort(404)
    return send_from_directory(storage.root, ref)
