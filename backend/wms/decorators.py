# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, g, jsonify, request

from .services import identity_service


def require_user(f):
    """
    Require an identified caller.

    The identity proxy forwards the provider's user id in AUTH_HEADER; it is
    resolved to the mirrored User row and stored as g.current_user.

    Returns 401 if:
    - The header is missing or empty
    - No user with that external id has been synced yet
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config.get("AUTH_HEADER", "X-Auth-User")
        external_id = (request.headers.get(header) or "").strip()

        if not external_id:
            return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401

        user = identity_service.get_user_by_external_id(external_id)
        if not user:
            return jsonify({"error": "Unknown user", "code": "unauthenticated"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function
