# Overview: Authorization guard; resolves a member's role and checks it against the role matrix.

"""
Permission Checking with Warehouse-Scoped Memberships

WHY: Every mutation on warehouses, stores, products, memberships and
invitations funnels through require_permission() before touching state.
Read paths use check_permission() and filter instead of raising, so an
unauthorized caller cannot tell an existing tenant from a missing one.

DESIGN PRINCIPLES:
- Fail closed: no membership, or a role missing from the matrix, means no permissions
- The guard only looks at the Membership row and the static matrix; it knows
  nothing about cascades or invitations
- Denials are logged; grants are not
"""

from __future__ import annotations

from flask import current_app

from ..errors import PermissionDeniedError
from ..extensions import db
from ..models import Membership
from ..permissions import has_permission, get_role_permissions


def get_membership(user_id: int, warehouse_id: int) -> Membership | None:
    return (
        db.session.query(Membership)
        .filter_by(warehouse_id=warehouse_id, user_id=user_id)
        .first()
    )


def get_user_role(user_id: int, warehouse_id: int) -> str | None:
    """Role held by the user in the warehouse, or None when not a member."""
    membership = get_membership(user_id, warehouse_id)
    return membership.role if membership else None


def get_user_permissions(user_id: int, warehouse_id: int) -> set[str]:
    return set(get_role_permissions(get_user_role(user_id, warehouse_id)))


def check_permission(user_id: int, warehouse_id: int, permission: str) -> bool:
    """
    Non-throwing variant used for read filtering.

    Returns True if the user's membership role grants the permission.
    """
    role = get_user_role(user_id, warehouse_id)
    if role is None:
        return False
    return has_permission(role, permission)


def require_permission(user_id: int, warehouse_id: int, permission: str) -> Membership:
    """
    Require a permission in a warehouse; returns the caller's membership.

    Raises PermissionDeniedError when no membership exists or its role lacks
    the permission.
    """
    membership = get_membership(user_id, warehouse_id)
    if membership is None or not has_permission(membership.role, permission):
        current_app.logger.warning(
            "Permission denied: user=%s warehouse=%s permission=%s role=%s",
            user_id,
            warehouse_id,
            permission,
            membership.role if membership else None,
        )
        raise PermissionDeniedError(permission)
    return membership
