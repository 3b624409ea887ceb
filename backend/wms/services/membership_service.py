# Overview: Membership administration; listing members, changing roles, removing members.

"""
Membership Service

Every mutation is guarded by the actor's own membership in the target
warehouse (roles:change / users:remove). An actor may never target their
own membership, whatever their role.
"""

from __future__ import annotations

from flask import current_app

from ..errors import CannotChangeSelfError, CannotRemoveSelfError, NotFoundError
from ..extensions import db
from ..models import Membership, User
from ..validation import validate_role
from . import permission_service
from .concurrency import lock_for_update, run_with_retry


def _require_target(warehouse_id: int, target_user_id: int) -> Membership:
    membership = lock_for_update(
        db.session.query(Membership).filter_by(warehouse_id=warehouse_id, user_id=target_user_id)
    ).first()
    if not membership:
        raise NotFoundError("membership")
    return membership


def list_members(actor_id: int, warehouse_id: int) -> list[dict]:
    """Members of a warehouse; empty for callers without users:view."""
    if not permission_service.check_permission(actor_id, warehouse_id, "users:view"):
        return []

    rows = (
        db.session.query(Membership, User)
        .join(User, User.id == Membership.user_id)
        .filter(Membership.warehouse_id == warehouse_id)
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
        .all()
    )
    result = []
    for membership, user in rows:
        row = membership.to_dict()
        row["name"] = user.name
        row["email"] = user.email
        result.append(row)
    return result


def change_role(actor_id: int, warehouse_id: int, target_user_id: int, new_role: str) -> Membership:
    new_role = validate_role(new_role)

    def _op():
        permission_service.require_permission(actor_id, warehouse_id, "roles:change")
        if actor_id == target_user_id:
            raise CannotChangeSelfError()

        membership = _require_target(warehouse_id, target_user_id)
        previous = membership.role
        membership.role = new_role
        db.session.commit()
        return membership, previous

    membership, previous = run_with_retry(_op)
    current_app.logger.info(
        "Role of user %s in warehouse %s changed %s -> %s by user %s",
        target_user_id,
        warehouse_id,
        previous,
        new_role,
        actor_id,
    )
    return membership


def remove_member(actor_id: int, warehouse_id: int, target_user_id: int) -> None:
    def _op():
        permission_service.require_permission(actor_id, warehouse_id, "users:remove")
        if actor_id == target_user_id:
            raise CannotRemoveSelfError()

        membership = _require_target(warehouse_id, target_user_id)
        db.session.delete(membership)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info(
        "User %s removed from warehouse %s by user %s", target_user_id, warehouse_id, actor_id
    )
