# Overview: Invitation state machine; invite, accept, decline, cancel and listings.

"""
Invitation Service

STATE MACHINE:
    pending -> accepted   (invitee accepts; membership created in the same commit)
    pending -> declined   (invitee declines)
    any     -> (deleted)  (cancel by a users:invite holder)

Invitations are addressed to an email address, so ownership is checked by
comparing the invitation email with the caller's current email.

RACES:
- Two concurrent invites for the same (email, warehouse): the partial unique
  index on pending invitations rejects the loser -> InvitationAlreadyPendingError
- Two concurrent accepts: the conditional status update and the unique
  membership constraint reject the loser -> InvitationNotPendingError /
  AlreadyMemberError
"""

from __future__ import annotations

from flask import current_app

from ..errors import (
    AlreadyMemberError,
    InvitationAlreadyPendingError,
    InvitationNotPendingError,
    NotFoundError,
    NotYourInvitationError,
)
from ..extensions import db
from ..models import (
    INVITATION_ACCEPTED,
    INVITATION_DECLINED,
    INVITATION_PENDING,
    Invitation,
    Membership,
    User,
    Warehouse,
)
from ..time_utils import utcnow
from ..validation import normalize_email, validate_role
from . import permission_service
from .concurrency import commit_or_conflict, run_with_retry
from .identity_service import require_user


def get_invitation(invitation_id: int) -> Invitation:
    invitation = db.session.query(Invitation).filter_by(id=invitation_id).first()
    if not invitation:
        raise NotFoundError("invitation")
    return invitation


def _is_member(warehouse_id: int, user_id: int) -> bool:
    return permission_service.get_membership(user_id, warehouse_id) is not None


def _invitations_for_pair(email: str, warehouse_id: int) -> list[Invitation]:
    return (
        db.session.query(Invitation)
        .filter_by(email=email, warehouse_id=warehouse_id)
        .all()
    )


def invite_user(actor_id: int, warehouse_id: int, email: str, role: str) -> Invitation:
    """
    Invite an email address to a warehouse with a role.

    Requires users:invite. Any earlier accepted or declined invitation for
    the same (email, warehouse) is replaced by the new pending one.
    """
    email = normalize_email(email)
    role = validate_role(role)

    def _op():
        permission_service.require_permission(actor_id, warehouse_id, "users:invite")

        invitee = db.session.query(User).filter_by(email=email).first()
        if invitee and _is_member(warehouse_id, invitee.id):
            raise AlreadyMemberError()

        previous = _invitations_for_pair(email, warehouse_id)
        if any(inv.is_pending for inv in previous):
            raise InvitationAlreadyPendingError()

        db.session.query(Invitation).filter(
            Invitation.email == email,
            Invitation.warehouse_id == warehouse_id,
            Invitation.status != INVITATION_PENDING,
        ).delete(synchronize_session=False)

        invitation = Invitation(
            warehouse_id=warehouse_id,
            email=email,
            role=role,
            invited_by_user_id=actor_id,
            status=INVITATION_PENDING,
            invited_at=utcnow(),
        )
        db.session.add(invitation)
        commit_or_conflict(InvitationAlreadyPendingError)
        return invitation

    invitation = run_with_retry(_op)
    current_app.logger.info(
        "User %s invited %s to warehouse %s as %s", actor_id, email, warehouse_id, role
    )
    return invitation


def _require_own_pending(user: User, invitation_id: int) -> Invitation:
    invitation = get_invitation(invitation_id)
    if invitation.email != user.email:
        raise NotYourInvitationError()
    if not invitation.is_pending:
        raise InvitationNotPendingError()
    return invitation


def _transition(invitation_id: int, status: str) -> None:
    """Flip a pending invitation; losing a concurrent transition raises."""
    updated = (
        db.session.query(Invitation)
        .filter_by(id=invitation_id, status=INVITATION_PENDING)
        .update({"status": status}, synchronize_session=False)
    )
    if updated != 1:
        raise InvitationNotPendingError()


def accept_invitation(user_id: int, invitation_id: int) -> Membership:
    """
    Accept an invitation addressed to the caller's email.

    The membership insert and the status flip commit together.
    """
    def _op():
        user = require_user(user_id)
        invitation = _require_own_pending(user, invitation_id)
        if _is_member(invitation.warehouse_id, user.id):
            raise AlreadyMemberError()

        _transition(invitation.id, INVITATION_ACCEPTED)
        membership = Membership(
            warehouse_id=invitation.warehouse_id,
            user_id=user.id,
            role=invitation.role,
            invited_by_user_id=invitation.invited_by_user_id,
            joined_at=utcnow(),
        )
        db.session.add(membership)
        commit_or_conflict(AlreadyMemberError)
        return membership

    membership = run_with_retry(_op)
    current_app.logger.info(
        "User %s accepted invitation %s to warehouse %s as %s",
        user_id,
        invitation_id,
        membership.warehouse_id,
        membership.role,
    )
    return membership


def decline_invitation(user_id: int, invitation_id: int) -> None:
    def _op():
        user = require_user(user_id)
        invitation = _require_own_pending(user, invitation_id)
        _transition(invitation.id, INVITATION_DECLINED)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("User %s declined invitation %s", user_id, invitation_id)


def cancel_invitation(actor_id: int, invitation_id: int) -> None:
    """Delete an invitation in any state. Requires users:invite on its warehouse."""
    def _op():
        invitation = get_invitation(invitation_id)
        permission_service.require_permission(actor_id, invitation.warehouse_id, "users:invite")
        db.session.query(Invitation).filter_by(id=invitation.id).delete(synchronize_session=False)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Invitation %s cancelled by user %s", invitation_id, actor_id)


def _inviter_names(invitations) -> dict[int, str]:
    ids = {inv.invited_by_user_id for inv in invitations if inv.invited_by_user_id}
    if not ids:
        return {}
    return {u.id: u.name for u in db.session.query(User).filter(User.id.in_(list(ids))).all()}


def list_my_invitations(user_id: int) -> list[dict]:
    """Pending invitations addressed to the caller's email."""
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        return []

    invitations = (
        db.session.query(Invitation)
        .filter_by(email=user.email, status=INVITATION_PENDING)
        .order_by(Invitation.invited_at.asc(), Invitation.id.asc())
        .all()
    )
    warehouses = {
        w.id: w.name
        for w in db.session.query(Warehouse)
        .filter(Warehouse.id.in_([inv.warehouse_id for inv in invitations]))
        .all()
    } if invitations else {}
    inviters = _inviter_names(invitations)

    rows = []
    for inv in invitations:
        row = inv.to_dict()
        row["warehouse_name"] = warehouses.get(inv.warehouse_id, "Unknown")
        row["invited_by_name"] = inviters.get(inv.invited_by_user_id, "Unknown")
        rows.append(row)
    return rows


def list_warehouse_invitations(actor_id: int, warehouse_id: int) -> list[dict]:
    """All invitations of a warehouse; empty for callers without users:invite."""
    if not permission_service.check_permission(actor_id, warehouse_id, "users:invite"):
        return []

    invitations = (
        db.session.query(Invitation)
        .filter_by(warehouse_id=warehouse_id)
        .order_by(Invitation.invited_at.asc(), Invitation.id.asc())
        .all()
    )
    inviters = _inviter_names(invitations)

    rows = []
    for inv in invitations:
        row = inv.to_dict()
        row["invited_by_name"] = inviters.get(inv.invited_by_user_id, "Unknown")
        rows.append(row)
    return rows
