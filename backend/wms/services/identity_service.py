# Overview: Identity sync adapter; mirrors user records from the external identity provider.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Membership, User
from ..permissions import ROLE_OWNER
from ..validation import normalize_email
from .concurrency import commit_or_conflict, run_with_retry


def get_user(user_id: int) -> User | None:
    return db.session.query(User).filter_by(id=user_id).first()


def require_user(user_id: int) -> User:
    user = get_user(user_id)
    if not user:
        raise NotFoundError("user")
    return user


def get_user_by_external_id(external_auth_id: str) -> User | None:
    if not external_auth_id:
        return None
    return db.session.query(User).filter_by(external_auth_id=external_auth_id).first()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter_by(email=normalize_email(email)).first()


def upsert_user(external_auth_id: str, name: str, email: str) -> User:
    """
    Create or update the identity record keyed by the provider id.

    Idempotent: replaying the same event leaves the row unchanged.
    """
    if not external_auth_id:
        raise ValidationError("external_auth_id is required")
    email = normalize_email(email)
    name = (name or "").strip() or "Unknown"

    def _op():
        user = get_user_by_external_id(external_auth_id)
        if user:
            user.name = name
            user.email = email
        else:
            user = User(external_auth_id=external_auth_id, name=name, email=email)
            db.session.add(user)
        commit_or_conflict(lambda: ConflictError("Email already belongs to another user"))
        return user

    return run_with_retry(_op)


def delete_user(external_auth_id: str) -> bool:
    """
    Delete the identity record and the user's memberships.

    Idempotent: returns False when no such user exists. Invitations are
    addressed by email and are left for the warehouse to cancel.
    """
    def _op():
        user = get_user_by_external_id(external_auth_id)
        if not user:
            return False

        memberships = db.session.query(Membership).filter_by(user_id=user.id).all()
        for membership in memberships:
            if membership.role == ROLE_OWNER and _owner_count(membership.warehouse_id) == 1:
                current_app.logger.warning(
                    "Deleting user %s leaves warehouse %s without an owner",
                    user.id,
                    membership.warehouse_id,
                )
            db.session.delete(membership)

        user_id = user.id
        db.session.delete(user)
        db.session.commit()
        current_app.logger.info("Deleted user %s (%d memberships removed)", user_id, len(memberships))
        return True

    return run_with_retry(_op)


def _owner_count(warehouse_id: int) -> int:
    return (
        db.session.query(Membership)
        .filter_by(warehouse_id=warehouse_id, role=ROLE_OWNER)
        .count()
    )


def apply_identity_event(event: dict) -> str:
    """
    Apply one identity-provider webhook payload.

    Handles user.created / user.updated (upsert) and user.deleted; other
    event types are ignored. Returns the action taken.
    """
    event_type = event.get("type")
    data = event.get("data") or {}

    if event_type in ("user.created", "user.updated"):
        addresses = data.get("email_addresses") or []
        email = addresses[0].get("email_address", "") if addresses else ""
        name = " ".join(p for p in (data.get("first_name"), data.get("last_name")) if p) or "Unknown"
        upsert_user(data.get("id"), name, email)
        return "upserted"

    if event_type == "user.deleted":
        return "deleted" if delete_user(data.get("id")) else "missing"

    return "ignored"
