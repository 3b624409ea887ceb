# Overview: Pytest coverage for the invitation state machine.

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import add_member, make_user
from wms.errors import (
    AlreadyMemberError,
    ConflictError,
    InvitationAlreadyPendingError,
    InvitationNotPendingError,
    NotFoundError,
    NotYourInvitationError,
    PermissionDeniedError,
    ValidationError,
)
from wms.models import Invitation, Membership
from wms.services import invitation_service, membership_service


def _invitations_for(db_session, email, warehouse_id):
    return db_session.query(Invitation).filter_by(email=email, warehouse_id=warehouse_id).all()


class TestInviteAcceptScenario:
    """Owner invites a@x.com as manager, a accepts, owner re-invites later."""

    def test_full_flow(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "a")
        warehouse_id = warehouse_a.id

        invitation = invitation_service.invite_user(owner.id, warehouse_id, invitee.email, "manager")
        rows = _invitations_for(db_session, invitee.email, warehouse_id)
        assert len(rows) == 1
        assert rows[0].status == "pending"

        membership = invitation_service.accept_invitation(invitee.id, invitation.id)
        assert membership.role == "manager"
        assert membership.invited_by_user_id == owner.id
        assert membership.joined_at is not None
        assert db_session.get(Invitation, invitation.id).status == "accepted"

        # Still a member: re-inviting is rejected
        with pytest.raises(AlreadyMemberError):
            invitation_service.invite_user(owner.id, warehouse_id, invitee.email, "staff")

        # After removal the accepted record is superseded by a new pending one
        membership_service.remove_member(owner.id, warehouse_id, invitee.id)
        again = invitation_service.invite_user(owner.id, warehouse_id, invitee.email, "staff")
        rows = _invitations_for(db_session, invitee.email, warehouse_id)
        assert [r.id for r in rows] == [again.id]
        assert rows[0].status == "pending"
        assert rows[0].role == "staff"

    def test_declined_invitation_is_superseded(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "b")
        first = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")
        invitation_service.decline_invitation(invitee.id, first.id)

        second = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "manager")

        rows = _invitations_for(db_session, invitee.email, warehouse_a.id)
        assert [r.id for r in rows] == [second.id]


class TestInvite:

    def test_requires_users_invite(self, db_session, warehouse_a, manager_user):
        add_member(db_session, warehouse_a, manager_user, "manager")
        with pytest.raises(PermissionDeniedError) as exc:
            invitation_service.invite_user(manager_user.id, warehouse_a.id, "x@example.com", "staff")
        assert exc.value.permission == "users:invite"

    def test_one_pending_per_email_and_warehouse(self, db_session, owner, warehouse_a):
        invitation_service.invite_user(owner.id, warehouse_a.id, "x@example.com", "staff")
        with pytest.raises(InvitationAlreadyPendingError):
            invitation_service.invite_user(owner.id, warehouse_a.id, "x@example.com", "manager")
        assert len(_invitations_for(db_session, "x@example.com", warehouse_a.id)) == 1

    def test_email_is_normalized(self, db_session, owner, warehouse_a):
        invitation_service.invite_user(owner.id, warehouse_a.id, "  X@Example.COM ", "staff")
        with pytest.raises(InvitationAlreadyPendingError):
            invitation_service.invite_user(owner.id, warehouse_a.id, "x@example.com", "staff")

    def test_existing_member_rejected(self, db_session, owner, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        with pytest.raises(AlreadyMemberError):
            invitation_service.invite_user(owner.id, warehouse_a.id, staff_user.email, "manager")

    def test_unknown_role_rejected(self, db_session, owner, warehouse_a):
        with pytest.raises(ValidationError):
            invitation_service.invite_user(owner.id, warehouse_a.id, "x@example.com", "admin")

    def test_partial_unique_index_rejects_second_pending(self, db_session, owner, warehouse_a):
        invitation_service.invite_user(owner.id, warehouse_a.id, "race@example.com", "staff")
        # Bypass the pre-check as a concurrent writer would
        db_session.add(Invitation(
            warehouse_id=warehouse_a.id, email="race@example.com", role="staff", status="pending",
        ))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
        assert len(_invitations_for(db_session, "race@example.com", warehouse_a.id)) == 1

    def test_same_email_other_warehouse_allowed(self, db_session, owner, warehouse_a):
        from wms.services import warehouse_service
        other = warehouse_service.create_warehouse(owner.id, "Second", "")
        invitation_service.invite_user(owner.id, warehouse_a.id, "x@example.com", "staff")
        invitation_service.invite_user(owner.id, other.id, "x@example.com", "staff")
        assert db_session.query(Invitation).filter_by(email="x@example.com").count() == 2


class TestAccept:

    def test_only_matching_email_may_accept(self, db_session, owner, warehouse_a, outsider):
        invitee = make_user(db_session, "c")
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")
        with pytest.raises(NotYourInvitationError):
            invitation_service.accept_invitation(outsider.id, invitation.id)
        assert db_session.query(Membership).filter_by(user_id=outsider.id).count() == 0

    def test_accept_once(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "d")
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")
        invitation_service.accept_invitation(invitee.id, invitation.id)

        with pytest.raises(ConflictError):
            invitation_service.accept_invitation(invitee.id, invitation.id)
        assert db_session.query(Membership).filter_by(
            warehouse_id=warehouse_a.id, user_id=invitee.id
        ).count() == 1

    def test_missing_invitation(self, db_session, owner):
        with pytest.raises(NotFoundError):
            invitation_service.accept_invitation(owner.id, 999)

    def test_already_member_when_membership_appears(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "e")
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")
        # Another path grants membership between invite and accept
        add_member(db_session, warehouse_a, invitee, "manager")

        with pytest.raises(AlreadyMemberError):
            invitation_service.accept_invitation(invitee.id, invitation.id)
        assert db_session.get(Invitation, invitation.id).status == "pending"

    def test_declined_cannot_be_accepted(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "f")
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")
        invitation_service.decline_invitation(invitee.id, invitation.id)

        with pytest.raises(InvitationNotPendingError):
            invitation_service.accept_invitation(invitee.id, invitation.id)
        assert db_session.query(Membership).filter_by(user_id=invitee.id).count() == 0


class TestDeclineAndCancel:

    def test_decline_by_stranger_rejected(self, db_session, owner, warehouse_a, outsider):
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, "g@example.com", "staff")
        with pytest.raises(NotYourInvitationError):
            invitation_service.decline_invitation(outsider.id, invitation.id)

    def test_cancel_deletes_in_any_state(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "h")
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")
        invitation_id = invitation.id
        invitation_service.accept_invitation(invitee.id, invitation_id)

        invitation_service.cancel_invitation(owner.id, invitation_id)

        assert db_session.query(Invitation).filter_by(id=invitation_id).count() == 0
        # Cancelling never revokes the membership it produced
        assert db_session.query(Membership).filter_by(user_id=invitee.id).count() == 1

    def test_cancel_requires_users_invite(self, db_session, owner, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        invitation = invitation_service.invite_user(owner.id, warehouse_a.id, "i@example.com", "staff")
        with pytest.raises(PermissionDeniedError):
            invitation_service.cancel_invitation(staff_user.id, invitation.id)

    def test_cancel_missing(self, db_session, owner):
        with pytest.raises(NotFoundError):
            invitation_service.cancel_invitation(owner.id, 12345)


class TestListings:

    def test_my_invitations_pending_only(self, db_session, owner, warehouse_a):
        invitee = make_user(db_session, "j")
        pending = invitation_service.invite_user(owner.id, warehouse_a.id, invitee.email, "staff")

        rows = invitation_service.list_my_invitations(invitee.id)

        assert [r["id"] for r in rows] == [pending.id]
        assert rows[0]["warehouse_name"] == "Warehouse A"
        assert rows[0]["invited_by_name"] == "Owner"

        invitation_service.decline_invitation(invitee.id, pending.id)
        assert invitation_service.list_my_invitations(invitee.id) == []

    def test_warehouse_invitations_need_users_invite(self, db_session, owner, warehouse_a, manager_user):
        add_member(db_session, warehouse_a, manager_user, "manager")
        invitation_service.invite_user(owner.id, warehouse_a.id, "k@example.com", "staff")

        assert len(invitation_service.list_warehouse_invitations(owner.id, warehouse_a.id)) == 1
        assert invitation_service.list_warehouse_invitations(manager_user.id, warehouse_a.id) == []


class TestUniquenessConstraints:
    """The storage constraints reject the losing writer even when the pre-checks pass."""

    def test_accept_for_existing_member_hits_membership_constraint(
        self, db_session, monkeypatch, owner, warehouse_a, staff_user
    ):
        add_member(db_session, warehouse_a, staff_user, "staff")
        invitation = Invitation(
            warehouse_id=warehouse_a.id, email=staff_user.email, role="manager",
            invited_by_user_id=owner.id,
        )
        db_session.add(invitation)
        db_session.commit()
        invitation_id = invitation.id

        # A concurrent acceptance commits between our check and our insert
        monkeypatch.setattr(invitation_service, "_is_member", lambda warehouse_id, user_id: False)

        with pytest.raises(AlreadyMemberError):
            invitation_service.accept_invitation(staff_user.id, invitation_id)

        db_session.expire_all()
        assert db_session.get(Invitation, invitation_id).status == "pending"
        memberships = db_session.query(Membership).filter_by(
            warehouse_id=warehouse_a.id, user_id=staff_user.id
        ).all()
        assert [m.role for m in memberships] == ["staff"]

    def test_second_pending_invite_hits_partial_index(self, db_session, monkeypatch, owner, warehouse_a):
        invitation_service.invite_user(owner.id, warehouse_a.id, "dup@example.com", "staff")

        # A concurrent invite commits after our pending lookup
        monkeypatch.setattr(invitation_service, "_invitations_for_pair", lambda email, warehouse_id: [])

        with pytest.raises(InvitationAlreadyPendingError):
            invitation_service.invite_user(owner.id, warehouse_a.id, "dup@example.com", "manager")

        db_session.expire_all()
        rows = _invitations_for(db_session, "dup@example.com", warehouse_a.id)
        assert [(r.status, r.role) for r in rows] == [("pending", "staff")]
