# Overview: Pytest coverage for membership administration.

import pytest

from conftest import add_member, make_user
from wms.errors import (
    CannotChangeSelfError,
    CannotRemoveSelfError,
    NotFoundError,
    PermissionDeniedError,
    SelfActionForbiddenError,
    ValidationError,
)
from wms.models import Membership
from wms.services import membership_service, permission_service


class TestListMembers:

    def test_lists_with_identity(self, db_session, owner, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        rows = membership_service.list_members(owner.id, warehouse_a.id)
        assert {(r["email"], r["role"]) for r in rows} == {
            ("owner@example.com", "owner"),
            ("staff@example.com", "staff"),
        }
        assert all(r["joined_at"] for r in rows)

    def test_staff_gets_empty_list(self, db_session, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        assert membership_service.list_members(staff_user.id, warehouse_a.id) == []

    def test_outsider_gets_empty_list(self, db_session, warehouse_a, outsider):
        assert membership_service.list_members(outsider.id, warehouse_a.id) == []


class TestChangeRole:

    def test_owner_promotes_staff(self, db_session, owner, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        membership = membership_service.change_role(owner.id, warehouse_a.id, staff_user.id, "manager")
        assert membership.role == "manager"

    def test_cannot_change_self(self, db_session, owner, warehouse_a):
        with pytest.raises(CannotChangeSelfError):
            membership_service.change_role(owner.id, warehouse_a.id, owner.id, "staff")
        assert permission_service.get_user_role(owner.id, warehouse_a.id) == "owner"

    def test_manager_cannot_change_roles(self, db_session, owner, warehouse_a, manager_user):
        add_member(db_session, warehouse_a, manager_user, "manager")
        with pytest.raises(PermissionDeniedError) as exc:
            membership_service.change_role(manager_user.id, warehouse_a.id, owner.id, "staff")
        assert exc.value.permission == "roles:change"

    def test_invalid_role(self, db_session, owner, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        with pytest.raises(ValidationError):
            membership_service.change_role(owner.id, warehouse_a.id, staff_user.id, "superuser")

    def test_target_not_member(self, db_session, owner, warehouse_a, outsider):
        with pytest.raises(NotFoundError):
            membership_service.change_role(owner.id, warehouse_a.id, outsider.id, "staff")

    def test_co_owner_can_demote_owner(self, db_session, owner, warehouse_a):
        co_owner = make_user(db_session, "coowner")
        add_member(db_session, warehouse_a, co_owner, "owner")
        membership_service.change_role(co_owner.id, warehouse_a.id, owner.id, "manager")
        # The acting owner remains, so the warehouse is never left ownerless this way
        owners = db_session.query(Membership).filter_by(warehouse_id=warehouse_a.id, role="owner").all()
        assert [m.user_id for m in owners] == [co_owner.id]


class TestRemoveMember:

    def test_owner_removes_member(self, db_session, owner, warehouse_a, staff_user):
        add_member(db_session, warehouse_a, staff_user, "staff")
        membership_service.remove_member(owner.id, warehouse_a.id, staff_user.id)
        assert db_session.query(Membership).filter_by(user_id=staff_user.id).count() == 0

    def test_cannot_remove_self(self, db_session, owner, warehouse_a):
        with pytest.raises(SelfActionForbiddenError) as exc:
            membership_service.remove_member(owner.id, warehouse_a.id, owner.id)
        assert isinstance(exc.value, CannotRemoveSelfError)
        assert exc.value.http_status == 409

    def test_manager_cannot_remove(self, db_session, warehouse_a, manager_user, staff_user):
        add_member(db_session, warehouse_a, manager_user, "manager")
        add_member(db_session, warehouse_a, staff_user, "staff")
        with pytest.raises(PermissionDeniedError):
            membership_service.remove_member(manager_user.id, warehouse_a.id, staff_user.id)

    def test_removed_member_loses_access(self, db_session, owner, warehouse_a, store_a, staff_user):
        from wms.services import tenant_service
        add_member(db_session, warehouse_a, staff_user, "staff")
        assert tenant_service.get_accessible_store_ids(staff_user.id) == [store_a.id]

        membership_service.remove_member(owner.id, warehouse_a.id, staff_user.id)

        assert tenant_service.get_accessible_store_ids(staff_user.id) == []
