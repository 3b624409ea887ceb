# Overview: Pytest coverage for the role -> permission matrix.

"""
The matrix is checked cell by cell against an explicit table, never against
a role ordering.
"""

import pytest

from wms.permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    PERMISSION_DEFINITIONS,
    ROLES,
    get_all_permission_codes,
    get_permission_definition,
    get_role_permissions,
    has_permission,
    validate_permission_code,
)


ALL_PERMISSIONS = [
    "warehouse:update", "warehouse:delete",
    "users:invite", "users:remove", "users:view",
    "roles:change",
    "stores:create", "stores:update", "stores:delete", "stores:view",
    "inventory:create", "inventory:update", "inventory:delete", "inventory:view",
]

#                      owner  manager staff
EXPECTED = {
    "warehouse:update": (True, True, False),
    "warehouse:delete": (True, False, False),
    "users:invite":     (True, False, False),
    "users:remove":     (True, False, False),
    "users:view":       (True, True, False),
    "roles:change":     (True, False, False),
    "stores:create":    (True, True, False),
    "stores:update":    (True, True, False),
    "stores:delete":    (True, False, False),
    "stores:view":      (True, True, True),
    "inventory:create": (True, True, True),
    "inventory:update": (True, True, True),
    "inventory:delete": (True, False, False),
    "inventory:view":   (True, True, True),
}


CELLS = [
    (role, permission, EXPECTED[permission][index])
    for index, role in enumerate(("owner", "manager", "staff"))
    for permission in ALL_PERMISSIONS
]


class TestMatrix:

    def test_fourteen_permissions_defined(self):
        assert sorted(get_all_permission_codes()) == sorted(ALL_PERMISSIONS)
        assert len(PERMISSION_DEFINITIONS) == 14

    def test_roles_are_fixed(self):
        assert ROLES == ("owner", "manager", "staff")

    @pytest.mark.parametrize("role,permission,granted", CELLS)
    def test_cell(self, role, permission, granted):
        assert has_permission(role, permission) is granted

    @pytest.mark.parametrize("role", [None, "", "admin", "OWNER", "cashier"])
    def test_unknown_role_has_nothing(self, role):
        assert not any(has_permission(role, p) for p in ALL_PERMISSIONS)
        assert get_role_permissions(role) == []

    def test_unknown_permission_denied(self):
        assert has_permission("owner", "warehouse:explode") is False

    def test_not_an_ordinal_lattice(self):
        # staff edits inventory but cannot create stores; manager creates stores but cannot remove users
        assert has_permission("staff", "inventory:create")
        assert not has_permission("staff", "stores:create")
        assert has_permission("manager", "stores:create")
        assert not has_permission("manager", "users:remove")

    def test_matrix_is_immutable(self):
        with pytest.raises(TypeError):
            DEFAULT_ROLE_PERMISSIONS["staff"] = frozenset(ALL_PERMISSIONS)
        with pytest.raises(AttributeError):
            DEFAULT_ROLE_PERMISSIONS["staff"].add("warehouse:delete")


class TestDefinitions:

    def test_definition_lookup(self):
        definition = get_permission_definition("roles:change")
        assert definition["code"] == "roles:change"
        assert definition["category"] == "roles"

    def test_definition_missing(self):
        assert get_permission_definition("nope:nope") is None

    def test_category_matches_prefix(self):
        for code, _name, _description, category in PERMISSION_DEFINITIONS:
            assert code.split(":")[0] == category

    def test_validate_permission_code(self):
        assert validate_permission_code("inventory:view")
        assert not validate_permission_code("inventory:burn")
