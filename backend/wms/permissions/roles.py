# Overview: Fixed role lattice and the role -> permission matrix.

"""
Roles: owner > manager > staff

The matrix is enumerated, not derived from the role order: staff can create
inventory but not stores, managers can create stores but cannot remove users.
Built once at import time and never mutated.
"""

from types import MappingProxyType

ROLE_OWNER = "owner"
ROLE_MANAGER = "manager"
ROLE_STAFF = "staff"

ROLES = (ROLE_OWNER, ROLE_MANAGER, ROLE_STAFF)

DEFAULT_ROLE_PERMISSIONS = MappingProxyType({
    ROLE_OWNER: frozenset({
        "warehouse:delete",
        "warehouse:update",
        "users:invite",
        "users:remove",
        "users:view",
        "roles:change",
        "stores:create",
        "stores:update",
        "stores:delete",
        "stores:view",
        "inventory:create",
        "inventory:update",
        "inventory:delete",
        "inventory:view",
    }),
    ROLE_MANAGER: frozenset({
        "warehouse:update",
        "users:view",
        "stores:create",
        "stores:update",
        "stores:view",
        "inventory:create",
        "inventory:update",
        "inventory:view",
    }),
    ROLE_STAFF: frozenset({
        "stores:view",
        "inventory:create",
        "inventory:update",
        "inventory:view",
    }),
})
