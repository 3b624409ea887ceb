# Overview: Utility functions for permission lookups and validation.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS, ROLES


def has_permission(role, permission):
    """Pure matrix lookup. Unknown roles (and None) hold no permissions."""
    return permission in DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def get_role_permissions(role):
    """Sorted permission codes granted to a role."""
    return sorted(DEFAULT_ROLE_PERMISSIONS.get(role, frozenset()))


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all permissions in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def validate_role(role):
    """Check if a role belongs to the fixed lattice."""
    return role in ROLES
