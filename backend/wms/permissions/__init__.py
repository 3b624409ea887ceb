# Overview: Permission system package.
# Re-exports the role matrix and lookup helpers.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    WAREHOUSE_PERMISSIONS,
    USER_PERMISSIONS,
    ROLE_PERMISSIONS,
    STORE_PERMISSIONS,
    INVENTORY_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLES,
    ROLE_OWNER,
    ROLE_MANAGER,
    ROLE_STAFF,
)
from .helpers import (
    has_permission,
    get_role_permissions,
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    validate_role,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "WAREHOUSE_PERMISSIONS",
    "USER_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "STORE_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLES",
    "ROLE_OWNER",
    "ROLE_MANAGER",
    "ROLE_STAFF",
    "has_permission",
    "get_role_permissions",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "validate_role",
]
