# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- WAREHOUSE --

WAREHOUSE_PERMISSIONS = [
    (
        "warehouse:update",
        "Update Warehouse",
        "Rename the warehouse or edit its description",
        PermissionCategory.WAREHOUSE,
    ),
    (
        "warehouse:delete",
        "Delete Warehouse",
        "Delete the warehouse together with every store, product, membership and invitation",
        PermissionCategory.WAREHOUSE,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "users:invite",
        "Invite Users",
        "Invite people by email, list and cancel invitations",
        PermissionCategory.USERS,
    ),
    (
        "users:remove",
        "Remove Users",
        "Remove members from the warehouse",
        PermissionCategory.USERS,
    ),
    (
        "users:view",
        "View Users",
        "View the warehouse member list",
        PermissionCategory.USERS,
    ),
]


# -- ROLES --

ROLE_PERMISSIONS = [
    (
        "roles:change",
        "Change Roles",
        "Change the role of another member",
        PermissionCategory.ROLES,
    ),
]


# -- STORES --

STORE_PERMISSIONS = [
    (
        "stores:create",
        "Create Stores",
        "Create stores inside the warehouse",
        PermissionCategory.STORES,
    ),
    (
        "stores:update",
        "Update Stores",
        "Rename stores or change their type",
        PermissionCategory.STORES,
    ),
    (
        "stores:delete",
        "Delete Stores",
        "Delete stores and every product they hold",
        PermissionCategory.STORES,
    ),
    (
        "stores:view",
        "View Stores",
        "View stores and their aggregates",
        PermissionCategory.STORES,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "inventory:create",
        "Create Inventory",
        "Add products to a store",
        PermissionCategory.INVENTORY,
    ),
    (
        "inventory:update",
        "Update Inventory",
        "Edit products, quantities and alert thresholds",
        PermissionCategory.INVENTORY,
    ),
    (
        "inventory:delete",
        "Delete Inventory",
        "Delete products",
        PermissionCategory.INVENTORY,
    ),
    (
        "inventory:view",
        "View Inventory",
        "View products and search inventory",
        PermissionCategory.INVENTORY,
    ),
]


PERMISSION_DEFINITIONS = (
    WAREHOUSE_PERMISSIONS
    + USER_PERMISSIONS
    + ROLE_PERMISSIONS
    + STORE_PERMISSIONS
    + INVENTORY_PERMISSIONS
)
