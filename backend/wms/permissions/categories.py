# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission families; the prefix before ':' in every permission code."""
    WAREHOUSE = "warehouse"
    USERS = "users"
    ROLES = "roles"
    STORES = "stores"
    INVENTORY = "inventory"
