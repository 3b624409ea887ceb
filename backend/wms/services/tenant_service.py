"""
Tenant Service: Tenant Resolution and Scoped Fan-Out

WHY: A user may belong to many warehouses with a different role in each.
"Everything I can see" queries therefore resolve the caller's memberships
first, then fan out per warehouse and per store, and merge the results.

SECURITY INVARIANTS:
1. The accessible set is derived only from the caller's Membership rows
2. Ids from client input are resolved to their owning warehouse before use
3. Reads of a resource outside the caller's tenants report NotFound, so
   existence never leaks across tenants
4. Fan-out breadth is capped by FANOUT_MAX_STORES

USAGE:
    from wms.services.tenant_service import visible_store, list_my_products

    store = visible_store(user.id, store_id, "stores:view")
    rows = list_my_products(user.id)
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Membership, Product, Store, Warehouse
from ..permissions import has_permission
from . import permission_service
from .object_storage import image_url
from .reporting_service import store_totals, warehouse_totals


# -- Resolution (no permission checks) --

def require_warehouse(warehouse_id: int) -> Warehouse:
    warehouse = db.session.query(Warehouse).filter_by(id=warehouse_id).first()
    if not warehouse:
        raise NotFoundError("warehouse")
    return warehouse


def require_store(store_id: int) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise NotFoundError("store")
    return store


def require_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if not product:
        raise NotFoundError("product")
    return product


# -- Guarded resolution for writes (PermissionDeniedError propagates) --

def require_store_permission(user_id: int, store_id: int, permission: str) -> Store:
    store = require_store(store_id)
    permission_service.require_permission(user_id, store.warehouse_id, permission)
    return store


def require_product_permission(user_id: int, product_id: int, permission: str) -> tuple[Product, Store]:
    """Products resolve through their store to the owning warehouse."""
    product = require_product(product_id)
    store = require_store_permission(user_id, product.store_id, permission)
    return product, store


# -- Guarded resolution for reads (denial reads as NotFound) --

def visible_warehouse(user_id: int, warehouse_id: int, permission: str | None = None) -> Warehouse:
    membership = permission_service.get_membership(user_id, warehouse_id)
    if membership is None or (permission and not has_permission(membership.role, permission)):
        raise NotFoundError("warehouse")
    return require_warehouse(warehouse_id)


def visible_store(user_id: int, store_id: int, permission: str) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store or not permission_service.check_permission(user_id, store.warehouse_id, permission):
        raise NotFoundError("store")
    return store


def visible_product(user_id: int, product_id: int, permission: str) -> tuple[Product, Store]:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if not product:
        raise NotFoundError("product")
    store = db.session.query(Store).filter_by(id=product.store_id).first()
    if not store or not permission_service.check_permission(user_id, store.warehouse_id, permission):
        raise NotFoundError("product")
    return product, store


# -- Fan-out --

def get_user_memberships(user_id: int) -> list[Membership]:
    return (
        db.session.query(Membership)
        .filter_by(user_id=user_id)
        .order_by(Membership.joined_at.asc(), Membership.id.asc())
        .all()
    )


def get_accessible_warehouses(user_id: int, permission: str | None = None) -> list[tuple[Membership, Warehouse]]:
    """
    (membership, warehouse) pairs for every warehouse the user belongs to,
    optionally filtered to memberships whose role grants `permission`.
    """
    memberships = get_user_memberships(user_id)
    if permission:
        memberships = [m for m in memberships if has_permission(m.role, permission)]
    if not memberships:
        return []

    warehouses = {
        w.id: w
        for w in db.session.query(Warehouse)
        .filter(Warehouse.id.in_([m.warehouse_id for m in memberships]))
        .all()
    }
    return [(m, warehouses[m.warehouse_id]) for m in memberships if m.warehouse_id in warehouses]


def get_accessible_stores(user_id: int, permission: str = "stores:view") -> list[tuple[Store, Warehouse]]:
    """
    Stores under every warehouse where the user's role grants `permission`,
    in membership order, capped at FANOUT_MAX_STORES.
    """
    limit = current_app.config.get("FANOUT_MAX_STORES", 500)
    result: list[tuple[Store, Warehouse]] = []

    for _membership, warehouse in get_accessible_warehouses(user_id, permission):
        stores = (
            db.session.query(Store)
            .filter_by(warehouse_id=warehouse.id)
            .order_by(Store.id.asc())
            .all()
        )
        for store in stores:
            if len(result) >= limit:
                current_app.logger.warning(
                    "Fan-out for user %s truncated at %d stores", user_id, limit
                )
                return result
            result.append((store, warehouse))

    return result


def get_accessible_store_ids(user_id: int, permission: str = "inventory:view") -> list[int]:
    return [store.id for store, _warehouse in get_accessible_stores(user_id, permission)]


def list_my_warehouses(user_id: int) -> list[dict]:
    pairs = get_accessible_warehouses(user_id)
    totals = warehouse_totals(w.id for _m, w in pairs)

    rows = []
    for membership, warehouse in pairs:
        row = warehouse.to_dict()
        row["role"] = membership.role
        row["joined_at"] = membership.to_dict()["joined_at"]
        row.update(totals[warehouse.id])
        rows.append(row)
    return rows


def list_my_stores(user_id: int) -> list[dict]:
    pairs = get_accessible_stores(user_id, "stores:view")
    totals = store_totals(s.id for s, _w in pairs)

    rows = []
    for store, warehouse in pairs:
        row = store.to_dict()
        row["warehouse_name"] = warehouse.name
        row.update(totals[store.id])
        rows.append(row)
    return rows


def annotate_product(product: Product, store: Store, warehouse: Warehouse) -> dict:
    row = product.to_dict()
    row["store_name"] = store.name
    row["warehouse_id"] = warehouse.id
    row["warehouse_name"] = warehouse.name
    row["image_url"] = image_url(product.image_ref)
    return row


def list_my_products(user_id: int) -> list[dict]:
    pairs = get_accessible_stores(user_id, "inventory:view")
    if not pairs:
        return []

    by_store: dict[int, list[Product]] = {}
    products = (
        db.session.query(Product)
        .filter(Product.store_id.in_([s.id for s, _w in pairs]))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    for product in products:
        by_store.setdefault(product.store_id, []).append(product)

    rows = []
    for store, warehouse in pairs:
        for product in by_store.get(store.id, []):
            rows.append(annotate_product(product, store, warehouse))
    return rows


def get_warehouse_by_name(user_id: int, name: str) -> Warehouse:
    for _membership, warehouse in get_accessible_warehouses(user_id):
        if warehouse.name == name:
            return warehouse
    raise NotFoundError("warehouse")
