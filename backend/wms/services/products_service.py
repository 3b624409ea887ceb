# backend/wms/services/products_service.py
"""
Products Service with Warehouse-Scoped Access

MULTI-TENANT: Every product operation resolves product -> store -> warehouse
and checks the caller's membership in that warehouse.
- create/update/delete require inventory:create / inventory:update / inventory:delete
- reads require inventory:view and report NotFound outside the caller's tenants

After a successful create or update the product's search vector is
regenerated in the background; the write never waits for it.
"""
from __future__ import annotations

from ..extensions import db
from ..models import DEFAULT_ALERT_THRESHOLDS, Product, Store
from ..validation import PRODUCT_POLICY, enforce_rules_product, validate_payload
from . import permission_service
from .concurrency import lock_for_update, run_with_retry
from .object_storage import discard_refs, get_object_storage
from .search_service import schedule_vector_refresh
from .tenant_service import (
    annotate_product,
    require_product_permission,
    require_store_permission,
    visible_product,
)

PRODUCT_MUTABLE_FIELDS = {"name", "sku", "description", "quantity", "unit", "price", "image_ref"}

PRODUCT_DEFAULTS = {
    "description": "",
    "quantity": 0,
    "unit": "pcs",
    "price": "0",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k == "alert_thresholds":
            p.alert_thresholds = v
            continue
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _clean_patch(patch: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Product, payload=patch, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


def create_product(user_id: int, store_id: int, patch: dict) -> Product:
    patch = _clean_patch(patch, partial=False)
    values = dict(PRODUCT_DEFAULTS)
    values.update({k: v for k, v in patch.items() if v is not None})
    thresholds = dict(DEFAULT_ALERT_THRESHOLDS)
    thresholds.update(values.pop("alert_thresholds", None) or {})

    def _op():
        store = require_store_permission(user_id, store_id, "inventory:create")
        product = Product(store_id=store.id)
        apply_product_patch(product, values)
        product.alert_thresholds = thresholds
        db.session.add(product)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    schedule_vector_refresh(product.id)
    return product


def update_product(user_id: int, product_id: int, patch: dict) -> Product:
    return _apply_update(user_id, product_id, _clean_patch(patch, partial=True))


def _apply_update(user_id: int, product_id: int, patch: dict) -> Product:
    def _op():
        require_product_permission(user_id, product_id, "inventory:update")
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        previous_ref = product.image_ref
        apply_product_patch(product, patch)
        db.session.commit()
        replaced = previous_ref if previous_ref and previous_ref != product.image_ref else None
        return product, replaced

    product, replaced_ref = run_with_retry(_op)
    discard_refs([replaced_ref])
    schedule_vector_refresh(product.id)
    return product


def set_product_image(user_id: int, product_id: int, stream, filename: str) -> Product:
    """Upload a new image and point the product at it."""
    require_product_permission(user_id, product_id, "inventory:update")
    ref = get_object_storage().put(stream, filename)
    try:
        return _apply_update(user_id, product_id, {"image_ref": ref})
    except Exception:
        discard_refs([ref])
        raise


def delete_product(user_id: int, product_id: int) -> None:
    def _op():
        product, _store = require_product_permission(user_id, product_id, "inventory:delete")
        ref = product.image_ref
        db.session.query(Product).filter_by(id=product.id).delete(synchronize_session=False)
        db.session.commit()
        return ref

    ref = run_with_retry(_op)
    discard_refs([ref])


def get_product(user_id: int, product_id: int) -> dict:
    product, store = visible_product(user_id, product_id, "inventory:view")
    return annotate_product(product, store, store.warehouse)


def list_store_products(user_id: int, store_id: int) -> list[dict]:
    """Products of one store; empty for callers without inventory:view there."""
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store or not permission_service.check_permission(user_id, store.warehouse_id, "inventory:view"):
        return []

    products = (
        db.session.query(Product)
        .filter_by(store_id=store.id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
    return [annotate_product(p, store, store.warehouse) for p in products]
