from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, Store, Warehouse
from ..validation import STORE_POLICY, enforce_rules_store, validate_payload
from . import permission_service
from .concurrency import lock_for_update, run_with_retry
from .object_storage import discard_refs
from .reporting_service import store_totals
from .tenant_service import require_store_permission, visible_store


def create_store(user_id: int, warehouse_id: int, patch: dict) -> Store:
    patch = validate_payload(model=Store, payload=patch, policy=STORE_POLICY, partial=False)
    enforce_rules_store(patch)

    def _op():
        permission_service.require_permission(user_id, warehouse_id, "stores:create")
        store = Store(warehouse_id=warehouse_id, **patch)
        db.session.add(store)
        db.session.commit()
        return store

    return run_with_retry(_op)


def update_store(user_id: int, store_id: int, patch: dict) -> Store:
    patch = validate_payload(model=Store, payload=patch, policy=STORE_POLICY, partial=True)
    enforce_rules_store(patch)

    def _op():
        require_store_permission(user_id, store_id, "stores:update")
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()

        for key, value in patch.items():
            setattr(store, key, value)

        db.session.commit()
        return store

    return run_with_retry(_op)


def delete_store(user_id: int, store_id: int) -> None:
    """Delete a store's products, then the store, in one transaction."""
    def _op():
        store = require_store_permission(user_id, store_id, "stores:delete")
        refs = [
            row[0]
            for row in db.session.query(Product.image_ref)
            .filter(Product.store_id == store.id, Product.image_ref.isnot(None))
            .all()
        ]
        db.session.query(Product).filter_by(store_id=store.id).delete(synchronize_session=False)
        db.session.query(Store).filter_by(id=store.id).delete(synchronize_session=False)
        db.session.commit()
        return refs

    image_refs = run_with_retry(_op)
    discard_refs(image_refs)
    current_app.logger.info("Store %s deleted by user %s", store_id, user_id)


def get_store(user_id: int, store_id: int) -> dict:
    store = visible_store(user_id, store_id, "stores:view")
    row = store.to_dict()
    row["warehouse_name"] = store.warehouse.name if store.warehouse else None
    row.update(store_totals([store.id])[store.id])
    return row


def list_warehouse_stores(user_id: int, warehouse_id: int) -> list[dict]:
    """Stores of one warehouse; empty for callers without stores:view there."""
    if not permission_service.check_permission(user_id, warehouse_id, "stores:view"):
        return []
    warehouse = db.session.get(Warehouse, warehouse_id)
    if warehouse is None:
        return []

    stores = (
        db.session.query(Store)
        .filter_by(warehouse_id=warehouse_id)
        .order_by(Store.name.asc(), Store.id.asc())
        .all()
    )
    totals = store_totals(s.id for s in stores)
    rows = []
    for store in stores:
        row = store.to_dict()
        row["warehouse_name"] = warehouse.name
        row.update(totals[store.id])
        rows.append(row)
    return rows
