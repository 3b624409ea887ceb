# Overview: Read-time aggregates over the warehouse -> store -> product hierarchy.

"""
Aggregates are computed on every read; there are no denormalized counters,
so they are always consistent with committed rows. Cost is O(descendants)
per warehouse, which bounds tenant size rather than correctness.

These helpers do no permission checks. Callers resolve access first.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Store


def store_totals(store_ids) -> dict[int, dict]:
    """
    Per-store product count and summed quantity.

    Stores without products are present with zeros.
    """
    store_ids = list(store_ids)
    totals = {sid: {"product_count": 0, "total_items": 0} for sid in store_ids}
    if not store_ids:
        return totals

    rows = (
        db.session.query(
            Product.store_id,
            func.count(Product.id),
            func.coalesce(func.sum(Product.quantity), 0),
        )
        .filter(Product.store_id.in_(store_ids))
        .group_by(Product.store_id)
        .all()
    )
    for store_id, product_count, total_items in rows:
        totals[store_id] = {"product_count": int(product_count), "total_items": int(total_items)}
    return totals


def warehouse_totals(warehouse_ids) -> dict[int, dict]:
    """Store count and total items (sum of product quantities) per warehouse."""
    warehouse_ids = list(warehouse_ids)
    totals = {wid: {"total_stores": 0, "total_items": 0} for wid in warehouse_ids}
    if not warehouse_ids:
        return totals

    store_counts = (
        db.session.query(Store.warehouse_id, func.count(Store.id))
        .filter(Store.warehouse_id.in_(warehouse_ids))
        .group_by(Store.warehouse_id)
        .all()
    )
    for warehouse_id, count in store_counts:
        totals[warehouse_id]["total_stores"] = int(count)

    item_sums = (
        db.session.query(Store.warehouse_id, func.coalesce(func.sum(Product.quantity), 0))
        .join(Product, Product.store_id == Store.id)
        .filter(Store.warehouse_id.in_(warehouse_ids))
        .group_by(Store.warehouse_id)
        .all()
    )
    for warehouse_id, total in item_sums:
        totals[warehouse_id]["total_items"] = int(total)

    return totals


def warehouse_summary(warehouse_id: int) -> dict:
    stores = (
        db.session.query(Store)
        .filter_by(warehouse_id=warehouse_id)
        .order_by(Store.name.asc(), Store.id.asc())
        .all()
    )
    per_store = store_totals(s.id for s in stores)
    store_rows = []
    for store in stores:
        row = store.to_dict()
        row.update(per_store[store.id])
        store_rows.append(row)

    return {
        "warehouse_id": warehouse_id,
        "total_stores": len(stores),
        "total_items": sum(r["total_items"] for r in store_rows),
        "stores": store_rows,
    }
