# Overview: Warehouse lifecycle; creation with its owner membership, cascading deletion, orphan repair.

"""
Hierarchy Manager: Warehouse -> Store -> Product

Creation writes the warehouse and the creator's owner membership in one
transaction. Deletion removes memberships, invitations, products, stores and
finally the warehouse row, all in one transaction; deletes are bulk and
idempotent, so re-running a cascade over partially deleted rows is safe.
purge_orphans() is the re-scan that repairs rows left behind by anything
that bypassed this module.
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Invitation, Membership, Product, Store, Warehouse
from ..permissions import ROLE_OWNER
from ..time_utils import utcnow
from ..validation import WAREHOUSE_POLICY, validate_payload
from . import permission_service
from .concurrency import lock_for_update, run_with_retry
from .identity_service import require_user
from .object_storage import discard_refs
from .reporting_service import warehouse_summary
from .tenant_service import visible_warehouse


def create_warehouse(user_id: int, name: str, description: str = "") -> Warehouse:
    """Any identified user may create a warehouse and becomes its owner."""
    patch = validate_payload(
        model=Warehouse,
        payload={"name": name, "description": description or ""},
        policy=WAREHOUSE_POLICY,
        partial=False,
    )

    def _op():
        require_user(user_id)
        warehouse = Warehouse(created_by_user_id=user_id, **patch)
        db.session.add(warehouse)
        db.session.flush()

        db.session.add(Membership(
            warehouse_id=warehouse.id,
            user_id=user_id,
            role=ROLE_OWNER,
            joined_at=utcnow(),
        ))
        db.session.commit()
        return warehouse

    warehouse = run_with_retry(_op)
    current_app.logger.info("Warehouse %s created by user %s", warehouse.id, user_id)
    return warehouse


def update_warehouse(user_id: int, warehouse_id: int, patch: dict) -> Warehouse:
    patch = validate_payload(model=Warehouse, payload=patch, policy=WAREHOUSE_POLICY, partial=True)

    def _op():
        permission_service.require_permission(user_id, warehouse_id, "warehouse:update")
        warehouse = lock_for_update(db.session.query(Warehouse).filter_by(id=warehouse_id)).first()
        if not warehouse:
            # Membership without a warehouse row: leftover of an interrupted cascade
            raise NotFoundError("warehouse")

        for key, value in patch.items():
            setattr(warehouse, key, value)

        db.session.commit()
        return warehouse

    return run_with_retry(_op)


def get_warehouse(user_id: int, warehouse_id: int) -> Warehouse:
    """Members only; anyone else gets NotFound."""
    return visible_warehouse(user_id, warehouse_id)


def get_warehouse_summary(user_id: int, warehouse_id: int) -> dict:
    visible_warehouse(user_id, warehouse_id, "stores:view")
    return warehouse_summary(warehouse_id)


def delete_warehouse(user_id: int, warehouse_id: int) -> None:
    """
    Delete a warehouse and everything scoped to it.

    Requires warehouse:delete. The whole cascade commits once; product
    images are released only after the commit succeeds.
    """
    def _op():
        permission_service.require_permission(user_id, warehouse_id, "warehouse:delete")
        refs = cascade_delete_warehouse(warehouse_id)
        db.session.commit()
        return refs

    image_refs = run_with_retry(_op)
    discard_refs(image_refs)
    current_app.logger.info("Warehouse %s deleted by user %s", warehouse_id, user_id)


def cascade_delete_warehouse(warehouse_id: int) -> list[str]:
    """
    Stage deletion of a warehouse and its descendants in the current session.

    Memberships, invitations, then products of every child store, the stores
    and finally the warehouse row. Missing rows are no-ops. Returns the image
    refs of deleted products. Does not commit.
    """
    db.session.query(Membership).filter_by(warehouse_id=warehouse_id).delete(synchronize_session=False)
    db.session.query(Invitation).filter_by(warehouse_id=warehouse_id).delete(synchronize_session=False)

    store_ids = [row[0] for row in db.session.query(Store.id).filter_by(warehouse_id=warehouse_id).all()]
    image_refs: list[str] = []
    if store_ids:
        image_refs = [
            row[0]
            for row in db.session.query(Product.image_ref)
            .filter(Product.store_id.in_(store_ids), Product.image_ref.isnot(None))
            .all()
        ]
        db.session.query(Product).filter(Product.store_id.in_(store_ids)).delete(synchronize_session=False)
        db.session.query(Store).filter(Store.id.in_(store_ids)).delete(synchronize_session=False)

    db.session.query(Warehouse).filter_by(id=warehouse_id).delete(synchronize_session=False)
    db.session.expire_all()
    return image_refs


def purge_orphans() -> dict:
    """
    Delete rows whose parent no longer exists.

    Idempotent; safe to run at any time. Returns counts per table.
    """
    def _op():
        warehouse_ids = db.select(Warehouse.id)
        orphan_stores = [
            row[0]
            for row in db.session.query(Store.id).filter(~Store.warehouse_id.in_(warehouse_ids)).all()
        ]

        counts = {"memberships": 0, "invitations": 0, "stores": 0, "products": 0}
        counts["memberships"] = (
            db.session.query(Membership)
            .filter(~Membership.warehouse_id.in_(warehouse_ids))
            .delete(synchronize_session=False)
        )
        counts["invitations"] = (
            db.session.query(Invitation)
            .filter(~Invitation.warehouse_id.in_(warehouse_ids))
            .delete(synchronize_session=False)
        )
        if orphan_stores:
            counts["stores"] = (
                db.session.query(Store)
                .filter(Store.id.in_(orphan_stores))
                .delete(synchronize_session=False)
            )

        remaining_store_ids = db.select(Store.id)
        orphan_products = db.session.query(Product).filter(~Product.store_id.in_(remaining_store_ids))
        refs = [p.image_ref for p in orphan_products.all() if p.image_ref]
        counts["products"] = orphan_products.delete(synchronize_session=False)

        db.session.commit()
        return counts, refs

    counts, refs = run_with_retry(_op)
    discard_refs(refs)
    if any(counts.values()):
        current_app.logger.warning("Purged orphaned rows: %s", counts)
    return counts
