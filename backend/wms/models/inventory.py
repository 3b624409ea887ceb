from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


STORE_TYPES = ("plumbing", "construction", "electric", "chemical")

# Field name -> column attribute for the five alert thresholds
ALERT_THRESHOLD_FIELDS = {
    "low_stock": "low_stock_threshold",
    "out_of_stock": "out_of_stock_threshold",
    "reorder_point": "reorder_point",
    "critical_low": "critical_low_threshold",
    "overstock": "overstock_threshold",
}

DEFAULT_ALERT_THRESHOLDS = {
    "low_stock": 10,
    "out_of_stock": 0,
    "reorder_point": 20,
    "critical_low": 5,
    "overstock": 1000,
}


class Store(db.Model):
    """
    Store within a warehouse.

    MULTI-TENANT: Stores are scoped to warehouses via warehouse_id and are
    never shared between two warehouses.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.Index("ix_stores_warehouse_id", "warehouse_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    store_type = db.Column(db.String(32), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    warehouse = db.relationship("Warehouse")

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r} warehouse_id={self.warehouse_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "name": self.name,
            "store_type": self.store_type,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product held by a store.

    MULTI-TENANT: Products are scoped to stores via store_id.
    Store belongs to a warehouse, so products are transitively warehouse-scoped.

    search_vector is a derived artifact regenerated in the background after
    every create/update; it may lag the row and is never used for access
    decisions. image_ref is an opaque object-storage reference.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_store_id", "store_id"),
        db.Index("ix_products_store_name", "store_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32), nullable=False, default="pcs")
    # Display string as entered; never used in arithmetic
    price = db.Column(db.String(32), nullable=False, default="0")

    image_ref = db.Column(db.String(255), nullable=True)
    search_vector = db.Column(db.JSON(none_as_null=True), nullable=True)

    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)
    out_of_stock_threshold = db.Column(db.Integer, nullable=False, default=0)
    reorder_point = db.Column(db.Integer, nullable=False, default=20)
    critical_low_threshold = db.Column(db.Integer, nullable=False, default=5)
    overstock_threshold = db.Column(db.Integer, nullable=False, default=1000)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store")

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} store_id={self.store_id}>"

    @property
    def alert_thresholds(self) -> dict:
        return {field: getattr(self, attr) for field, attr in ALERT_THRESHOLD_FIELDS.items()}

    @alert_thresholds.setter
    def alert_thresholds(self, values: dict) -> None:
        for field, attr in ALERT_THRESHOLD_FIELDS.items():
            if field in values:
                setattr(self, attr, values[field])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "sku": self.sku,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": self.price,
            "image_ref": self.image_ref,
            "has_search_vector": bool(self.search_vector),
            "alert_thresholds": self.alert_thresholds,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
