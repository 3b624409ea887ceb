from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_DECLINED = "declined"
INVITATION_STATUSES = (INVITATION_PENDING, INVITATION_ACCEPTED, INVITATION_DECLINED)


class Warehouse(db.Model):
    """
    Multi-tenant root: every tenant is a Warehouse.

    Stores belong to warehouses, products belong to stores, so every row
    below resolves to exactly one warehouse. Access is granted only through
    a Membership row; a warehouse is never left without an owner membership
    at creation time.
    """
    __tablename__ = "warehouses"
    __table_args__ = (
        db.Index("ix_warehouses_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    created_by_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    created_by = db.relationship("User", foreign_keys=[created_by_user_id])

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Membership(db.Model):
    """
    The authoritative (user, warehouse, role) triple.

    One row per (warehouse_id, user_id); the unique constraint is what
    closes the check-then-insert race between concurrent acceptances.
    """
    __tablename__ = "memberships"
    __table_args__ = (
        db.UniqueConstraint("warehouse_id", "user_id", name="uq_memberships_warehouse_user"),
        db.Index("ix_memberships_user", "user_id"),
        db.Index("ix_memberships_warehouse", "warehouse_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    role = db.Column(db.String(16), nullable=False)
    invited_by_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    warehouse = db.relationship("Warehouse")
    user = db.relationship("User", foreign_keys=[user_id])
    invited_by = db.relationship("User", foreign_keys=[invited_by_user_id])

    def __repr__(self) -> str:
        return f"<Membership warehouse_id={self.warehouse_id} user_id={self.user_id} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "user_id": self.user_id,
            "role": self.role,
            "invited_by_user_id": self.invited_by_user_id,
            "joined_at": to_utc_z(self.joined_at),
        }


class Invitation(db.Model):
    """
    Pending offer of a role in a warehouse, addressed to an email.

    pending -> accepted | declined. At most one pending row per
    (email, warehouse_id), enforced by a partial unique index; terminal rows
    are purged when the same pair is invited again.
    """
    __tablename__ = "invitations"
    __table_args__ = (
        db.Index("ix_invitations_email_warehouse", "email", "warehouse_id"),
        db.Index("ix_invitations_warehouse", "warehouse_id"),
        db.Index(
            "uq_invitations_pending_email_warehouse",
            "email",
            "warehouse_id",
            unique=True,
            sqlite_where=db.text("status = 'pending'"),
            postgresql_where=db.text("status = 'pending'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False)
    invited_by_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status = db.Column(db.String(16), nullable=False, default=INVITATION_PENDING)
    invited_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    warehouse = db.relationship("Warehouse")
    invited_by = db.relationship("User", foreign_keys=[invited_by_user_id])

    def __repr__(self) -> str:
        return f"<Invitation id={self.id} email={self.email!r} status={self.status!r}>"

    @property
    def is_pending(self) -> bool:
        return self.status == INVITATION_PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "email": self.email,
            "role": self.role,
            "invited_by_user_id": self.invited_by_user_id,
            "status": self.status,
            "invited_at": to_utc_z(self.invited_at),
        }
