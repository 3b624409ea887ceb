from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class User(db.Model):
    """
    Identity record mirrored from the external identity provider.

    Created, updated and deleted only by identity sync events. The
    external_auth_id is the provider's stable id; email is what invitations
    are matched against.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    external_auth_id = db.Column(db.String(128), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "external_auth_id": self.external_auth_id,
            "name": self.name,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }
