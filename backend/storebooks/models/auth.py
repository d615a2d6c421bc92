from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_CLIENT_USER = "client_user"

USER_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_CLIENT_USER)


class User(db.Model):
    """
    User accounts for authentication and attribution.

    MULTI-TENANT: Users belong to exactly one client (client_id).
    Username and email are unique within a client, not globally.
    This allows different tenants to have users with the same username.

    The role column drives data visibility: super_admin sees every client,
    admin and client_user see only their own.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("client_id", "username", name="uq_users_client_username"),
        db.UniqueConstraint("client_id", "email", name="uq_users_client_email"),
        db.Index("ix_users_client_id", "client_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False)

    username = db.Column(db.String(64), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default=ROLE_CLIENT_USER, index=True)

    # Optional store assignment (must be a store of the same client)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    client = db.relationship("Client", backref=db.backref("users", lazy=True))
    store = db.relationship("Store", backref=db.backref("users", lazy=True))

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "store_id": self.store_id,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }
