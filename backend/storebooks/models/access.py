from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ACCESS_LEVELS = ("none", "read", "write", "full")

CAPABILITY_FLAGS = ("can_create", "can_read", "can_update", "can_delete", "can_export", "can_import")


class SystemRole(db.Model):
    """
    Named role in the page-access matrix.

    role_type ties a system role to one of the user roles (super_admin,
    admin, client_user). The default roles share their role_type as name and
    apply to every user of that type without an explicit assignment.

    Roles are soft-deleted via is_active.
    """
    __tablename__ = "system_roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)
    role_type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=True, default="")
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role_type": self.role_type,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Page(db.Model):
    """A UI page that access can be granted to."""
    __tablename__ = "pages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    page_key = db.Column(db.String(64), nullable=False, unique=True, index=True)
    page_name = db.Column(db.String(128), nullable=False)
    page_group = db.Column(db.String(64), nullable=False, index=True)
    route_path = db.Column(db.String(255), nullable=False)
    icon_name = db.Column(db.String(64), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "page_key": self.page_key,
            "page_name": self.page_name,
            "page_group": self.page_group,
            "route_path": self.route_path,
            "icon_name": self.icon_name,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
        }


class RolePageAccess(db.Model):
    """
    One cell of the role x page matrix.

    The full set for a role is replaced atomically (see access_service).
    """
    __tablename__ = "role_page_access"
    __table_args__ = (
        db.UniqueConstraint("role_id", "page_id", name="uq_role_page_access"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("system_roles.id"), nullable=False, index=True)
    page_id = db.Column(db.Integer, db.ForeignKey("pages.id"), nullable=False, index=True)

    access_level = db.Column(db.String(16), nullable=False, default="none")
    can_create = db.Column(db.Boolean, nullable=False, default=False)
    can_read = db.Column(db.Boolean, nullable=False, default=False)
    can_update = db.Column(db.Boolean, nullable=False, default=False)
    can_delete = db.Column(db.Boolean, nullable=False, default=False)
    can_export = db.Column(db.Boolean, nullable=False, default=False)
    can_import = db.Column(db.Boolean, nullable=False, default=False)

    role = db.relationship("SystemRole", backref=db.backref("page_access", lazy=True))
    page = db.relationship("Page", backref=db.backref("role_access", lazy=True))

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "role_id": self.role_id,
            "page_id": self.page_id,
            "access_level": self.access_level,
        }
        for flag in CAPABILITY_FLAGS:
            data[flag] = getattr(self, flag)
        if self.page is not None:
            data["page_key"] = self.page.page_key
            data["page_name"] = self.page.page_name
            data["page_group"] = self.page.page_group
            data["route_path"] = self.page.route_path
        return data


class UserRoleAssignment(db.Model):
    """Explicit user -> system role link (in addition to the role_type default)."""
    __tablename__ = "user_role_assignments"
    __table_args__ = (
        db.UniqueConstraint("user_id", "role_id", name="uq_user_role_assignments"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role_id = db.Column(db.Integer, db.ForeignKey("system_roles.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    role = db.relationship("SystemRole", backref=db.backref("assignments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role_id": self.role_id,
            "is_active": self.is_active,
            "assigned_by": self.assigned_by,
            "assigned_at": to_utc_z(self.assigned_at),
        }


class RoleAuditLog(db.Model):
    """
    Append-only record of role and permission changes.

    IMMUTABLE: Never update or delete.
    """
    __tablename__ = "role_audit_log"
    __table_args__ = (
        db.Index("ix_role_audit_log_role_created", "role_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    role_id = db.Column(db.Integer, db.ForeignKey("system_roles.id"), nullable=False)
    action = db.Column(db.String(64), nullable=False)  # role_created, permission_changed, ...
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role_id": self.role_id,
            "action": self.action,
            "details": self.details,
            "created_at": to_utc_z(self.created_at),
        }
