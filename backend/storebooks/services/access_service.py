# Overview: Service-layer operations for system roles and the role/page access matrix.

"""
Role and Page Access Service

The access matrix maps system roles to UI pages with an access level and
CRUD capability flags. It drives navigation, not data visibility: data
visibility is decided by the user's role column and tenant_service.

A user's effective roles are:
- the active default role named after their user role (super_admin, admin,
  client_user), and
- every active explicit assignment in user_role_assignments.
Effective access to a page is the highest access level and the union of
capability flags across those roles.

Every role or permission change writes a role_audit_log row in the same
database transaction as the change itself.
"""

from __future__ import annotations

from collections import OrderedDict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import Conflict, NotFound, UpstreamError, ValidationError
from ..extensions import db
from ..models import (
    Page,
    RoleAuditLog,
    RolePageAccess,
    SystemRole,
    User,
    UserRoleAssignment,
    ACCESS_LEVELS,
    CAPABILITY_FLAGS,
)
from ..permissions import (
    DEFAULT_ROLE_PAGE_ACCESS,
    DEFAULT_SYSTEM_ROLES,
    PAGE_DEFINITIONS,
    flags_for_access_level,
    validate_page_key,
)
from ..validation import (
    ROLE_POLICY,
    coerce_int,
    enforce_rules_role,
    validate_access_level,
    validate_payload,
)
from .tenant_service import Principal, require_record_access


# Capability flags accept camelCase (canCreate) or snake_case (can_create)
_FLAG_ALIASES = {flag: "can" + flag[4:].capitalize() for flag in CAPABILITY_FLAGS}


# -- Seeding --

def initialize_pages() -> int:
    """
    Create pages from PAGE_DEFINITIONS. Idempotent.

    Returns the number of pages created.
    """
    existing = {page.page_key: page for page in db.session.query(Page).all()}
    created = 0
    for key, name, group, route, icon, sort_order in PAGE_DEFINITIONS:
        page = existing.get(key)
        if page is None:
            db.session.add(Page(
                page_key=key,
                page_name=name,
                page_group=group,
                route_path=route,
                icon_name=icon,
                sort_order=sort_order,
            ))
            created += 1
        else:
            page.page_name = name
            page.page_group = group
            page.route_path = route
            page.icon_name = icon
            page.sort_order = sort_order
    db.session.commit()
    return created


def create_default_roles() -> int:
    """Create the built-in system roles. Idempotent."""
    created = 0
    for name, role_type, description in DEFAULT_SYSTEM_ROLES:
        if db.session.query(SystemRole).filter_by(name=name).first() is None:
            db.session.add(SystemRole(name=name, role_type=role_type, description=description))
            created += 1
    db.session.commit()
    return created


def assign_default_role_access() -> int:
    """
    Grant the default matrix to the built-in roles.

    Only missing (role, page) cells are added; edited cells are kept.
    Returns the number of cells created.
    """
    pages = {page.page_key: page for page in db.session.query(Page).all()}
    created = 0
    for role_name, page_levels in DEFAULT_ROLE_PAGE_ACCESS.items():
        role = db.session.query(SystemRole).filter_by(name=role_name).first()
        if role is None:
            continue
        existing = {row.page_id for row in db.session.query(RolePageAccess).filter_by(role_id=role.id)}
        for page_key, level in page_levels.items():
            page = pages.get(page_key)
            if page is None or page.id in existing:
                continue
            db.session.add(RolePageAccess(
                role_id=role.id,
                page_id=page.id,
                access_level=level,
                **flags_for_access_level(level),
            ))
            created += 1
    db.session.commit()
    return created


def seed_access() -> dict:
    return {
        "pages": initialize_pages(),
        "roles": create_default_roles(),
        "access": assign_default_role_access(),
    }


# -- Roles --

def _audit(principal: Principal | None, role_id: int, action: str, details: dict | None) -> None:
    db.session.add(RoleAuditLog(
        user_id=principal.user_id if principal else None,
        role_id=role_id,
        action=action,
        details=details,
    ))


def _commit(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("A role with this name already exists") from None
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UpstreamError(message, details={"reason": str(exc)}) from exc


def list_roles() -> list[SystemRole]:
    return db.session.query(SystemRole).filter_by(is_active=True).order_by(SystemRole.name).all()


def get_role(role_id: int) -> SystemRole:
    role = db.session.get(SystemRole, role_id)
    if role is None:
        raise NotFound("Role not found")
    return role


def _normalize_role_payload(payload: dict) -> dict:
    # The admin UI sends roleType / isActive
    body = dict(payload or {})
    if "roleType" in body:
        body["role_type"] = body.pop("roleType")
    if "isActive" in body:
        body["is_active"] = body.pop("isActive")
    return body


def create_role(principal: Principal, payload: dict) -> SystemRole:
    patch = validate_payload(
        model=SystemRole,
        payload=_normalize_role_payload(payload),
        policy=ROLE_POLICY,
        partial=False,
    )
    enforce_rules_role(patch)
    if db.session.query(SystemRole).filter_by(name=patch["name"]).first():
        raise Conflict("A role with this name already exists")

    role = SystemRole(
        name=patch["name"],
        role_type=patch["role_type"],
        description=patch.get("description") or "",
        is_active=patch.get("is_active", True),
    )
    db.session.add(role)
    db.session.flush()
    _audit(principal, role.id, "role_created", {
        "name": role.name,
        "roleType": role.role_type,
        "description": role.description,
    })
    _commit("Failed to create role")
    return role


def update_role(principal: Principal, role_id: int, payload: dict) -> SystemRole:
    role = get_role(role_id)
    patch = validate_payload(
        model=SystemRole,
        payload=_normalize_role_payload(payload),
        policy=ROLE_POLICY,
        partial=True,
    )
    enforce_rules_role(patch)
    if "name" in patch:
        clash = db.session.query(SystemRole).filter(
            SystemRole.name == patch["name"], SystemRole.id != role.id
        ).first()
        if clash:
            raise Conflict("A role with this name already exists")

    for key, value in patch.items():
        setattr(role, key, value)
    _audit(principal, role.id, "role_updated", patch)
    _commit("Failed to update role")
    return role


def delete_role(principal: Principal, role_id: int) -> SystemRole:
    """
    Soft delete: is_active = False.

    Refused while any active assignment still points at the role.
    """
    role = get_role(role_id)
    in_use = db.session.query(UserRoleAssignment).filter_by(role_id=role.id, is_active=True).first()
    if in_use:
        raise ValidationError("Cannot delete role that is assigned to users")

    role.is_active = False
    _audit(principal, role.id, "role_deleted", {"roleName": role.name})
    _commit("Failed to delete role")
    return role


# -- Pages and access --

def list_pages() -> list[Page]:
    return (
        db.session.query(Page)
        .filter_by(is_active=True)
        .order_by(Page.page_group, Page.sort_order, Page.page_name)
        .all()
    )


def group_pages(pages: list[Page]) -> dict:
    grouped: dict = OrderedDict()
    for page in pages:
        grouped.setdefault(page.page_group, []).append(page.to_dict())
    return grouped


def get_role_access(role_id: int) -> list[RolePageAccess]:
    get_role(role_id)
    return (
        db.session.query(RolePageAccess)
        .join(Page, RolePageAccess.page_id == Page.id)
        .filter(RolePageAccess.role_id == role_id, Page.is_active.is_(True))
        .order_by(Page.page_group, Page.sort_order)
        .all()
    )


def _parse_access_entry(entry) -> dict:
    if not isinstance(entry, dict):
        raise ValidationError("Each pageAccess entry must be an object")
    raw_page_id = entry.get("pageId", entry.get("page_id"))
    if raw_page_id is None:
        raise ValidationError("pageId is required for each pageAccess entry")
    level = validate_access_level(entry.get("accessLevel", entry.get("access_level", "none")))

    row = {"page_id": coerce_int(raw_page_id, "pageId"), "access_level": level}
    for flag, alias in _FLAG_ALIASES.items():
        value = entry.get(alias, entry.get(flag, False))
        if not isinstance(value, bool):
            raise ValidationError(f"{alias} must be a boolean")
        row[flag] = value
    return row


def replace_role_access(principal: Principal, role_id: int, page_access) -> list[RolePageAccess]:
    """
    Replace a role's whole page-access set.

    The delete, the inserts, and the audit row are one database
    transaction: either all of them land or none do.
    """
    if not isinstance(page_access, list):
        raise ValidationError("pageAccess must be an array")

    role = get_role(role_id)
    rows = [_parse_access_entry(entry) for entry in page_access]

    page_ids = [row["page_id"] for row in rows]
    if len(set(page_ids)) != len(page_ids):
        raise ValidationError("pageAccess contains duplicate pages")
    if page_ids:
        known = {pid for (pid,) in db.session.query(Page.id).filter(Page.id.in_(page_ids))}
        unknown = sorted(set(page_ids) - known)
        if unknown:
            raise ValidationError(f"Unknown page ids: {', '.join(str(pid) for pid in unknown)}")

    try:
        db.session.query(RolePageAccess).filter_by(role_id=role.id).delete(synchronize_session=False)
        new_rows = [RolePageAccess(role_id=role.id, **row) for row in rows]
        db.session.add_all(new_rows)
        _audit(principal, role.id, "permission_changed", {"pageAccessCount": len(new_rows)})
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UpstreamError("Failed to update role access", details={"reason": str(exc)}) from exc
    return new_rows


def access_matrix() -> dict:
    """
    {role_name: {roleId, roleName, roleType, pages: {page_key: {...}}}} for
    active roles and pages.
    """
    rows = (
        db.session.query(RolePageAccess, SystemRole, Page)
        .join(SystemRole, RolePageAccess.role_id == SystemRole.id)
        .join(Page, RolePageAccess.page_id == Page.id)
        .filter(SystemRole.is_active.is_(True), Page.is_active.is_(True))
        .order_by(SystemRole.name, Page.page_group, Page.sort_order)
        .all()
    )

    matrix: dict = OrderedDict()
    for access, role, page in rows:
        entry = matrix.setdefault(role.name, {
            "roleId": role.id,
            "roleName": role.name,
            "roleType": role.role_type,
            "pages": OrderedDict(),
        })
        cell = {
            "pageId": page.id,
            "pageName": page.page_name,
            "pageGroup": page.page_group,
            "accessLevel": access.access_level,
            "routePath": page.route_path,
            "iconName": page.icon_name,
        }
        for flag, alias in _FLAG_ALIASES.items():
            cell[alias] = getattr(access, flag)
        entry["pages"][page.page_key] = cell
    return matrix


# -- Assignments --

def assign_role(principal: Principal, role_id: int, user_id: int) -> UserRoleAssignment:
    role = get_role(role_id)
    if not role.is_active:
        raise ValidationError("Cannot assign an inactive role")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    require_record_access(principal, user, "user")

    assignment = db.session.query(UserRoleAssignment).filter_by(user_id=user.id, role_id=role.id).first()
    if assignment is None:
        assignment = UserRoleAssignment(user_id=user.id, role_id=role.id, assigned_by=principal.user_id)
        db.session.add(assignment)
    else:
        assignment.is_active = True
        assignment.assigned_by = principal.user_id
    _audit(principal, role.id, "role_assigned", {"userId": user.id})
    _commit("Failed to assign role")
    return assignment


def unassign_role(principal: Principal, role_id: int, user_id: int) -> UserRoleAssignment:
    role = get_role(role_id)
    assignment = db.session.query(UserRoleAssignment).filter_by(
        user_id=user_id, role_id=role.id, is_active=True
    ).first()
    if assignment is None:
        raise NotFound("Role assignment not found")
    assignment.is_active = False
    _audit(principal, role.id, "role_unassigned", {"userId": user_id})
    _commit("Failed to remove role assignment")
    return assignment


def get_effective_roles(user: User) -> list[SystemRole]:
    roles = {}
    default = db.session.query(SystemRole).filter_by(name=user.role, is_active=True).first()
    if default is not None:
        roles[default.id] = default

    assigned = (
        db.session.query(SystemRole)
        .join(UserRoleAssignment, UserRoleAssignment.role_id == SystemRole.id)
        .filter(
            UserRoleAssignment.user_id == user.id,
            UserRoleAssignment.is_active.is_(True),
            SystemRole.is_active.is_(True),
        )
        .all()
    )
    for role in assigned:
        roles[role.id] = role
    return list(roles.values())


def _require_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def get_user_accessible_pages(user_id: int) -> list[dict]:
    """
    Pages the user can reach, merged across effective roles.

    Pages whose merged level is "none" and grant no read are left out.
    """
    user = _require_user(user_id)
    role_ids = [role.id for role in get_effective_roles(user)]
    if not role_ids:
        return []

    rows = (
        db.session.query(RolePageAccess, Page)
        .join(Page, RolePageAccess.page_id == Page.id)
        .filter(RolePageAccess.role_id.in_(role_ids), Page.is_active.is_(True))
        .order_by(Page.page_group, Page.sort_order)
        .all()
    )

    merged: dict = OrderedDict()
    for access, page in rows:
        cell = merged.get(page.page_key)
        if cell is None:
            cell = {
                "page_key": page.page_key,
                "page_name": page.page_name,
                "page_group": page.page_group,
                "route_path": page.route_path,
                "icon_name": page.icon_name,
                "access_level": "none",
            }
            cell.update({flag: False for flag in CAPABILITY_FLAGS})
            merged[page.page_key] = cell
        if ACCESS_LEVELS.index(access.access_level) > ACCESS_LEVELS.index(cell["access_level"]):
            cell["access_level"] = access.access_level
        for flag in CAPABILITY_FLAGS:
            cell[flag] = cell[flag] or getattr(access, flag)

    return [cell for cell in merged.values() if cell["access_level"] != "none" or cell["can_read"]]


def check_user_page_access(user_id: int, page_key: str) -> dict:
    if not validate_page_key(page_key):
        raise ValidationError(f"Unknown page: {page_key}")
    for cell in get_user_accessible_pages(user_id):
        if cell["page_key"] == page_key:
            result = {"has_access": True, "access_level": cell["access_level"]}
            result.update({flag: cell[flag] for flag in CAPABILITY_FLAGS})
            return result
    return {"has_access": False}
