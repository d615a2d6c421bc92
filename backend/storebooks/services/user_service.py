# Overview: Service-layer operations for user administration.

"""
User administration for admins and super admins.

- super_admin lists and creates users in any client, with any role
- admin lists and creates users in its own client only, and never creates
  super_admin accounts
- client_user has no access (enforced by the route decorators)
"""

from ..errors import AccessDenied, NotFound
from ..extensions import db
from ..models import User, ROLE_SUPER_ADMIN, ROLE_CLIENT_USER
from ..validation import parse_optional_id, require_fields, validate_user_role
from . import auth_service
from .tenant_service import Principal, require_client, require_client_access, require_record_access, resolve_write_scope


def list_users(principal: Principal) -> list[User]:
    query = db.session.query(User)
    if not principal.is_super_admin:
        query = query.filter(User.client_id == principal.client_id)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def list_client_users(principal: Principal, client_id: int) -> list[User]:
    require_client_access(principal, client_id)
    require_client(client_id)
    return (
        db.session.query(User)
        .filter(User.client_id == client_id)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def get_user(principal: Principal, user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return require_record_access(principal, user, "user")


def create_user(principal: Principal, payload: dict) -> User:
    payload = payload or {}
    require_fields(payload, "username", "email", "password")
    role = validate_user_role(payload.get("role") or ROLE_CLIENT_USER)

    if role == ROLE_SUPER_ADMIN and not principal.is_super_admin:
        raise AccessDenied("Only super administrators can create super administrators")

    requested_client_id = parse_optional_id(payload.get("client_id"), "client_id")
    store_id = parse_optional_id(payload.get("store_id"), "store_id")
    client_id, _ = resolve_write_scope(principal, requested_client_id, store_id)

    return auth_service.create_user(
        client_id=client_id,
        username=payload.get("username"),
        email=payload.get("email"),
        password=payload.get("password"),
        role=role,
        store_id=store_id,
    )
