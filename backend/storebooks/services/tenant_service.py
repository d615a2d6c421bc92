"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

Centralizes the one rule every read and write goes through: a principal may
touch a row only when the row's client_id equals the principal's client_id,
unless the principal is a super_admin.

SECURITY INVARIANTS:
1. Every authenticated request carries a Principal built from the database
   user row (never from request bodies)
2. Store IDs from client input are resolved and checked against the
   principal's client
3. For non-super_admin principals the write scope is always their own client
4. Cross-tenant access attempts are logged as security events

USAGE:
    from storebooks.services.tenant_service import require_store_access

    store = require_store_access(g.principal, store_id)
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import AccessDenied, NotFound, ValidationError
from ..extensions import db
from ..models import Client, Store, User, ROLE_SUPER_ADMIN
from . import security_service


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: who they are and which tenant they act for."""
    user_id: int
    client_id: int
    role: str
    store_id: int | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=user.id,
            client_id=user.client_id,
            role=user.role,
            store_id=user.store_id,
        )


def _deny(principal: Principal, reason: str, *, store_id: int | None = None):
    # Logged under the principal's own client so the tenant sees who probed
    security_service.log_security_event(
        user_id=principal.user_id,
        event_type=security_service.CROSS_TENANT_ACCESS_DENIED,
        success=False,
        reason=reason,
        client_id=principal.client_id,
        store_id=store_id,
    )
    return AccessDenied("Access denied to this client" if store_id is None else "Access denied to this store")


def can_access_client(principal: Principal, client_id: int) -> bool:
    return principal.is_super_admin or principal.client_id == client_id


def require_client_access(principal: Principal, client_id: int) -> None:
    """
    Allow if super_admin or the principal belongs to client_id.

    Raises AccessDenied otherwise.
    """
    if can_access_client(principal, client_id):
        return
    raise _deny(
        principal,
        f"Client {client_id} requested by user of client {principal.client_id}",
    )


def get_store(store_id: int) -> Store:
    store = db.session.get(Store, store_id)
    if store is None:
        raise NotFound("Store not found")
    return store


def require_store_access(principal: Principal, store_id: int) -> Store:
    """
    Resolve a store and apply the client rule to it.

    Raises NotFound if the store does not exist, AccessDenied if it belongs
    to another client.
    """
    store = get_store(store_id)
    if not can_access_client(principal, store.client_id):
        raise _deny(
            principal,
            f"Store {store_id} belongs to client {store.client_id}, not {principal.client_id}",
            store_id=store_id,
        )
    return store


def require_record_access(principal: Principal, record, label: str = "record"):
    """Apply the client rule to an already-loaded client-owned row."""
    if not can_access_client(principal, record.client_id):
        security_service.log_security_event(
            user_id=principal.user_id,
            event_type=security_service.CROSS_TENANT_ACCESS_DENIED,
            success=False,
            reason=f"{label} {record.id} belongs to client {record.client_id}, not {principal.client_id}",
            client_id=principal.client_id,
        )
        raise AccessDenied(f"Access denied to this {label}")
    return record


def require_client(client_id: int) -> Client:
    client = db.session.get(Client, client_id)
    if client is None:
        raise NotFound("Client not found")
    return client


def resolve_read_client(principal: Principal, requested_client_id: int | None) -> int:
    """
    Client whose data a read should cover.

    Tenants default to their own client; super_admin must name one.
    """
    if requested_client_id is None:
        if principal.is_super_admin:
            raise ValidationError("clientId is required")
        return principal.client_id
    require_client_access(principal, requested_client_id)
    return requested_client_id


def resolve_write_scope(
    principal: Principal,
    requested_client_id: int | None,
    store_id: int | None,
) -> tuple[int, Store | None]:
    """
    Decide which client a new row belongs to.

    Non-super_admin: always the principal's client. A body client_id that
    differs is rejected, and a store must belong to the principal's client.

    super_admin: the store's client when a store is given (a conflicting body
    client_id is a ValidationError); otherwise the body client_id, which is
    required and must exist.

    Returns (client_id, store or None).
    """
    if not principal.is_super_admin:
        if requested_client_id is not None and requested_client_id != principal.client_id:
            raise _deny(
                principal,
                f"Write to client {requested_client_id} by user of client {principal.client_id}",
            )
        store = require_store_access(principal, store_id) if store_id is not None else None
        return principal.client_id, store

    if store_id is not None:
        store = get_store(store_id)
        if requested_client_id is not None and requested_client_id != store.client_id:
            raise ValidationError("Store does not belong to this client")
        return store.client_id, store

    if requested_client_id is None:
        raise ValidationError("client_id is required")
    require_client(requested_client_id)
    return requested_client_id, None


def get_client_stores(client_id: int) -> list[Store]:
    return db.session.query(Store).filter_by(client_id=client_id).order_by(Store.name).all()
