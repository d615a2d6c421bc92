# Overview: Service-layer operations for stores; encapsulates business logic and database work.

"""
Store management.

MULTI-TENANT: Store names are unique within a client. Every read goes
through tenant_service so a principal only sees stores of its own client
(super_admin sees all).
"""

from sqlalchemy.exc import IntegrityError

from ..errors import Conflict
from ..extensions import db
from ..models import Store
from ..validation import STORE_POLICY, validate_payload, parse_optional_id
from .tenant_service import (
    Principal,
    get_client_stores,
    require_client,
    require_client_access,
    require_store_access,
    resolve_write_scope,
)


def list_client_stores(principal: Principal, client_id: int) -> list[Store]:
    require_client_access(principal, client_id)
    require_client(client_id)
    return get_client_stores(client_id)


def get_store(principal: Principal, store_id: int) -> Store:
    return require_store_access(principal, store_id)


def _ensure_unique_name(client_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Store).filter(Store.client_id == client_id, Store.name == name)
    if exclude_id is not None:
        query = query.filter(Store.id != exclude_id)
    if query.first():
        raise Conflict("A store with this name already exists for this client")


def create_store(principal: Principal, payload: dict) -> Store:
    """
    Create a store in the principal's client.

    Only super_admin may name another client (client_id in the body).
    """
    payload = dict(payload or {})
    requested_client_id = parse_optional_id(payload.pop("client_id", None), "client_id")
    patch = validate_payload(model=Store, payload=payload, policy=STORE_POLICY, partial=False)

    client_id, _ = resolve_write_scope(principal, requested_client_id, None)
    _ensure_unique_name(client_id, patch["name"])

    store = Store(client_id=client_id, name=patch["name"], location=patch.get("location") or "")
    db.session.add(store)
    _commit_store()
    return store


def update_store(principal: Principal, store_id: int, payload: dict) -> Store:
    store = require_store_access(principal, store_id)
    patch = validate_payload(model=Store, payload=payload, policy=STORE_POLICY, partial=True)

    if "name" in patch:
        _ensure_unique_name(store.client_id, patch["name"], exclude_id=store.id)

    for key, value in patch.items():
        setattr(store, key, value)
    _commit_store()
    return store


def _commit_store() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("A store with this name already exists for this client") from None
