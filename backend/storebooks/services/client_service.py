# Overview: Service-layer operations for clients (tenants).

from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFound, UpstreamError
from ..extensions import db
from ..models import Client
from ..validation import CLIENT_POLICY, validate_payload
from .tenant_service import Principal, require_client, require_client_access


def list_clients() -> list[Client]:
    """All clients, newest first. Callers must be super_admin."""
    return db.session.query(Client).order_by(Client.created_at.desc(), Client.id.desc()).all()


def validate_client(client_id: int) -> Client:
    """
    First login step: confirm the client exists.

    Inactive clients are reported as missing.
    """
    client = db.session.get(Client, client_id)
    if client is None or not client.is_active:
        raise NotFound("Client not found")
    return client


def get_client(principal: Principal, client_id: int) -> Client:
    client = require_client(client_id)
    require_client_access(principal, client.id)
    return client


def create_client(payload: dict) -> Client:
    patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
    client = Client(**patch)
    db.session.add(client)
    _commit("Failed to create client")
    return client


def update_client(client_id: int, payload: dict) -> Client:
    client = require_client(client_id)
    patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=True)
    for key, value in patch.items():
        setattr(client, key, value)
    _commit("Failed to update client")
    return client


def _commit(message: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UpstreamError(message, details={"reason": str(exc.__class__.__name__)}) from exc
