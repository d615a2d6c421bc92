# Overview: Service-layer operations for the security event audit trail.

"""
Security Event Logging with Multi-Tenant Support

Every denied access (cross-tenant attempt, role denial, failed login) is
written to security_events with the tenant it concerned, so events can be
filtered per client.

Grants are not logged.
"""

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import utcnow


CROSS_TENANT_ACCESS_DENIED = "CROSS_TENANT_ACCESS_DENIED"
ROLE_DENIED = "ROLE_DENIED"
LOGIN_FAILED = "LOGIN_FAILED"
SELF_REGISTRATION_DENIED = "SELF_REGISTRATION_DENIED"


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    client_id: int | None = None,
    store_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    Request metadata (path, method, IP, user agent) is filled in from the
    active request when the caller did not pass it.
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = resource or request.path
        action = action or request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        user_id=user_id,
        client_id=client_id,
        store_id=store_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def list_security_events(client_id: int | None = None, event_type: str | None = None, limit: int = 100):
    """Most recent events first, optionally scoped to one client."""
    query = db.session.query(SecurityEvent)
    if client_id is not None:
        query = query.filter(SecurityEvent.client_id == client_id)
    if event_type:
        query = query.filter(SecurityEvent.event_type == event_type)
    return query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).limit(limit).all()
