# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import Unauthorized
from .services import token_service, security_service
from .services.tenant_service import Principal


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'principal')


def require_auth(f):
    """
    Require a Bearer token and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: the User row the token was issued to (re-fetched)
    - g.principal: Principal(user_id, client_id, role, store_id) built from
      that row; services take scope from here, never from the body

    SECURITY: Returns 401 if:
    - No Authorization header
    - Malformed, forged, or expired token
    - The user no longer exists
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            user = token_service.verify_token(token)
        except Unauthorized as exc:
            return jsonify(exc.to_dict()), exc.status_code

        g.current_user = user
        g.principal = Principal.from_user(user)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the authenticated user's role to be one of roles.

    Denials are logged as ROLE_DENIED security events with tenant context.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            principal = g.principal
            if principal.role not in roles:
                security_service.log_security_event(
                    user_id=principal.user_id,
                    event_type=security_service.ROLE_DENIED,
                    success=False,
                    reason=f"Role {principal.role} not in: {', '.join(roles)}",
                    client_id=principal.client_id,
                    store_id=principal.store_id,
                )
                return jsonify({
                    "error": "Insufficient permissions",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
