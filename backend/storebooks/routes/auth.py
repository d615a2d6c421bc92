# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Login is two steps for the UI: validate the client, then exchange
(client_id, username-or-email, password) for a Bearer token.
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..errors import StorebooksError
from ..http import error_response, internal_error, json_body
from ..services import auth_service, client_service, token_service
from ..validation import coerce_int, require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/validate-client")
def validate_client_route():
    """Confirm a client exists and return its public fields."""
    try:
        data = json_body()
        require_fields(data, "client_id")
        client = client_service.validate_client(coerce_int(data["client_id"], "client_id"))
        return jsonify({"client": client.to_public_dict(), "valid": True}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to validate client")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and issue a token.

    Body: client_id, password, and one of username / email / identifier.
    Unknown accounts and wrong passwords both answer 401 "Invalid credentials".
    """
    try:
        data = json_body()
        identifier = data.get("username") or data.get("email") or data.get("identifier")
        if not data.get("client_id") or not identifier or not data.get("password"):
            return jsonify({"error": "client_id, username/email and password required"}), 400

        user = auth_service.authenticate(
            coerce_int(data["client_id"], "client_id"),
            identifier,
            data["password"],
        )
        token = token_service.issue_token(user)

        return jsonify({
            "token": token,
            "user": user.to_dict(),
            "message": "Login successful",
        }), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to login user")


@auth_bp.post("/register")
def register_route():
    """
    Self-registration of client_user accounts.

    Disabled (403) unless ALLOW_SELF_REGISTRATION is on. Admins create
    other accounts via POST /api/users or `flask users create`.
    """
    try:
        data = json_body()
        require_fields(data, "client_id", "username", "email", "password")
        user = auth_service.register_user(
            client_id=coerce_int(data["client_id"], "client_id"),
            username=data["username"],
            email=data["email"],
            password=data["password"],
        )
        return jsonify({"user": user.to_dict(), "message": "User created successfully"}), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to register user")


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
