# Overview: Flask API routes for user administration.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import StorebooksError
from ..http import error_response, internal_error, json_body
from ..models import ROLE_SUPER_ADMIN, ROLE_ADMIN
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def list_users():
    """super_admin sees every user; admin sees its own client's users."""
    users = user_service.list_users(g.principal)
    return jsonify({"users": [user.to_dict() for user in users]}), 200


@users_bp.get("/client/<int:client_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def list_client_users(client_id: int):
    try:
        users = user_service.list_client_users(g.principal, client_id)
        return jsonify({"users": [user.to_dict() for user in users]}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to list client users")


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def get_user(user_id: int):
    try:
        user = user_service.get_user(g.principal, user_id)
        return jsonify({"user": user.to_dict()}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to get user")


@users_bp.post("")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def create_user():
    try:
        user = user_service.create_user(g.principal, json_body())
        return jsonify({"user": user.to_dict(), "message": "User created successfully"}), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to create user")
