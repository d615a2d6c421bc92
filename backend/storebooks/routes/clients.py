# Overview: Flask API routes for client (tenant) management.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import StorebooksError
from ..http import error_response, internal_error, json_body
from ..models import ROLE_SUPER_ADMIN
from ..services import client_service


clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def list_clients():
    clients = client_service.list_clients()
    return jsonify({"clients": [client.to_dict() for client in clients]}), 200


@clients_bp.post("")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def create_client():
    try:
        client = client_service.create_client(json_body())
        return jsonify({"client": client.to_dict(), "message": "Client created successfully"}), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to create client")


@clients_bp.get("/<int:client_id>")
@require_auth
def get_client(client_id: int):
    """super_admin reads any client; other users only their own."""
    try:
        client = client_service.get_client(g.principal, client_id)
        return jsonify({"client": client.to_dict()}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to get client")


@clients_bp.put("/<int:client_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def update_client(client_id: int):
    try:
        client = client_service.update_client(client_id, json_body())
        return jsonify({"client": client.to_dict(), "message": "Client updated successfully"}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to update client")
