# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import StorebooksError
from ..http import error_response, internal_error, json_body
from ..models import ROLE_SUPER_ADMIN, ROLE_ADMIN
from ..services import store_service


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("/client/<int:client_id>")
@require_auth
def list_client_stores(client_id: int):
    try:
        stores = store_service.list_client_stores(g.principal, client_id)
        return jsonify({"stores": [store.to_dict() for store in stores]}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to list stores")


@stores_bp.post("")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def create_store():
    try:
        store = store_service.create_store(g.principal, json_body())
        return jsonify({"store": store.to_dict(), "message": "Store created successfully"}), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to create store")


@stores_bp.get("/<int:store_id>")
@require_auth
def get_store(store_id: int):
    try:
        store = store_service.get_store(g.principal, store_id)
        return jsonify({"store": store.to_dict()}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to get store")


@stores_bp.put("/<int:store_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN, ROLE_ADMIN)
def update_store(store_id: int):
    try:
        store = store_service.update_store(g.principal, store_id, json_body())
        return jsonify({"store": store.to_dict(), "message": "Store updated successfully"}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to update store")
