# Overview: Flask API routes for system roles and the role/page access matrix.

"""
Reads are open to any authenticated user; every mutation is super_admin
only. Users may query their own page access; super admins anyone's.
"""

from flask import Blueprint, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import AccessDenied, StorebooksError
from ..http import error_response, internal_error, json_body
from ..models import ROLE_SUPER_ADMIN
from ..services import access_service
from ..validation import coerce_int, require_fields


roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


def _require_self_or_super_admin(user_id: int) -> None:
    if g.principal.user_id != user_id and not g.principal.is_super_admin:
        raise AccessDenied("Can only check your own access")


@roles_bp.get("")
@require_auth
def list_roles():
    roles = access_service.list_roles()
    return jsonify({"roles": [role.to_dict() for role in roles]}), 200


@roles_bp.post("")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def create_role():
    try:
        role = access_service.create_role(g.principal, json_body())
        return jsonify({"role": role.to_dict()}), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to create role")


@roles_bp.get("/access-matrix")
@require_auth
def access_matrix():
    try:
        return jsonify({"accessMatrix": access_service.access_matrix()}), 200
    except Exception:
        return internal_error("Failed to fetch access matrix")


@roles_bp.get("/pages")
@require_auth
def list_pages():
    pages = access_service.list_pages()
    return jsonify({
        "pages": [page.to_dict() for page in pages],
        "groupedPages": access_service.group_pages(pages),
    }), 200


@roles_bp.get("/<int:role_id>/access")
@require_auth
def get_role_access(role_id: int):
    try:
        access = access_service.get_role_access(role_id)
        return jsonify({"access": [row.to_dict() for row in access]}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to fetch role access")


@roles_bp.post("/<int:role_id>/access")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def replace_role_access(role_id: int):
    try:
        data = json_body()
        access = access_service.replace_role_access(g.principal, role_id, data.get("pageAccess"))
        return jsonify({"access": [row.to_dict() for row in access]}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to update role access")


@roles_bp.put("/<int:role_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def update_role(role_id: int):
    try:
        role = access_service.update_role(g.principal, role_id, json_body())
        return jsonify({"role": role.to_dict()}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to update role")


@roles_bp.delete("/<int:role_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def delete_role(role_id: int):
    try:
        role = access_service.delete_role(g.principal, role_id)
        return jsonify({"message": "Role deleted successfully", "role": role.to_dict()}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to delete role")


@roles_bp.post("/<int:role_id>/assignments")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def assign_role(role_id: int):
    try:
        data = json_body()
        require_fields(data, "userId")
        assignment = access_service.assign_role(g.principal, role_id, coerce_int(data["userId"], "userId"))
        return jsonify({"assignment": assignment.to_dict()}), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to assign role")


@roles_bp.delete("/<int:role_id>/assignments/<int:user_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def unassign_role(role_id: int, user_id: int):
    try:
        assignment = access_service.unassign_role(g.principal, role_id, user_id)
        return jsonify({"assignment": assignment.to_dict(), "message": "Role assignment removed"}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to remove role assignment")


@roles_bp.get("/user/<int:user_id>/access")
@require_auth
def user_accessible_pages(user_id: int):
    try:
        _require_self_or_super_admin(user_id)
        pages = access_service.get_user_accessible_pages(user_id)
        return jsonify({"accessiblePages": pages}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to fetch accessible pages")


@roles_bp.post("/check-access")
@require_auth
def check_access():
    try:
        data = json_body()
        if not data.get("userId") or not data.get("pageKey"):
            return jsonify({"error": "userId and pageKey are required"}), 400
        user_id = coerce_int(data["userId"], "userId")
        _require_self_or_super_admin(user_id)
        result = access_service.check_user_page_access(user_id, data["pageKey"])
        return jsonify({"accessCheck": result}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to check page access")
