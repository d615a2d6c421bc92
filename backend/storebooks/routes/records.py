# Overview: Flask API routes for sales, purchases, and expenses.

"""
One blueprint per record kind, built from the same view functions:

POST   /api/<kind>                       create (optional image_base64 upload)
GET    /api/<kind>/client/<client_id>    list with filters and pagination
GET    /api/<kind>/<id>                  get by id
PUT    /api/<kind>/<id>                  partial update by id
DELETE /api/<kind>/<id>                  delete by id
GET    /api/<kind>/ref/<ref_num>         get by reference number
PUT    /api/<kind>/ref/<ref_num>         update by reference number
DELETE /api/<kind>/ref/<ref_num>         delete by reference number

List query parameters: storeId (or store_id, "all" for every store),
search, startDate, endDate, page, pageSize.
Reference-number routes take clientId for super admins.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import StorebooksError
from ..http import error_response, internal_error, json_body
from ..services import record_service
from ..services.record_service import RecordFilters, RecordKind
from ..validation import parse_date_range, parse_optional_id, parse_pagination, parse_store_filter


def _filters_from_args() -> RecordFilters:
    start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
    store_raw = request.args.get("storeId", request.args.get("store_id"))
    return RecordFilters(
        store_id=parse_store_filter(store_raw),
        search=(request.args.get("search") or "").strip() or None,
        start_date=start,
        end_date=end,
    )


def _ref_client_id():
    return parse_optional_id(request.args.get("clientId", request.args.get("client_id")), "clientId")


def make_record_blueprint(kind: RecordKind) -> Blueprint:
    bp = Blueprint(kind.plural, __name__, url_prefix=f"/api/{kind.plural}")
    title = kind.name.capitalize()

    @bp.post("")
    @require_auth
    def create_record():
        try:
            record, image_url = record_service.create_record(
                kind,
                g.principal,
                json_body(),
                storage=current_app.extensions.get("document_storage"),
            )
            return jsonify({
                kind.name: record.to_dict(),
                "image_url": image_url,
                "message": f"{title} recorded successfully",
            }), 201
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to create {kind.name}")

    @bp.get("/client/<int:client_id>")
    @require_auth
    def list_records(client_id: int):
        try:
            filters = _filters_from_args()
            page, page_size = parse_pagination(
                request.args.get("page"),
                request.args.get("pageSize"),
                default_size=current_app.config["DEFAULT_PAGE_SIZE"],
                max_size=current_app.config["MAX_PAGE_SIZE"],
            )
            records, count = record_service.list_records(
                kind, g.principal, client_id, filters, page=page, page_size=page_size
            )
            return jsonify({
                kind.plural: [record.to_dict() for record in records],
                "count": count,
                "page": page,
                "pageSize": page_size,
            }), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to list {kind.plural}")

    @bp.get("/<int:record_id>")
    @require_auth
    def get_record(record_id: int):
        try:
            record = record_service.get_record(kind, g.principal, record_id)
            return jsonify({kind.name: record.to_dict()}), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to get {kind.name}")

    @bp.put("/<int:record_id>")
    @require_auth
    def update_record(record_id: int):
        try:
            record = record_service.get_record(kind, g.principal, record_id)
            record = record_service.update_record(kind, g.principal, record, json_body())
            return jsonify({kind.name: record.to_dict(), "message": f"{title} updated successfully"}), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to update {kind.name}")

    @bp.delete("/<int:record_id>")
    @require_auth
    def delete_record(record_id: int):
        try:
            record = record_service.get_record(kind, g.principal, record_id)
            record_service.delete_record(kind, g.principal, record)
            return jsonify({"message": f"{title} deleted successfully"}), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to delete {kind.name}")

    @bp.get("/ref/<ref_num>")
    @require_auth
    def get_record_by_ref(ref_num: str):
        try:
            record = record_service.get_record_by_ref(kind, g.principal, ref_num, _ref_client_id())
            return jsonify({kind.name: record.to_dict()}), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to get {kind.name}")

    @bp.put("/ref/<ref_num>")
    @require_auth
    def update_record_by_ref(ref_num: str):
        try:
            record = record_service.get_record_by_ref(kind, g.principal, ref_num, _ref_client_id())
            record = record_service.update_record(kind, g.principal, record, json_body())
            return jsonify({kind.name: record.to_dict(), "message": f"{title} updated successfully"}), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to update {kind.name}")

    @bp.delete("/ref/<ref_num>")
    @require_auth
    def delete_record_by_ref(ref_num: str):
        try:
            record = record_service.get_record_by_ref(kind, g.principal, ref_num, _ref_client_id())
            record_service.delete_record(kind, g.principal, record)
            return jsonify({"message": f"{title} deleted successfully"}), 200
        except StorebooksError as exc:
            return error_response(exc)
        except Exception:
            return internal_error(f"Failed to delete {kind.name}")

    return bp


sales_bp = make_record_blueprint(record_service.SALES)
purchases_bp = make_record_blueprint(record_service.PURCHASES)
expenses_bp = make_record_blueprint(record_service.EXPENSES)
