# Overview: Flask API routes for reporting; totals and gross income per client.

"""
Query parameters shared by every report:
- clientId: client to report on (defaults to the caller's own; required
  for super admins)
- store_id / storeId: optional store filter, "all" for every store
- startDate / endDate: optional inclusive date range (YYYY-MM-DD)

Amounts are returned as two-place decimal strings.
"""

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth
from ..errors import StorebooksError, ValidationError
from ..http import error_response, internal_error
from ..services import reporting_service
from ..services.reporting_service import ReportScope
from ..services.tenant_service import require_store_access, resolve_read_client
from ..validation import parse_date_range, parse_optional_id, parse_store_filter


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _scope(*, dates_required: bool = False) -> ReportScope:
    client_id = resolve_read_client(
        g.principal,
        parse_optional_id(request.args.get("clientId", request.args.get("client_id")), "clientId"),
    )
    store_id = parse_store_filter(request.args.get("store_id", request.args.get("storeId")))
    if store_id is not None:
        store = require_store_access(g.principal, store_id)
        if store.client_id != client_id:
            raise ValidationError("Store does not belong to this client")
    start, end = parse_date_range(
        request.args.get("startDate"),
        request.args.get("endDate"),
        required=dates_required,
    )
    return ReportScope(client_id=client_id, store_id=store_id, start_date=start, end_date=end)


@reports_bp.get("/total-sales")
@require_auth
def total_sales():
    try:
        total = reporting_service.total_sales(_scope())
        return jsonify(reporting_service.serialize_totals({"totalSales": total})), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to compute total sales")


@reports_bp.get("/total-purchases")
@require_auth
def total_purchases():
    try:
        total = reporting_service.total_purchases(_scope())
        return jsonify(reporting_service.serialize_totals({"totalPurchases": total})), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to compute total purchases")


@reports_bp.get("/total-expenses")
@require_auth
def total_expenses():
    try:
        total = reporting_service.total_expenses(_scope())
        return jsonify(reporting_service.serialize_totals({"totalExpenses": total})), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to compute total expenses")


@reports_bp.get("/gross-income")
@require_auth
def gross_income():
    """startDate and endDate are required here."""
    try:
        totals = reporting_service.gross_income(_scope(dates_required=True))
        return jsonify(reporting_service.serialize_totals(totals)), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to compute gross income")


@reports_bp.get("/summary")
@require_auth
def summary():
    try:
        totals = reporting_service.gross_income(_scope())
        return jsonify(reporting_service.serialize_totals(totals)), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to compute report summary")
