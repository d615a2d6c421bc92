# Overview: Flask API routes for store-level transactions.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth
from ..errors import StorebooksError
from ..http import error_response, internal_error, json_body
from ..services import transaction_service
from ..validation import parse_date_range


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("/store/<int:store_id>")
@require_auth
def list_store_transactions(store_id: int):
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
        transactions = transaction_service.list_store_transactions(
            g.principal,
            store_id,
            type_=request.args.get("type"),
            start=start,
            end=end,
        )
        return jsonify({"transactions": [t.to_dict() for t in transactions]}), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to list transactions")


@transactions_bp.post("")
@require_auth
def create_transaction():
    try:
        transaction = transaction_service.create_transaction(g.principal, json_body())
        return jsonify({
            "transaction": transaction.to_dict(),
            "message": "Transaction created successfully",
        }), 201
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to create transaction")


@transactions_bp.get("/store/<int:store_id>/summary")
@require_auth
def store_summary(store_id: int):
    try:
        start, end = parse_date_range(request.args.get("startDate"), request.args.get("endDate"))
        summary = transaction_service.store_summary(g.principal, store_id, start=start, end=end)
        return jsonify(summary), 200
    except StorebooksError as exc:
        return error_response(exc)
    except Exception:
        return internal_error("Failed to summarize transactions")
