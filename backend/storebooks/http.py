# Overview: JSON response helpers shared by the API blueprints.

from flask import current_app, jsonify, request

from .errors import StorebooksError, ValidationError


def error_response(exc: StorebooksError):
    """Known error -> ({"error": ...}, status). Details only when exposed."""
    expose = bool(current_app.config.get("EXPOSE_ERROR_DETAILS"))
    return jsonify(exc.to_dict(expose_details=expose)), exc.status_code


def internal_error(message: str):
    """Log the active exception and answer with a generic 500."""
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


def json_body() -> dict:
    """Request body as a dict; a missing or non-object body is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data
