# Overview: Error taxonomy shared by services and routes.

"""
Every failure a handler can report maps to exactly one of these classes.

Routes catch StorebooksError and answer with `error.to_dict()` and
`error.status_code`; anything else is logged and answered with a generic 500.
"""

from __future__ import annotations


class StorebooksError(Exception):
    """Base class for errors that translate to an HTTP response."""

    status_code = 500

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, *, expose_details: bool = True) -> dict:
        body = {"error": self.message}
        if self.details and expose_details:
            body["details"] = self.details
        return body


class ValidationError(StorebooksError):
    """400-level input problem (missing or malformed fields)."""

    status_code = 400


class Unauthorized(StorebooksError):
    """401: missing, invalid, or expired credentials."""

    status_code = 401


class AccessDenied(StorebooksError):
    """403: authenticated principal may not touch this tenant's data."""

    status_code = 403


class NotFound(StorebooksError):
    """404: client, store, user, or record absent."""

    status_code = 404


class Conflict(StorebooksError):
    """409: duplicate unique field (username, email, ref_num, role name)."""

    status_code = 409


class UpstreamError(StorebooksError):
    """500: database or object-storage failure."""

    status_code = 500

    def to_dict(self, *, expose_details: bool = True) -> dict:
        # Upstream messages can leak infrastructure details.
        if not expose_details:
            return {"error": "Internal server error"}
        return super().to_dict(expose_details=True)
