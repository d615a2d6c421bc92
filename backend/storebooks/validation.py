from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import PAYMENT_METHODS, TRANSACTION_TYPES, USER_ROLES, ACCESS_LEVELS
from .time_utils import parse_iso_date


# Numeric(12, 2) holds at most 9,999,999,999.99
MAX_AMOUNT = Decimal("9999999999.99")

# Sentinel accepted by store filters meaning "every store of the client"
ALL_STORES = "all"


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


SALE_POLICY = ModelValidationPolicy(
    writable_fields={"store_id", "ref_num", "description", "payment_method", "amount", "sales_date"},
    required_on_create={"amount", "sales_date"},
)

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={
        "store_id", "ref_num", "description", "payment_method", "amount", "purchase_date",
        "supplier", "category", "other_category",
    },
    required_on_create={"amount", "purchase_date"},
)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={
        "store_id", "ref_num", "description", "payment_method", "amount", "expense_date", "paid_to",
    },
    required_on_create={"amount", "expense_date"},
)

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact_email", "contact_phone", "address", "is_active"},
    required_on_create={"name"},
)

STORE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location"},
    required_on_create={"name"},
)

TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={"store_id", "type", "amount", "category", "description"},
    required_on_create={"store_id", "type", "amount", "category"},
)

ROLE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "role_type", "description", "is_active"},
    required_on_create={"name", "role_type"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer") from None
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Money input -> Decimal with two places.

    Accepts JSON numbers and numeric strings. Floats go through str() so
    100.1 stays 100.1 rather than its binary expansion.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number") from None
    else:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount.as_tuple().exponent < -2:
        raise ValidationError(f"{field} must have at most 2 decimal places")
    # Out-of-range values would overflow quantize's precision
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")
    return amount.quantize(Decimal("0.01"))


def coerce_date(value: Any, field: str) -> date:
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)") from None
    if parsed is None:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)")
    return parsed


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Numeric):
        return coerce_amount(value, col.key)

    if isinstance(coltype, Date):
        return coerce_date(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_ledger(patch: dict) -> None:
    """
    Business rules for sales, purchases, and expenses that column metadata
    does not capture.
    """
    if "amount" in patch:
        amount = patch["amount"]
        if amount is None:
            raise ValidationError("amount cannot be null")
        if amount < 0:
            raise ValidationError("amount must be a non-negative number")
        if amount > MAX_AMOUNT:
            raise ValidationError(f"amount cannot exceed {MAX_AMOUNT}")

    method = patch.get("payment_method")
    if method is not None:
        method = method.lower()
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        patch["payment_method"] = method

    if patch.get("ref_num") == "":
        raise ValidationError("ref_num cannot be blank")


def enforce_rules_transaction(patch: dict) -> None:
    if "type" in patch and patch["type"] not in TRANSACTION_TYPES:
        raise ValidationError("Invalid transaction type")
    if "amount" in patch:
        if patch["amount"] <= 0:
            raise ValidationError("amount must be greater than zero")
        if patch["amount"] > MAX_AMOUNT:
            raise ValidationError(f"amount cannot exceed {MAX_AMOUNT}")


def enforce_rules_role(patch: dict) -> None:
    if "role_type" in patch and patch["role_type"] not in USER_ROLES:
        raise ValidationError(f"role_type must be one of: {', '.join(USER_ROLES)}")


def validate_user_role(role: Any) -> str:
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")
    return role


def validate_access_level(level: Any) -> str:
    if level not in ACCESS_LEVELS:
        raise ValidationError(f"accessLevel must be one of: {', '.join(ACCESS_LEVELS)}")
    return level


def require_fields(payload: dict, *fields: str) -> None:
    """Presence check for endpoints that are not backed by a single model."""
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_optional_id(value: Any, field: str) -> int | None:
    if value in (None, ""):
        return None
    return coerce_int(value, field)


def parse_store_filter(value: Any) -> int | None:
    """None, "" and "all" mean no store filter."""
    if value in (None, "") or value == ALL_STORES:
        return None
    return coerce_int(value, "storeId")


def parse_date_range(start_raw: Any, end_raw: Any, *, required: bool = False) -> tuple[date | None, date | None]:
    """Inclusive [start, end] date range from query strings."""
    if required and (not start_raw or not end_raw):
        raise ValidationError("startDate and endDate are required")
    start = coerce_date(start_raw, "startDate") if start_raw else None
    end = coerce_date(end_raw, "endDate") if end_raw else None
    if start and end and start > end:
        raise ValidationError("startDate must be on or before endDate")
    return start, end


def parse_pagination(page_raw: Any, size_raw: Any, *, default_size: int, max_size: int) -> tuple[int, int]:
    """
    page is 1-based; pageSize is clamped to max_size.

    Missing values fall back to page 1 and default_size.
    """
    page = coerce_int(page_raw, "page") if page_raw not in (None, "") else 1
    size = coerce_int(size_raw, "pageSize") if size_raw not in (None, "") else default_size
    if page < 1:
        raise ValidationError("page must be >= 1")
    if size < 1:
        raise ValidationError("pageSize must be >= 1")
    return page, min(size, max_size)
