# Overview: Service-layer operations for sales, purchases, and expenses.

"""
Ledger Record Service

Sales, purchases, and expenses share one lifecycle: create (optionally with
an uploaded supporting document), list with filters, get, update, and
hard-delete, by id or by reference number.

MULTI-TENANT: every operation goes through tenant_service. Tenant scope for
new rows comes from the authenticated principal, never from the body.

LISTING: filters are store, case-insensitive substring search over ref_num
and description, and an inclusive date range on the record's own date
column. Results are ordered by date descending (id descending breaks ties)
and paginated for all three kinds.

UPLOADS: the document is uploaded first; if the insert then fails the
object is deleted again (best effort, failures logged).
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from dataclasses import dataclass
from datetime import date

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import Conflict, NotFound, StorebooksError, UpstreamError, ValidationError
from ..extensions import db
from ..models import Sale, Purchase, Expense
from ..validation import (
    SALE_POLICY,
    PURCHASE_POLICY,
    EXPENSE_POLICY,
    ModelValidationPolicy,
    enforce_rules_ledger,
    parse_optional_id,
    validate_payload,
)
from .document_storage import DocumentStorage, build_object_path, content_type_for
from .tenant_service import (
    Principal,
    require_client,
    require_client_access,
    require_record_access,
    require_store_access,
    resolve_write_scope,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordKind:
    """Everything that differs between sales, purchases, and expenses."""
    name: str            # singular JSON key: "sale"
    plural: str          # collection JSON key and bucket: "sales"
    model: type
    policy: ModelValidationPolicy
    ref_prefix: str

    @property
    def date_column(self):
        return getattr(self.model, self.model.date_field)

    @property
    def bucket(self) -> str:
        return self.plural


SALES = RecordKind("sale", "sales", Sale, SALE_POLICY, "SAL")
PURCHASES = RecordKind("purchase", "purchases", Purchase, PURCHASE_POLICY, "PUR")
EXPENSES = RecordKind("expense", "expenses", Expense, EXPENSE_POLICY, "EXP")


@dataclass(frozen=True)
class RecordFilters:
    store_id: int | None = None
    search: str | None = None
    start_date: date | None = None
    end_date: date | None = None


# Request fields that are consumed here rather than written to a column
_NON_COLUMN_FIELDS = ("client_id", "image_base64", "image_filename")


def generate_ref_num(kind: RecordKind) -> str:
    return f"{kind.ref_prefix}-{secrets.token_hex(4).upper()}"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _ensure_unique_ref(kind: RecordKind, client_id: int, ref_num: str, exclude_id: int | None = None) -> None:
    query = db.session.query(kind.model).filter(
        kind.model.client_id == client_id,
        kind.model.ref_num == ref_num,
    )
    if exclude_id is not None:
        query = query.filter(kind.model.id != exclude_id)
    if query.first():
        raise Conflict(f"A {kind.name} with reference number {ref_num} already exists")


def _decode_document(raw: str) -> bytes:
    # Accept data URLs ("data:image/png;base64,....") as well as bare base64
    if raw.startswith("data:") and "," in raw:
        raw = raw.split(",", 1)[1]
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("image_base64 is not valid base64") from None


def _prepare(kind: RecordKind, payload: dict, *, partial: bool) -> tuple[dict, dict]:
    """Split the body into (validated column patch, non-column fields)."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    body = dict(payload)
    extras = {key: body.pop(key) for key in _NON_COLUMN_FIELDS if key in body}
    patch = validate_payload(model=kind.model, payload=body, policy=kind.policy, partial=partial)
    enforce_rules_ledger(patch)
    return patch, extras


def create_record(
    kind: RecordKind,
    principal: Principal,
    payload: dict,
    *,
    storage: DocumentStorage | None = None,
):
    """
    Validate, scope, optionally upload, then insert.

    All validation (including a negative amount) happens before any upload
    or database write.

    Returns (record, image_url or None).
    """
    patch, extras = _prepare(kind, payload, partial=False)

    requested_client_id = parse_optional_id(extras.get("client_id"), "client_id")
    client_id, store = resolve_write_scope(principal, requested_client_id, patch.get("store_id"))

    ref_num = patch.get("ref_num") or generate_ref_num(kind)
    _ensure_unique_ref(kind, client_id, ref_num)

    document = None
    if extras.get("image_base64"):
        if not isinstance(extras["image_base64"], str):
            raise ValidationError("image_base64 must be a string")
        document = _decode_document(extras["image_base64"])
        if storage is None:
            raise UpstreamError("Document storage is not configured")

    object_path = None
    image_url = None
    if document is not None:
        filename = extras.get("image_filename")
        object_path = build_object_path(client_id, store.id if store else None, filename, prefix=kind.name)
        image_url = storage.upload(kind.bucket, object_path, document, content_type_for(filename))

    patch["ref_num"] = ref_num
    record = kind.model(
        client_id=client_id,
        user_id=principal.user_id,
        supp_doc_url=image_url,
        **patch,
    )
    db.session.add(record)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        if object_path is not None:
            _discard_upload(storage, kind.bucket, object_path)
        if isinstance(exc, IntegrityError):
            raise Conflict(f"A {kind.name} with reference number {ref_num} already exists") from None
        raise UpstreamError(f"Failed to create {kind.name}", details={"reason": str(exc)}) from exc

    return record, image_url


def _discard_upload(storage: DocumentStorage, bucket: str, path: str) -> None:
    try:
        storage.delete(bucket, path)
    except StorebooksError:
        logger.warning("Could not remove orphaned upload %s/%s", bucket, path)


def list_records(
    kind: RecordKind,
    principal: Principal,
    client_id: int,
    filters: RecordFilters,
    *,
    page: int = 1,
    page_size: int | None = None,
):
    """
    One page of a client's records plus the total match count.

    Returns (records, count).
    """
    require_client_access(principal, client_id)
    require_client(client_id)

    if filters.store_id is not None:
        store = require_store_access(principal, filters.store_id)
        if store.client_id != client_id:
            raise ValidationError("Store does not belong to this client")

    model = kind.model
    query = db.session.query(model).filter(model.client_id == client_id)

    if filters.store_id is not None:
        query = query.filter(model.store_id == filters.store_id)

    if filters.search:
        pattern = f"%{escape_like(filters.search.strip())}%"
        query = query.filter(
            db.or_(
                model.ref_num.ilike(pattern, escape="\\"),
                model.description.ilike(pattern, escape="\\"),
            )
        )

    if filters.start_date is not None:
        query = query.filter(kind.date_column >= filters.start_date)
    if filters.end_date is not None:
        query = query.filter(kind.date_column <= filters.end_date)

    count = query.count()

    if page_size is None:
        page_size = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    records = (
        query.order_by(kind.date_column.desc(), model.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return records, count


def get_record(kind: RecordKind, principal: Principal, record_id: int):
    record = db.session.get(kind.model, record_id)
    if record is None:
        raise NotFound(f"{kind.name.capitalize()} not found")
    return require_record_access(principal, record, kind.name)


def get_record_by_ref(kind: RecordKind, principal: Principal, ref_num: str, client_id: int | None = None):
    """
    Look up by reference number inside a single client.

    Tenants always search their own client; super_admin must name one.
    """
    if client_id is None:
        if principal.is_super_admin:
            raise ValidationError("clientId is required to look up by reference number")
        client_id = principal.client_id
    require_client_access(principal, client_id)

    record = db.session.query(kind.model).filter(
        kind.model.client_id == client_id,
        kind.model.ref_num == ref_num,
    ).first()
    if record is None:
        raise NotFound(f"{kind.name.capitalize()} not found")
    return record


def update_record(kind: RecordKind, principal: Principal, record, payload: dict):
    """
    Apply a partial update.

    client_id cannot change; a new store must belong to the record's client.
    """
    require_record_access(principal, record, kind.name)
    patch, extras = _prepare(kind, payload, partial=True)

    requested_client_id = parse_optional_id(extras.get("client_id"), "client_id")
    if requested_client_id is not None and requested_client_id != record.client_id:
        raise ValidationError("client_id of an existing record cannot be changed")

    if patch.get("store_id") is not None:
        store = require_store_access(principal, patch["store_id"])
        if store.client_id != record.client_id:
            raise ValidationError("Store does not belong to this client")

    if "ref_num" in patch:
        if not patch["ref_num"]:
            raise ValidationError("ref_num cannot be blank")
        _ensure_unique_ref(kind, record.client_id, patch["ref_num"], exclude_id=record.id)

    for key, value in patch.items():
        setattr(record, key, value)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(f"A {kind.name} with this reference number already exists") from None
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UpstreamError(f"Failed to update {kind.name}", details={"reason": str(exc)}) from exc
    return record


def delete_record(kind: RecordKind, principal: Principal, record) -> None:
    require_record_access(principal, record, kind.name)
    db.session.delete(record)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UpstreamError(f"Failed to delete {kind.name}", details={"reason": str(exc)}) from exc
