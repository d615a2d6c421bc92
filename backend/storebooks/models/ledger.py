from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import declared_attr

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


PAYMENT_METHODS = ("cash", "card", "transfer", "check", "other")

TRANSACTION_TYPES = ("sale", "purchase", "expense")


def format_amount(value: Decimal | None) -> str | None:
    """Money is serialized as a fixed two-place string, never a float."""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal("0.01")))


class LedgerRecordMixin:
    """
    Columns shared by sales, purchases, and expenses.

    MULTI-TENANT: client_id is required; store_id is optional but, when set,
    must reference a store of the same client (enforced in tenant_service).

    ref_num is the human-assigned reference used for lookup, update, and
    delete. It is unique per client.
    """
    id = db.Column(db.Integer, primary_key=True)

    @declared_attr
    def client_id(cls):
        return db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)

    @declared_attr
    def store_id(cls):
        return db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    ref_num = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    payment_method = db.Column(db.String(16), nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Public URL of the supporting document, if one was uploaded
    supp_doc_url = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @declared_attr
    def store(cls):
        return db.relationship("Store")

    # Name of the entity-specific date column, set by subclasses
    date_field = ""

    @property
    def record_date(self):
        return getattr(self, self.date_field)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "client_id": self.client_id,
            "store_id": self.store_id,
            "store_name": self.store.name if self.store is not None else None,
            "user_id": self.user_id,
            "ref_num": self.ref_num,
            "description": self.description,
            "payment_method": self.payment_method,
            "amount": format_amount(self.amount),
            self.date_field: to_iso_date(self.record_date),
            "supp_doc_url": self.supp_doc_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        data.update(self._extra_dict())
        return data

    def _extra_dict(self) -> dict:
        return {}


class Sale(LedgerRecordMixin, db.Model):
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("client_id", "ref_num", name="uq_sales_client_ref_num"),
        db.Index("ix_sales_client_date", "client_id", "sales_date"),
        {"sqlite_autoincrement": True},
    )

    date_field = "sales_date"

    sales_date = db.Column(db.Date, nullable=False)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} ref_num={self.ref_num!r} client_id={self.client_id}>"


class Purchase(LedgerRecordMixin, db.Model):
    __tablename__ = "purchases"
    __table_args__ = (
        db.UniqueConstraint("client_id", "ref_num", name="uq_purchases_client_ref_num"),
        db.Index("ix_purchases_client_date", "client_id", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    date_field = "purchase_date"

    purchase_date = db.Column(db.Date, nullable=False)
    supplier = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(120), nullable=True)
    # Free-text category when category == "Others"
    other_category = db.Column(db.String(120), nullable=True)

    def __repr__(self) -> str:
        return f"<Purchase id={self.id} ref_num={self.ref_num!r} client_id={self.client_id}>"

    def _extra_dict(self) -> dict:
        return {
            "supplier": self.supplier,
            "category": self.category,
            "other_category": self.other_category,
        }


class Expense(LedgerRecordMixin, db.Model):
    __tablename__ = "expenses"
    __table_args__ = (
        db.UniqueConstraint("client_id", "ref_num", name="uq_expenses_client_ref_num"),
        db.Index("ix_expenses_client_date", "client_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    date_field = "expense_date"

    expense_date = db.Column(db.Date, nullable=False)
    paid_to = db.Column(db.String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Expense id={self.id} ref_num={self.ref_num!r} client_id={self.client_id}>"

    def _extra_dict(self) -> dict:
        return {"paid_to": self.paid_to}


class Transaction(db.Model):
    """
    Store-scoped generic money movement (sale, purchase, or expense).

    Tenant scope is derived through the store; there is no client_id column.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_store_created", "store_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True, default="")
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "type": self.type,
            "amount": format_amount(self.amount),
            "category": self.category,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
