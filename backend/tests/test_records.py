"""
Tests for sales, purchases, and expenses.

Verifies:
- Creation scopes the record to the caller's client and generates a ref_num
- Invalid input is rejected before anything is stored or uploaded
- Listing filters, ordering, and pagination
- Update and delete by id and by reference number
- Supporting document upload, and cleanup when the insert fails
"""

import base64
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from storebooks.extensions import db
from storebooks.models import Expense, Purchase, Sale
from storebooks.services.record_service import SALES, escape_like, generate_ref_num


def _add(db_session, model, tenant, *, ref_num, amount, on, store=None, description=None):
    record = model(
        client_id=tenant.id,
        store_id=store.id if store else None,
        ref_num=ref_num,
        amount=Decimal(amount),
        description=description,
        **{model.date_field: on},
    )
    db_session.add(record)
    db_session.commit()
    return record


# =============================================================================
# CREATE
# =============================================================================


class TestCreateRecord:

    def test_create_sale(self, client, user_a_headers, user_a, tenant_a, store_a):
        resp = client.post("/api/sales", json={
            "store_id": store_a.id,
            "amount": "100.50",
            "sales_date": "2024-03-01",
            "payment_method": "Card",
            "description": "Walk-in",
        }, headers=user_a_headers)

        assert resp.status_code == 201
        body = resp.get_json()
        sale = body["sale"]
        assert sale["client_id"] == tenant_a.id
        assert sale["store_id"] == store_a.id
        assert sale["store_name"] == "Acme Main"
        assert sale["user_id"] == user_a.id
        assert sale["amount"] == "100.50"
        assert sale["sales_date"] == "2024-03-01"
        assert sale["payment_method"] == "card"
        assert sale["ref_num"].startswith("SAL-")
        assert body["image_url"] is None
        assert body["message"] == "Sale recorded successfully"

    def test_explicit_ref_num_kept(self, client, user_a_headers):
        resp = client.post("/api/expenses", json={
            "ref_num": "RENT-2024-03",
            "amount": 1200,
            "expense_date": "2024-03-01",
            "paid_to": "Landlord",
        }, headers=user_a_headers)
        assert resp.status_code == 201
        expense = resp.get_json()["expense"]
        assert expense["ref_num"] == "RENT-2024-03"
        assert expense["amount"] == "1200.00"
        assert expense["paid_to"] == "Landlord"

    def test_duplicate_ref_num_conflict(self, client, db_session, user_a_headers, tenant_a):
        _add(db_session, Sale, tenant_a, ref_num="INV-7", amount="5.00", on=date(2024, 1, 1))
        resp = client.post("/api/sales", json={
            "ref_num": "INV-7",
            "amount": "10.00",
            "sales_date": "2024-01-02",
        }, headers=user_a_headers)
        assert resp.status_code == 409
        assert Sale.query.count() == 1

    def test_negative_purchase_rejected_before_persistence(self, client, user_a_headers, storage):
        resp = client.post("/api/purchases", json={
            "amount": "-5.00",
            "purchase_date": "2024-03-01",
            "image_base64": base64.b64encode(b"receipt").decode(),
            "image_filename": "receipt.png",
        }, headers=user_a_headers)

        assert resp.status_code == 400
        assert "non-negative" in resp.get_json()["error"]
        assert Purchase.query.count() == 0
        assert storage.objects == {}

    @pytest.mark.parametrize("payload,fragment", [
        ({"sales_date": "2024-03-01"}, "Missing required fields: amount"),
        ({"amount": "10.00"}, "Missing required fields: sales_date"),
        ({"amount": "abc", "sales_date": "2024-03-01"}, "amount must be a number"),
        ({"amount": "10.001", "sales_date": "2024-03-01"}, "at most 2 decimal places"),
        ({"amount": "1e30", "sales_date": "2024-03-01"}, "amount cannot exceed"),
        ({"amount": "10.00", "sales_date": "03/01/2024"}, "sales_date must be a date"),
        ({"amount": "10.00", "sales_date": "2024-03-01", "payment_method": "barter"}, "payment_method"),
        ({"amount": "10.00", "sales_date": "2024-03-01", "supp_doc_url": "http://x"}, "Field not allowed"),
    ])
    def test_invalid_sale_payloads(self, client, user_a_headers, payload, fragment):
        resp = client.post("/api/sales", json=payload, headers=user_a_headers)
        assert resp.status_code == 400
        assert fragment in resp.get_json()["error"]
        assert Sale.query.count() == 0

    def test_super_admin_must_name_client_or_store(self, client, super_headers):
        resp = client.post("/api/sales", json={"amount": "1.00", "sales_date": "2024-03-01"}, headers=super_headers)
        assert resp.status_code == 400

    def test_super_admin_creates_for_store(self, client, super_headers, tenant_b, store_b):
        resp = client.post("/api/sales", json={
            "store_id": store_b.id,
            "amount": "1.00",
            "sales_date": "2024-03-01",
        }, headers=super_headers)
        assert resp.status_code == 201
        assert resp.get_json()["sale"]["client_id"] == tenant_b.id


# =============================================================================
# UPLOADS
# =============================================================================


class TestDocumentUpload:

    def test_upload_sets_document_url(self, client, user_a_headers, tenant_a, store_a, storage):
        data = b"%PDF-1.4 receipt"
        resp = client.post("/api/sales", json={
            "store_id": store_a.id,
            "amount": "15.00",
            "sales_date": "2024-03-01",
            "image_base64": "data:application/pdf;base64," + base64.b64encode(data).decode(),
            "image_filename": "../../receipt.pdf",
        }, headers=user_a_headers)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["image_url"] == body["sale"]["supp_doc_url"]
        assert body["image_url"].startswith(f"https://files.example.test/sales/{tenant_a.id}/{store_a.id}/")
        assert body["image_url"].endswith("_receipt.pdf")

        [(bucket, path)] = storage.objects.keys()
        assert bucket == "sales"
        assert storage.objects[(bucket, path)] == (data, "application/pdf")

    def test_invalid_base64_rejected(self, client, user_a_headers, storage):
        resp = client.post("/api/expenses", json={
            "amount": "15.00",
            "expense_date": "2024-03-01",
            "image_base64": "not base64!!",
        }, headers=user_a_headers)
        assert resp.status_code == 400
        assert storage.objects == {}
        assert Expense.query.count() == 0

    def test_upload_failure_stores_nothing(self, client, user_a_headers, storage):
        storage.fail_uploads = True
        resp = client.post("/api/sales", json={
            "amount": "15.00",
            "sales_date": "2024-03-01",
            "image_base64": base64.b64encode(b"x").decode(),
            "image_filename": "x.png",
        }, headers=user_a_headers)
        assert resp.status_code == 500
        assert Sale.query.count() == 0

    def test_failed_insert_removes_upload(self, client, user_a_headers, storage, monkeypatch):
        def failing_commit():
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(db.session, "commit", failing_commit)
        resp = client.post("/api/sales", json={
            "amount": "15.00",
            "sales_date": "2024-03-01",
            "image_base64": base64.b64encode(b"img").decode(),
            "image_filename": "photo.png",
        }, headers=user_a_headers)
        monkeypatch.undo()

        assert resp.status_code == 500
        assert len(storage.deleted) == 1
        assert storage.deleted[0][0] == "sales"
        assert storage.objects == {}
        assert Sale.query.count() == 0


# =============================================================================
# LIST
# =============================================================================


class TestListRecords:

    @pytest.fixture
    def sales(self, db_session, tenant_a, tenant_b, store_a, store_a2, store_b):
        return [
            _add(db_session, Sale, tenant_a, ref_num="A-100", amount="10.00", on=date(2024, 1, 5),
                 store=store_a, description="Morning shift"),
            _add(db_session, Sale, tenant_a, ref_num="A-101", amount="20.00", on=date(2024, 1, 20),
                 store=store_a2, description="50% off promo"),
            _add(db_session, Sale, tenant_a, ref_num="A-102", amount="30.00", on=date(2024, 1, 31),
                 store=store_a, description="Evening shift"),
            _add(db_session, Sale, tenant_a, ref_num="A-103", amount="40.00", on=date(2024, 2, 1),
                 store=store_a),
            _add(db_session, Sale, tenant_b, ref_num="B-100", amount="99.00", on=date(2024, 1, 10),
                 store=store_b),
        ]

    def _list(self, client, headers, tenant, **params):
        resp = client.get(f"/api/sales/client/{tenant.id}", query_string=params, headers=headers)
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()

    def test_newest_first_and_own_client_only(self, client, user_a_headers, tenant_a, sales):
        body = self._list(client, user_a_headers, tenant_a)
        assert [s["ref_num"] for s in body["sales"]] == ["A-103", "A-102", "A-101", "A-100"]
        assert body["count"] == 4
        assert body["page"] == 1
        assert body["pageSize"] == 10

    def test_store_filter(self, client, user_a_headers, tenant_a, store_a2, sales):
        body = self._list(client, user_a_headers, tenant_a, storeId=store_a2.id)
        assert [s["ref_num"] for s in body["sales"]] == ["A-101"]
        assert body["sales"][0]["store_name"] == "Acme Outlet"

        body = self._list(client, user_a_headers, tenant_a, store_id="all")
        assert body["count"] == 4

    def test_date_range_is_inclusive(self, client, user_a_headers, tenant_a, sales):
        body = self._list(client, user_a_headers, tenant_a, startDate="2024-01-05", endDate="2024-01-31")
        assert [s["ref_num"] for s in body["sales"]] == ["A-102", "A-101", "A-100"]

    def test_inverted_date_range_rejected(self, client, user_a_headers, tenant_a, sales):
        resp = client.get(
            f"/api/sales/client/{tenant_a.id}?startDate=2024-02-01&endDate=2024-01-01",
            headers=user_a_headers,
        )
        assert resp.status_code == 400

    def test_search_matches_ref_and_description(self, client, user_a_headers, tenant_a, sales):
        body = self._list(client, user_a_headers, tenant_a, search="SHIFT")
        assert {s["ref_num"] for s in body["sales"]} == {"A-100", "A-102"}

        body = self._list(client, user_a_headers, tenant_a, search="a-103")
        assert [s["ref_num"] for s in body["sales"]] == ["A-103"]

    def test_search_wildcards_are_literal(self, client, user_a_headers, tenant_a, sales):
        body = self._list(client, user_a_headers, tenant_a, search="%")
        assert [s["ref_num"] for s in body["sales"]] == ["A-101"]

        body = self._list(client, user_a_headers, tenant_a, search="_")
        assert body["count"] == 0

    def test_pagination(self, client, user_a_headers, tenant_a, sales):
        first = self._list(client, user_a_headers, tenant_a, page=1, pageSize=3)
        second = self._list(client, user_a_headers, tenant_a, page=2, pageSize=3)
        assert [s["ref_num"] for s in first["sales"]] == ["A-103", "A-102", "A-101"]
        assert [s["ref_num"] for s in second["sales"]] == ["A-100"]
        assert first["count"] == second["count"] == 4

    def test_page_size_clamped(self, client, app, user_a_headers, tenant_a, sales):
        body = self._list(client, user_a_headers, tenant_a, pageSize=100000)
        assert body["pageSize"] == app.config["MAX_PAGE_SIZE"]

    def test_bad_page_rejected(self, client, user_a_headers, tenant_a, sales):
        resp = client.get(f"/api/sales/client/{tenant_a.id}?page=0", headers=user_a_headers)
        assert resp.status_code == 400

    def test_expenses_are_paginated_too(self, client, db_session, user_a_headers, tenant_a):
        for day in range(1, 6):
            _add(db_session, Expense, tenant_a, ref_num=f"E-{day}", amount="1.00", on=date(2024, 4, day))
        resp = client.get(f"/api/expenses/client/{tenant_a.id}?pageSize=2", headers=user_a_headers)
        body = resp.get_json()
        assert [e["ref_num"] for e in body["expenses"]] == ["E-5", "E-4"]
        assert body["count"] == 5

    def test_unknown_client_not_found(self, client, super_headers, db_session):
        resp = client.get("/api/sales/client/424242", headers=super_headers)
        assert resp.status_code == 404


# =============================================================================
# UPDATE / DELETE
# =============================================================================


class TestUpdateDelete:

    def test_update_by_id(self, client, db_session, user_a_headers, tenant_a, store_a2):
        sale = _add(db_session, Sale, tenant_a, ref_num="U-1", amount="10.00", on=date(2024, 1, 1))
        resp = client.put(f"/api/sales/{sale.id}", json={
            "amount": "12.34",
            "store_id": store_a2.id,
        }, headers=user_a_headers)
        assert resp.status_code == 200
        body = resp.get_json()["sale"]
        assert body["amount"] == "12.34"
        assert body["store_id"] == store_a2.id
        assert body["ref_num"] == "U-1"

    def test_update_by_ref(self, client, db_session, user_a_headers, tenant_a):
        _add(db_session, Purchase, tenant_a, ref_num="P-1", amount="10.00", on=date(2024, 1, 1))
        resp = client.put("/api/purchases/ref/P-1", json={"supplier": "Wholesale Co"}, headers=user_a_headers)
        assert resp.status_code == 200
        assert resp.get_json()["purchase"]["supplier"] == "Wholesale Co"

    def test_update_rejects_negative_amount(self, client, db_session, user_a_headers, tenant_a):
        sale = _add(db_session, Sale, tenant_a, ref_num="U-2", amount="10.00", on=date(2024, 1, 1))
        resp = client.put(f"/api/sales/{sale.id}", json={"amount": "-1"}, headers=user_a_headers)
        assert resp.status_code == 400
        db_session.refresh(sale)
        assert sale.amount == Decimal("10.00")

    def test_update_to_taken_ref_conflict(self, client, db_session, user_a_headers, tenant_a):
        _add(db_session, Sale, tenant_a, ref_num="R-1", amount="1.00", on=date(2024, 1, 1))
        second = _add(db_session, Sale, tenant_a, ref_num="R-2", amount="1.00", on=date(2024, 1, 1))
        resp = client.put(f"/api/sales/{second.id}", json={"ref_num": "R-1"}, headers=user_a_headers)
        assert resp.status_code == 409

    def test_update_cannot_move_client(self, client, db_session, user_a_headers, tenant_a, tenant_b):
        sale = _add(db_session, Sale, tenant_a, ref_num="M-1", amount="1.00", on=date(2024, 1, 1))
        resp = client.put(f"/api/sales/{sale.id}", json={"client_id": tenant_b.id}, headers=user_a_headers)
        assert resp.status_code == 400

    def test_delete_by_id_and_ref(self, client, db_session, user_a_headers, tenant_a):
        first = _add(db_session, Expense, tenant_a, ref_num="D-1", amount="1.00", on=date(2024, 1, 1))
        _add(db_session, Expense, tenant_a, ref_num="D-2", amount="1.00", on=date(2024, 1, 1))

        assert client.delete(f"/api/expenses/{first.id}", headers=user_a_headers).status_code == 200
        assert client.delete("/api/expenses/ref/D-2", headers=user_a_headers).status_code == 200
        assert Expense.query.count() == 0

    def test_missing_record_not_found(self, client, user_a_headers):
        assert client.get("/api/sales/999999", headers=user_a_headers).status_code == 404
        assert client.get("/api/sales/ref/NOPE", headers=user_a_headers).status_code == 404

    def test_super_admin_ref_lookup_needs_client(self, client, db_session, super_headers, tenant_b):
        _add(db_session, Sale, tenant_b, ref_num="SA-1", amount="1.00", on=date(2024, 1, 1))
        assert client.get("/api/sales/ref/SA-1", headers=super_headers).status_code == 400
        resp = client.get(f"/api/sales/ref/SA-1?clientId={tenant_b.id}", headers=super_headers)
        assert resp.status_code == 200


class TestHelpers:

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_generate_ref_num(self):
        ref = generate_ref_num(SALES)
        assert ref.startswith("SAL-")
        assert len(ref) == 12
        assert generate_ref_num(SALES) != ref
