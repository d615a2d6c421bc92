"""Tests for store-level transactions and their summary."""

from decimal import Decimal

from storebooks.models import Transaction


def _post(client, headers, store, type_, amount, category="General"):
    return client.post("/api/transactions", json={
        "store_id": store.id,
        "type": type_,
        "amount": amount,
        "category": category,
    }, headers=headers)


class TestCreateTransaction:

    def test_create(self, client, user_a, user_a_headers, store_a):
        resp = _post(client, user_a_headers, store_a, "sale", "25.50", category="Retail")
        assert resp.status_code == 201
        body = resp.get_json()["transaction"]
        assert body["store_id"] == store_a.id
        assert body["type"] == "sale"
        assert body["amount"] == "25.50"
        assert body["description"] == ""
        assert body["created_by"] == user_a.id

    def test_invalid_type(self, client, user_a_headers, store_a):
        resp = _post(client, user_a_headers, store_a, "refund", "1.00")
        assert resp.status_code == 400
        assert Transaction.query.count() == 0

    def test_amount_must_be_positive(self, client, user_a_headers, store_a):
        assert _post(client, user_a_headers, store_a, "sale", "0").status_code == 400
        assert _post(client, user_a_headers, store_a, "sale", "-3.00").status_code == 400

    def test_missing_category(self, client, user_a_headers, store_a):
        resp = client.post("/api/transactions", json={
            "store_id": store_a.id, "type": "sale", "amount": "1.00",
        }, headers=user_a_headers)
        assert resp.status_code == 400

    def test_foreign_store_forbidden(self, client, user_a_headers, store_b):
        resp = _post(client, user_a_headers, store_b, "sale", "1.00")
        assert resp.status_code == 403
        assert Transaction.query.count() == 0


class TestListAndSummary:

    def test_list_filters_by_type(self, client, user_a_headers, store_a):
        _post(client, user_a_headers, store_a, "sale", "10.00")
        _post(client, user_a_headers, store_a, "expense", "3.00")

        resp = client.get(f"/api/transactions/store/{store_a.id}?type=expense", headers=user_a_headers)
        assert resp.status_code == 200
        assert [t["type"] for t in resp.get_json()["transactions"]] == ["expense"]

        # Unknown types do not filter
        resp = client.get(f"/api/transactions/store/{store_a.id}?type=bogus", headers=user_a_headers)
        assert len(resp.get_json()["transactions"]) == 2

    def test_list_other_store_forbidden(self, client, user_a_headers, store_b):
        resp = client.get(f"/api/transactions/store/{store_b.id}", headers=user_a_headers)
        assert resp.status_code == 403

    def test_summary(self, client, user_a_headers, store_a, store_a2):
        _post(client, user_a_headers, store_a, "sale", "100.00")
        _post(client, user_a_headers, store_a, "sale", "20.05")
        _post(client, user_a_headers, store_a, "purchase", "40.00")
        _post(client, user_a_headers, store_a, "expense", "10.00")
        _post(client, user_a_headers, store_a2, "sale", "999.00")

        resp = client.get(f"/api/transactions/store/{store_a.id}/summary", headers=user_a_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["summary"] == {
            "totalSales": "120.05",
            "totalPurchases": "40.00",
            "totalExpenses": "10.00",
            "netTotal": "70.05",
        }
        assert body["transactionCount"] == 4
        assert Decimal(body["summary"]["netTotal"]) == Decimal("120.05") - Decimal("50.00")

    def test_empty_summary(self, client, user_a_headers, store_a):
        resp = client.get(f"/api/transactions/store/{store_a.id}/summary", headers=user_a_headers)
        assert resp.get_json()["summary"]["netTotal"] == "0.00"
        assert resp.get_json()["transactionCount"] == 0

    def test_missing_store(self, client, user_a_headers, db_session):
        resp = client.get("/api/transactions/store/99999/summary", headers=user_a_headers)
        assert resp.status_code == 404
