"""
Authentication tests.

Verifies:
- Login per client by username or email, issuing an HS256 token
- Unknown accounts and wrong passwords are indistinguishable
- Token verification rejects expired, forged, and orphaned tokens
- Self-registration is off unless enabled
- Password strength rules
"""

from datetime import timedelta, timezone

import pytest
from jose import jwt

from storebooks.extensions import db
from storebooks.models import SecurityEvent, User
from storebooks.services import token_service
from storebooks.services.auth_service import (
    PasswordValidationError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from storebooks.time_utils import utcnow

from conftest import PASSWORD, auth_headers, get_auth_token


class TestValidateClient:

    def test_existing_client(self, client, tenant_a):
        resp = client.post("/api/auth/validate-client", json={"client_id": tenant_a.id})
        assert resp.status_code == 200
        assert resp.get_json() == {"client": {"id": tenant_a.id, "name": "Acme Corp"}, "valid": True}

    def test_unknown_client(self, client, db_session):
        resp = client.post("/api/auth/validate-client", json={"client_id": 4242})
        assert resp.status_code == 404

    def test_inactive_client_hidden(self, client, db_session, tenant_a):
        tenant_a.is_active = False
        db_session.commit()
        resp = client.post("/api/auth/validate-client", json={"client_id": tenant_a.id})
        assert resp.status_code == 404

    def test_missing_client_id(self, client, db_session):
        resp = client.post("/api/auth/validate-client", json={})
        assert resp.status_code == 400


class TestLogin:

    def test_login_success(self, client, app, user_a, tenant_a):
        resp = client.post("/api/auth/login", json={
            "client_id": tenant_a.id,
            "username": "user_a",
            "password": PASSWORD,
        })
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == user_a.id
        assert "password_hash" not in body["user"]

        claims = jwt.decode(body["token"], app.config["JWT_SECRET_KEY"], algorithms=["HS256"])
        assert claims["sub"] == str(user_a.id)
        assert claims["user"] == {
            "id": user_a.id,
            "email": "user_a@example.test",
            "role": "client_user",
            "client_id": tenant_a.id,
        }
        assert claims["exp"] - claims["iat"] == 24 * 3600

    def test_login_by_email_updates_last_login(self, client, db_session, user_a, tenant_a):
        assert get_auth_token(client, tenant_a.id, "USER_A@example.test") is not None

        resp = client.post("/api/auth/login", json={
            "client_id": tenant_a.id,
            "email": "USER_A@example.test",
            "password": PASSWORD,
        })
        assert resp.status_code == 200
        db_session.refresh(user_a)
        assert user_a.last_login_at is not None

    def test_wrong_password_and_unknown_user_look_the_same(self, client, user_a, tenant_a):
        wrong = client.post("/api/auth/login", json={
            "client_id": tenant_a.id, "username": "user_a", "password": "Wrong123!",
        })
        unknown = client.post("/api/auth/login", json={
            "client_id": tenant_a.id, "username": "ghost", "password": "Wrong123!",
        })
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json() == {"error": "Invalid credentials"}

    def test_failed_login_logged(self, client, db_session, user_a, tenant_a):
        client.post("/api/auth/login", json={
            "client_id": tenant_a.id, "username": "user_a", "password": "Wrong123!",
        })
        event = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").one()
        assert event.client_id == tenant_a.id
        assert event.user_id == user_a.id

    def test_user_of_other_client_cannot_login(self, client, user_b, tenant_a):
        assert get_auth_token(client, tenant_a.id, "user_b") is None

    def test_unknown_client(self, client, db_session):
        resp = client.post("/api/auth/login", json={
            "client_id": 4242, "username": "user_a", "password": PASSWORD,
        })
        assert resp.status_code == 404

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"username": "user_a"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("overrides", [
        {"password": 12345678},
        {"username": ["user_a"]},
        {"username": {"$ne": ""}},
    ])
    def test_non_string_credentials_rejected(self, client, user_a, tenant_a, overrides):
        body = {"client_id": tenant_a.id, "username": "user_a", "password": PASSWORD}
        body.update(overrides)
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "username and password must be strings"


class TestTokens:

    def test_me(self, client, user_a, user_a_headers):
        resp = client.get("/api/auth/me", headers=user_a_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["username"] == "user_a"

    def test_expired_token(self, client, app, user_a):
        issued = utcnow().replace(tzinfo=timezone.utc) - timedelta(hours=25)
        token = jwt.encode(
            {"sub": str(user_a.id), "iat": issued, "exp": issued + timedelta(hours=24)},
            app.config["JWT_SECRET_KEY"],
            algorithm="HS256",
        )
        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Token has expired"

    def test_forged_token(self, client, user_a):
        token = jwt.encode({"sub": str(user_a.id)}, "not-the-secret", algorithm="HS256")
        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_deleted_user_token(self, client, db_session, user_a, user_a_headers):
        db_session.delete(user_a)
        db_session.commit()
        resp = client.get("/api/auth/me", headers=user_a_headers)
        assert resp.status_code == 401

    def test_role_change_takes_effect_immediately(self, client, db_session, user_a, user_a_headers):
        """Tokens carry a snapshot; authorization uses the current row."""
        assert client.get("/api/users", headers=user_a_headers).status_code == 403
        user_a.role = "admin"
        db_session.commit()
        assert client.get("/api/users", headers=user_a_headers).status_code == 200

    def test_verify_token_returns_user(self, app, user_a):
        token = token_service.issue_token(user_a)
        assert token_service.verify_token(token).id == user_a.id


class TestRegister:

    def test_disabled_by_default(self, client, db_session, tenant_a):
        resp = client.post("/api/auth/register", json={
            "client_id": tenant_a.id,
            "username": "newbie",
            "email": "newbie@acme.test",
            "password": PASSWORD,
        })
        assert resp.status_code == 403
        assert User.query.filter_by(username="newbie").count() == 0
        assert db_session.query(SecurityEvent).filter_by(event_type="SELF_REGISTRATION_DENIED").count() == 1

    def test_enabled_creates_client_user(self, client, app, db_session, tenant_a, monkeypatch):
        monkeypatch.setitem(app.config, "ALLOW_SELF_REGISTRATION", True)
        resp = client.post("/api/auth/register", json={
            "client_id": tenant_a.id,
            "username": "newbie",
            "email": "Newbie@Acme.test",
            "password": PASSWORD,
            "role": "super_admin",
        })
        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["role"] == "client_user"
        assert user["email"] == "newbie@acme.test"

    def test_duplicate_username_in_client(self, client, app, user_a, tenant_a, monkeypatch):
        monkeypatch.setitem(app.config, "ALLOW_SELF_REGISTRATION", True)
        resp = client.post("/api/auth/register", json={
            "client_id": tenant_a.id,
            "username": "user_a",
            "email": "other@acme.test",
            "password": PASSWORD,
        })
        assert resp.status_code == 409

    def test_non_string_username(self, client, app, tenant_a, monkeypatch):
        monkeypatch.setitem(app.config, "ALLOW_SELF_REGISTRATION", True)
        resp = client.post("/api/auth/register", json={
            "client_id": tenant_a.id,
            "username": ["newbie"],
            "email": "newbie@acme.test",
            "password": PASSWORD,
        })
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "username and email must be strings"

    def test_weak_password(self, client, app, tenant_a, monkeypatch):
        monkeypatch.setitem(app.config, "ALLOW_SELF_REGISTRATION", True)
        resp = client.post("/api/auth/register", json={
            "client_id": tenant_a.id,
            "username": "weak",
            "email": "weak@acme.test",
            "password": "password",
        })
        assert resp.status_code == 400


class TestPasswords:

    @pytest.mark.parametrize("password", [
        "Sh0rt!",
        "alllowercase1!",
        "ALLUPPERCASE1!",
        "NoDigitsHere!",
        "NoSpecial123",
    ])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            validate_password_strength(password)

    def test_hash_and_verify(self, app):
        hashed = hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert verify_password(PASSWORD, hashed)
        assert not verify_password("Wrong123!", hashed)

    def test_missing_or_malformed_hash_never_matches(self, app):
        assert verify_password(PASSWORD, None) is False
        assert verify_password(PASSWORD, "not-a-bcrypt-hash") is False

    def test_hash_not_stored_in_plaintext(self, db_session, user_a):
        row = db.session.get(User, user_a.id)
        assert row.password_hash.startswith("$2")
