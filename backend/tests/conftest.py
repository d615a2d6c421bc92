"""
Pytest fixtures for storebooks backend tests.

Provides the application (TestingConfig, in-memory SQLite, fake document
storage), a per-test table wipe, two tenants with a store each, users of
every role, and token helpers.
"""

import pytest

from storebooks import create_app
from storebooks.config import TestingConfig
from storebooks.extensions import db
from storebooks.models import Client, Store, User, ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_CLIENT_USER
from storebooks.services.auth_service import hash_password
from storebooks.services.document_storage import DocumentStorage
from storebooks.services import token_service
from storebooks.errors import UpstreamError


PASSWORD = "Password123!"


class FakeDocumentStorage(DocumentStorage):
    """In-memory stand-in for S3: remembers uploads and deletes."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_uploads = False

    def upload(self, bucket, path, data, content_type):
        if self.fail_uploads:
            raise UpstreamError("Failed to upload document", details={"reason": "fake outage"})
        self.objects[(bucket, path)] = (data, content_type)
        return f"https://files.example.test/{bucket}/{path}"

    def delete(self, bucket, path):
        self.deleted.append((bucket, path))
        self.objects.pop((bucket, path), None)

    def reset(self):
        self.objects.clear()
        self.deleted.clear()
        self.fail_uploads = False


_storage = FakeDocumentStorage()


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig, document_storage=_storage)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def storage(app):
    """The fake document storage wired into the app, emptied per test."""
    _storage.reset()
    yield _storage
    _storage.reset()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Client A (first tenant)."""
    tenant = Client(name="Acme Corp", contact_email="ops@acme.test")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Client B (second tenant)."""
    tenant = Client(name="Beta Inc", contact_email="ops@beta.test")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def store_a(db_session, tenant_a):
    store = Store(client_id=tenant_a.id, name="Acme Main", location="Downtown")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_a2(db_session, tenant_a):
    store = Store(client_id=tenant_a.id, name="Acme Outlet", location="Airport")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session, tenant_b):
    store = Store(client_id=tenant_b.id, name="Beta Main", location="Harbor")
    db_session.add(store)
    db_session.commit()
    return store


def make_user(db_session, tenant, username, role, store=None):
    user = User(
        client_id=tenant.id,
        store_id=store.id if store else None,
        username=username,
        email=f"{username}@example.test",
        password_hash=hash_password(PASSWORD),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def super_admin(db_session, tenant_a):
    """super_admin; lives in tenant A but sees every client."""
    return make_user(db_session, tenant_a, "root", ROLE_SUPER_ADMIN)


@pytest.fixture(scope='function')
def admin_a(db_session, tenant_a, store_a):
    return make_user(db_session, tenant_a, "admin_a", ROLE_ADMIN, store_a)


@pytest.fixture(scope='function')
def user_a(db_session, tenant_a, store_a):
    return make_user(db_session, tenant_a, "user_a", ROLE_CLIENT_USER, store_a)


@pytest.fixture(scope='function')
def admin_b(db_session, tenant_b, store_b):
    return make_user(db_session, tenant_b, "admin_b", ROLE_ADMIN, store_b)


@pytest.fixture(scope='function')
def user_b(db_session, tenant_b, store_b):
    return make_user(db_session, tenant_b, "user_b", ROLE_CLIENT_USER, store_b)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user: User) -> dict:
    return auth_headers(token_service.issue_token(user))


def get_auth_token(client, client_id: int, username: str, password: str = PASSWORD):
    """Helper to log in through the API and return the token."""
    response = client.post('/api/auth/login', json={
        'client_id': client_id,
        'username': username,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


@pytest.fixture(scope='function')
def super_headers(super_admin):
    return headers_for(super_admin)


@pytest.fixture(scope='function')
def admin_a_headers(admin_a):
    return headers_for(admin_a)


@pytest.fixture(scope='function')
def user_a_headers(user_a):
    return headers_for(user_a)


@pytest.fixture(scope='function')
def user_b_headers(user_b):
    return headers_for(user_b)


@pytest.fixture(scope='function')
def admin_b_headers(admin_b):
    return headers_for(admin_b)
