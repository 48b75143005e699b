"""
Pytest configuration and fixtures for the access-control core.
"""
import os
import tempfile

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["SYSTEM_ADMIN_EMAIL"] = "admin@digious.com"
os.environ["SYSTEM_ADMIN_PASSWORD"] = "admin-pw"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="accesscore-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import get_db, init_db
from schemas.user import UserCreate
from services.provisioning import provision
from services.role_store import RoleStore
from services.module_grants import ModuleGrantSet
from services.user_directory import UserDirectory

ADMIN_EMAIL = "admin@digious.com"
ADMIN_PASSWORD = "admin-pw"


@pytest.fixture
def engine():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    """Provisioned session for service-level tests."""
    s = session_factory()
    provision(s)
    yield s
    s.close()


@pytest.fixture
def roles(db):
    return RoleStore(db)


@pytest.fixture
def grants(db):
    return ModuleGrantSet(db)


@pytest.fixture
def users(db):
    return UserDirectory(db)


@pytest.fixture
def admin_role(roles):
    return roles.find_by_name("Admin")


@pytest.fixture
def make_user(users):
    def _make(email, role=None, password="pw-123456", **extra):
        fields = UserCreate(
            first_name=extra.pop("first_name", "Test"),
            last_name=extra.pop("last_name", "User"),
            email=email,
            password=password,
            role=role,
            **extra,
        )
        return users.create(fields)
    return _make


@pytest.fixture
def client(session_factory):
    from main import app

    s = session_factory()
    provision(s)
    s.close()

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, email, password):
    r = client.post("/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    body = r.json()["data"]
    return {"Authorization": f"Bearer {body['access_token']}"}, body


@pytest.fixture
def admin_headers(client):
    headers, _ = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return headers
