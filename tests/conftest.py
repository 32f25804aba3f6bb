"""Shared fixtures: in-memory database, API client and authenticated users."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services.auth import create_access_token, get_password_hash


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db, username: str, email: str) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash("testpassword123"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_user(test_db):
    """Create a test user in the database."""
    return _make_user(test_db, "testuser", "test@example.com")


@pytest.fixture
def other_user(test_db):
    """Create a second user who owns nothing of the test user."""
    return _make_user(test_db, "otheruser", "other@example.com")


@pytest.fixture
def auth_headers(test_user):
    """Bearer token headers for the test user."""
    token = create_access_token(data={"sub": test_user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user):
    """Bearer token headers for the second user."""
    token = create_access_token(data={"sub": other_user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def main_meter(client, auth_headers):
    """Main meter of the test user, created through the API."""
    response = client.post(
        "/api/main-meters",
        json={"meter_id": "EL-0001", "energy": "electricity", "address": "1 Long Street"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()
