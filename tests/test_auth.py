"""Tests for password hashing, tokens and the authentication endpoints."""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.schemas.user import UserCreate
from app.services.auth import (
    authenticate_user,
    create_access_token,
    create_user,
    decode_token,
    get_password_hash,
    get_user_by_email,
    get_user_by_username,
    verify_password,
)


class TestPasswords:
    """bcrypt hashing helpers."""

    def test_hash_is_salted_bcrypt(self):
        first = get_password_hash("password123")
        second = get_password_hash("password123")
        assert first.startswith("$2")
        assert first != second

    @pytest.mark.parametrize(
        ("candidate", "expected"),
        [("mysecretpassword", True), ("wrongpassword", False), ("", False)],
    )
    def test_verify_password(self, candidate, expected):
        hashed = get_password_hash("mysecretpassword")
        assert verify_password(candidate, hashed) is expected

    def test_long_password_is_hashed(self):
        """Passwords longer than the bcrypt input limit can still be hashed and verified."""
        password = "x" * 100
        assert verify_password(password, get_password_hash(password)) is True


class TestTokens:
    """JWT creation and decoding."""

    def test_round_trip_subject(self):
        token = create_access_token(data={"sub": "testuser"}, expires_delta=timedelta(hours=1))
        assert decode_token(token).username == "testuser"

    @pytest.mark.parametrize(
        "token",
        [
            "invalid.token.here",
            create_access_token(data={"other": "data"}),
            create_access_token(data={"sub": "testuser"}, expires_delta=timedelta(minutes=-1)),
        ],
        ids=["garbage", "no-subject", "expired"],
    )
    def test_unusable_tokens_are_rejected(self, token):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Could not validate credentials"


class TestAccounts:
    """User lookups, authentication and registration on the database."""

    def test_lookups(self, test_db, test_user):
        assert get_user_by_username(test_db, "testuser").id == test_user.id
        assert get_user_by_email(test_db, "test@example.com").id == test_user.id
        assert get_user_by_username(test_db, "nonexistent") is None
        assert get_user_by_email(test_db, "nonexistent@example.com") is None

    @pytest.mark.parametrize(
        ("username", "password", "succeeds"),
        [
            ("testuser", "testpassword123", True),
            ("testuser", "wrongpassword", False),
            ("nonexistent", "testpassword123", False),
        ],
    )
    def test_authenticate_user(self, test_db, test_user, username, password, succeeds):
        assert (authenticate_user(test_db, username, password) is not None) is succeeds

    def test_create_user_hashes_password(self, test_db):
        user = create_user(
            test_db,
            UserCreate(username="newuser", email="newuser@example.com", password="newpassword123"),
        )
        assert user.is_active is True
        assert user.hashed_password != "newpassword123"
        assert verify_password("newpassword123", user.hashed_password)

    @pytest.mark.parametrize(
        ("username", "email", "message"),
        [
            ("testuser", "different@example.com", "Username already registered"),
            ("differentuser", "test@example.com", "Email already registered"),
        ],
    )
    def test_create_user_duplicates(self, test_db, test_user, username, email, message):
        with pytest.raises(HTTPException) as exc_info:
            create_user(test_db, UserCreate(username=username, email=email, password="password123"))
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == message


class TestRegisterEndpoint:
    """Tests for POST /api/auth/register."""

    def test_register_success(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "newuser", "email": "newuser@example.com", "password": "password123"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "newuser"
        assert data["is_active"] is True
        assert "password" not in data
        assert "hashed_password" not in data

    def test_register_duplicate_username(self, client, test_user):
        response = client.post(
            "/api/auth/register",
            json={"username": "testuser", "email": "new@example.com", "password": "password123"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Username already registered"

    @pytest.mark.parametrize(
        "body",
        [
            {"username": "newuser", "email": "not-an-email", "password": "password123"},
            {"username": "ab", "email": "ab@example.com", "password": "password123"},
            {"username": "shortpw", "email": "shortpw@example.com", "password": "short"},
            {"email": "missing@example.com", "password": "password123"},
        ],
        ids=["bad-email", "short-username", "short-password", "missing-username"],
    )
    def test_register_invalid_body(self, client, body):
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 422


class TestLoginEndpoint:
    """Tests for POST /api/auth/login and GET /api/auth/me."""

    def test_login_then_me(self, client, test_user):
        login = client.post(
            "/api/auth/login",
            json={"username": "testuser", "password": "testpassword123"},
        )
        assert login.status_code == 200
        assert login.json()["token_type"] == "bearer"
        token = login.json()["access_token"]
        assert decode_token(token).username == "testuser"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "test@example.com"

    @pytest.mark.parametrize(
        ("username", "password"),
        [("testuser", "wrongpassword"), ("nonexistent", "password123")],
    )
    def test_login_rejected(self, client, test_user, username, password):
        response = client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect username or password"

    def test_register_then_login(self, client):
        client.post(
            "/api/auth/register",
            json={"username": "flowuser", "email": "flow@example.com", "password": "flowpass123"},
        )
        response = client.post(
            "/api/auth/login", json={"username": "flowuser", "password": "flowpass123"}
        )
        assert response.status_code == 200

    def test_me_without_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_me_with_token_of_unknown_user(self, client):
        token = create_access_token(data={"sub": "ghost"})
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
