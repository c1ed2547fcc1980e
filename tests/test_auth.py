import asyncio
from datetime import datetime, timedelta

import jwt
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch, MagicMock

from app.utils.auth import (
    JWT_ALGORITHM, JWT_SECRET, create_token, decode_token, get_current_user, hash_password, verify_password
)


@pytest.fixture
def test_app():
    from fastapi import FastAPI
    from app.routers import auth

    app = FastAPI()
    app.include_router(auth.router, prefix="/auth")
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


def make_request(cookie=None, header=None):
    request = MagicMock()
    request.cookies = {"token": cookie} if cookie else {}
    request.headers = {"Authorization": header} if header else {}
    return request


class TestPasswordsAndTokens:
    """Test cases for hashing and JWT helpers"""

    def test_hash_roundtrip(self):
        stored = hash_password("s3cret!")

        assert stored != "s3cret!"
        assert verify_password("s3cret!", stored)
        assert not verify_password("wrong", stored)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash(self):
        assert verify_password("anything", "no-separator") is False
        assert verify_password("anything", None) is False

    def test_token_carries_user_id(self):
        assert decode_token(create_token("u-1")) == "u-1"

    def test_expired_token(self):
        token = jwt.encode(
            {"user_id": "u-1", "exp": datetime.utcnow() - timedelta(seconds=5)}, JWT_SECRET, algorithm=JWT_ALGORITHM
        )
        assert decode_token(token) is None

    def test_tampered_token(self):
        token = jwt.encode({"user_id": "u-1"}, "another-secret", algorithm=JWT_ALGORITHM)
        assert decode_token(token) is None


class TestCurrentUser:
    """Test cases for the authentication dependency"""

    def test_missing_token(self):
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_current_user(make_request()))

        assert exc_info.value.status_code == 401

    @patch('app.utils.auth.users_coll')
    def test_bearer_header(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value={"user_id": "u-1", "is_active": True})

        user = asyncio.run(get_current_user(make_request(header=f"Bearer {create_token('u-1')}")))

        assert user["user_id"] == "u-1"
        mock_users_coll.find_one.assert_awaited_once_with({"user_id": "u-1"})

    @patch('app.utils.auth.users_coll')
    def test_inactive_user_rejected(self, mock_users_coll):
        mock_users_coll.find_one = AsyncMock(return_value={"user_id": "u-1", "is_active": False})

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(get_current_user(make_request(cookie=create_token("u-1"))))

        assert exc_info.value.status_code == 401


class TestAuthRouter:
    """Test cases for register, login and logout"""

    @patch('app.routers.auth.users_coll')
    def test_register(self, mock_users_coll, client):
        mock_users_coll.find_one = AsyncMock(return_value=None)
        mock_users_coll.insert_one = AsyncMock()

        response = client.post("/auth/register", json={
            "first_name": "Ada", "last_name": "Lovelace", "email": "ADA@Example.com ", "password": "analytical"
        })

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == "ada@example.com"
        assert user["full_name"] == "Ada Lovelace"
        assert "password_hash" not in user
        assert "token" in response.cookies
        stored = mock_users_coll.insert_one.call_args[0][0]
        assert verify_password("analytical", stored["password_hash"])
        assert stored["profile_completeness"] == 33

    @patch('app.routers.auth.users_coll')
    def test_register_duplicate_email(self, mock_users_coll, client):
        mock_users_coll.find_one = AsyncMock(return_value={"user_id": "existing"})

        response = client.post("/auth/register", json={
            "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com", "password": "analytical"
        })

        assert response.status_code == 400

    def test_register_short_password(self, client):
        response = client.post("/auth/register", json={
            "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com", "password": "123"
        })

        assert response.status_code == 422

    @patch('app.routers.auth.users_coll')
    def test_login(self, mock_users_coll, client):
        mock_users_coll.find_one = AsyncMock(return_value={
            "user_id": "u-1", "email": "ada@example.com", "password_hash": hash_password("analytical"), "is_active": True
        })
        mock_users_coll.update_one = AsyncMock()

        response = client.post("/auth/login", json={"email": "ada@example.com", "password": "analytical"})

        assert response.status_code == 200
        assert decode_token(response.cookies["token"]) == "u-1"
        assert "last_login" in mock_users_coll.update_one.call_args[0][1]["$set"]

    @patch('app.routers.auth.users_coll')
    def test_login_wrong_password(self, mock_users_coll, client):
        mock_users_coll.find_one = AsyncMock(return_value={
            "user_id": "u-1", "password_hash": hash_password("analytical"), "is_active": True
        })

        response = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope"})

        assert response.status_code == 401

    def test_logout_clears_cookie(self, client):
        response = client.post("/auth/logout")

        assert response.status_code == 200
        assert 'token=""' in response.headers["set-cookie"] or "token=;" in response.headers["set-cookie"]
