# tests/test_api.py
import time

import pytest
from httpx import AsyncClient
from jose import jwt

from employee_api.security import decode_access_token

# Mark all tests in this file as asyncio
pytestmark = pytest.mark.asyncio


async def test_read_root(client: AsyncClient):
    """Test the root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["ok"] is True


async def test_health_db(client: AsyncClient):
    response = await client.get("/api/health/db")
    assert response.status_code == 200
    assert response.json() == {"db": "ok"}


# --- Signup ---

async def test_signup_user(client: AsyncClient):
    response = await client.post(
        "/api/v1/user/signup",
        json={"username": "  newuser  ", "email": "new@acme.io", "password": "newpassword"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User created successfully."
    assert "user_id" in data
    assert "password" not in response.text


async def test_signup_reports_every_invalid_field(client: AsyncClient):
    response = await client.post(
        "/api/v1/user/signup",
        json={"username": "   ", "email": "not-an-email", "password": "123"}
    )
    assert response.status_code == 400
    data = response.json()
    assert data["status"] is False
    assert {e["field"] for e in data["errors"]} == {"username", "email", "password"}


async def test_signup_duplicate_email_conflicts(client: AsyncClient):
    first = await client.post(
        "/api/v1/user/signup",
        json={"username": "first", "email": "same@acme.io", "password": "password1"}
    )
    assert first.status_code == 201

    second = await client.post(
        "/api/v1/user/signup",
        json={"username": "second", "email": "same@acme.io", "password": "password2"}
    )
    assert second.status_code == 409
    assert second.json() == {"status": False, "message": "User already exists"}

    # First account is untouched
    login = await client.post(
        "/api/v1/user/login",
        json={"email": "same@acme.io", "password": "password1"}
    )
    assert login.status_code == 200


async def test_signup_duplicate_username_uses_same_message(client: AsyncClient):
    await client.post(
        "/api/v1/user/signup",
        json={"username": "taken", "email": "one@acme.io", "password": "password1"}
    )
    response = await client.post(
        "/api/v1/user/signup",
        json={"username": "taken", "email": "two@acme.io", "password": "password1"}
    )
    assert response.status_code == 409
    assert response.json()["message"] == "User already exists"


# --- Login ---

async def test_login_returns_token_for_user(client: AsyncClient, settings):
    signup = await client.post(
        "/api/v1/user/signup",
        json={"username": "grace", "email": "grace@acme.io", "password": "hopper42"}
    )
    user_id = signup.json()["user_id"]

    for credentials in ({"username": "grace"}, {"email": "grace@acme.io"}):
        response = await client.post(
            "/api/v1/user/login",
            json={**credentials, "password": "hopper42"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful."
        assert decode_access_token(data["jwt_token"], settings) == user_id


async def test_login_with_mixed_case_signup_email(client: AsyncClient):
    signup = await client.post(
        "/api/v1/user/signup",
        json={"username": "grace", "email": "Grace@ACME.io", "password": "hopper42"}
    )
    assert signup.status_code == 201

    response = await client.post(
        "/api/v1/user/login",
        json={"email": "Grace@ACME.io", "password": "hopper42"}
    )
    assert response.status_code == 200

    padded = await client.post(
        "/api/v1/user/login",
        json={"email": "  Grace@ACME.io ", "password": "hopper42"}
    )
    assert padded.status_code == 200


async def test_login_token_expires_after_one_hour(client: AsyncClient):
    await client.post(
        "/api/v1/user/signup",
        json={"username": "grace", "email": "grace@acme.io", "password": "hopper42"}
    )
    response = await client.post(
        "/api/v1/user/login",
        json={"username": "grace", "password": "hopper42"}
    )
    claims = jwt.get_unverified_claims(response.json()["jwt_token"])
    assert abs(claims["exp"] - time.time() - 3600) < 60


async def test_login_failures_are_indistinguishable(client: AsyncClient):
    await client.post(
        "/api/v1/user/signup",
        json={"username": "grace", "email": "grace@acme.io", "password": "hopper42"}
    )

    unknown = await client.post(
        "/api/v1/user/login",
        json={"username": "nobody", "password": "hopper42"}
    )
    wrong_password = await client.post(
        "/api/v1/user/login",
        json={"username": "grace", "password": "wrong-password"}
    )

    assert unknown.status_code == wrong_password.status_code == 401
    assert unknown.json() == wrong_password.json()
    assert unknown.json() == {"status": False, "message": "Invalid username or password"}


async def test_login_requires_identifier(client: AsyncClient):
    response = await client.post("/api/v1/user/login", json={"password": "whatever"})
    assert response.status_code == 400
    assert response.json()["message"] == "Provide email or username"


async def test_user_client_sends_bearer_token(user_client: AsyncClient):
    assert user_client.headers["Authorization"].startswith("Bearer ")
