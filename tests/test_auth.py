from datetime import datetime, timedelta, timezone

import jwt
import pytest

from labeldesk.core.config import app_settings
from labeldesk.core.security import TokenError, create_access_token, decode_access_token

from conftest import auth, register


async def test_register_returns_user_and_token(client):
    body = await register(client, "newcomer")

    assert body["message"] == "User registered successfully"
    assert body["user"]["username"] == "newcomer"
    assert body["user"]["role"] == "artist"
    assert "password_hash" not in body["user"]

    claims = decode_access_token(body["token"])
    assert claims["id"] == body["user"]["id"]
    assert claims["role"] == "artist"


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "dup", "email": "other@example.com", "password": "secret123"},
        {"username": "other", "email": "dup@example.com", "password": "secret123"},
    ],
)
async def test_register_duplicate_username_or_email_rejected(client, payload):
    await register(client, "dup")

    response = await client.post("/auth/register", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "User with this email or username already exists"


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "a@example.com", "password": "secret123"},
        {"username": "a", "password": "secret123"},
        {"username": "a", "email": "a@example.com"},
        {"username": "a", "email": "a@example.com", "password": "short"},
        {"username": "a", "email": "a@example.com", "password": "secret123", "role": "superuser"},
    ],
)
async def test_register_invalid_payload_is_bad_request(client, payload):
    response = await client.post("/auth/register", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


async def test_login_success_stamps_last_login(client):
    await register(client, "singer")

    response = await client.post("/auth/login", json={"email": "singer@example.com", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["user"]["last_login"] is not None
    assert decode_access_token(body["token"])["username"] == "singer"


async def test_login_wrong_password_is_unauthorized(client):
    await register(client, "singer")

    response = await client.post("/auth/login", json={"email": "singer@example.com", "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


async def test_login_unknown_email_is_unauthorized(client):
    response = await client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert response.status_code == 401


async def test_login_missing_fields_is_bad_request(client):
    response = await client.post("/auth/login", json={"email": "singer@example.com"})

    assert response.status_code == 400


async def test_login_deactivated_account_is_unauthorized(client, admin_headers):
    user = (await register(client, "leaving"))["user"]
    response = await client.patch(f"/user/{user['id']}/deactivate", headers=admin_headers)
    assert response.status_code == 200

    response = await client.post("/auth/login", json={"email": "leaving@example.com", "password": "secret123"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


async def test_profile_requires_token(client):
    response = await client.get("/auth/profile")

    assert response.status_code == 401
    assert response.json()["error"] == "Authentication required"


async def test_profile_rejects_bad_token(client):
    response = await client.get("/auth/profile", headers=auth("not-a-token"))

    assert response.status_code == 403
    assert response.json()["error"] == "Invalid or expired token"


async def test_profile_rejects_expired_token(client, artist_user):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "id": artist_user["user"]["id"],
            "username": "artist",
            "role": "artist",
            "iat": now - timedelta(days=2),
            "exp": now - timedelta(days=1),
        },
        app_settings.jwt_secret,
        algorithm=app_settings.jwt_algorithm,
    )

    response = await client.get("/auth/profile", headers=auth(token))

    assert response.status_code == 403


async def test_profile_returns_caller(client, artist_user, artist_headers):
    response = await client.get("/auth/profile", headers=artist_headers)

    assert response.status_code == 200
    assert response.json()["user"]["id"] == artist_user["user"]["id"]


async def test_profile_of_deleted_user_is_not_found(client, admin_headers):
    body = await register(client, "vanishing")
    response = await client.delete(f"/user/{body['user']['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/auth/profile", headers=auth(body["token"]))

    assert response.status_code == 404


async def test_update_profile(client, artist_headers):
    response = await client.put(
        "/auth/profile",
        json={"username": "renamed", "email": "renamed@example.com"},
        headers=artist_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Profile updated successfully"
    assert body["user"]["username"] == "renamed"
    assert body["user"]["email"] == "renamed@example.com"


async def test_update_profile_to_taken_email_rejected(client, artist_headers, manager):
    response = await client.put(
        "/auth/profile",
        json={"email": "manager@example.com"},
        headers=artist_headers,
    )

    assert response.status_code == 400


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"id": "x", "role": "admin", "exp": 9999999999}, "other-secret", algorithm="HS256")

    with pytest.raises(TokenError):
        decode_access_token(token)


def test_token_without_role_claim_is_rejected():
    token = jwt.encode({"id": "x", "exp": 9999999999}, app_settings.jwt_secret, algorithm="HS256")

    with pytest.raises(TokenError):
        decode_access_token(token)


def test_created_token_round_trips_claims():
    token = create_access_token("abc", "someone", "manager")

    claims = decode_access_token(token)

    assert claims["id"] == "abc"
    assert claims["username"] == "someone"
    assert claims["role"] == "manager"
    assert claims["exp"] > claims["iat"]
