import uuid

import pytest


pytestmark = pytest.mark.asyncio


async def register_user(client, username: str, email: str, password: str):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    return resp


async def login_user(client, username: str, password: str):
    return await client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )


async def test_register_and_login_flow(client):
    username = f"user_{uuid.uuid4().hex[:6]}"
    email = f"{username}@example.com"
    password = "StrongPass!23"

    resp = await register_user(client, username, email, password)
    body = resp.json()
    assert resp.status_code == 201
    assert body["success"] is True
    assert body["data"]["tokenType"] == "Bearer"
    assert body["data"]["user"]["username"] == username
    assert body["data"]["user"]["email"] == email
    assert "password" not in str(body["data"]["user"]).lower()
    assert "accessToken" in resp.cookies

    # Duplicate username should fail
    dup_resp = await register_user(client, username, f"other_{email}", password)
    assert dup_resp.status_code == 409
    assert dup_resp.json()["detail"]["code"] == "USERNAME_EXISTS"

    # Successful login
    login_resp = await login_user(client, username, password)
    login_body = login_resp.json()
    assert login_resp.status_code == 200
    assert login_body["success"] is True
    assert login_body["data"]["accessToken"]
    assert "accessToken" in login_resp.cookies

    # Invalid password
    bad_login = await login_user(client, username, "wrong")
    assert bad_login.status_code == 401
    assert bad_login.json()["detail"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_duplicate_email_conflicts(client):
    await register_user(client, "first_user", "shared@example.com", "StrongPass!23")
    resp = await register_user(client, "second_user", "shared@example.com", "StrongPass!23")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EMAIL_EXISTS"


async def test_unknown_user_and_wrong_password_look_the_same(client):
    await register_user(client, "known_user", "known@example.com", "StrongPass!23")
    wrong = await login_user(client, "known_user", "not-the-password")
    unknown = await login_user(client, "ghost_user", "StrongPass!23")
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()


@pytest.mark.parametrize("payload", [
    {"username": "ab", "email": "ab@example.com", "password": "StrongPass!23"},
    {"username": "valid_name", "email": "not-an-email", "password": "StrongPass!23"},
    {"username": "valid_name", "email": "valid@example.com", "password": "123"},
])
async def test_register_rejects_invalid_payload(client, payload):
    resp = await client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 422


async def test_me_and_logout(client):
    username = f"user_{uuid.uuid4().hex[:6]}"
    password = "UserInit#123"
    reg = await register_user(client, username, f"{username}@example.com", password)
    token = reg.json()["data"]["accessToken"]

    me_resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["username"] == username
    assert me_resp.json()["data"]["role"] == "user"

    # Cookie set at registration also authenticates
    cookie_resp = await client.get("/api/v1/auth/me")
    assert cookie_resp.status_code == 200

    logout_resp = await client.post("/api/v1/auth/logout")
    assert logout_resp.status_code == 200
    assert logout_resp.json()["success"] is True
    client.cookies.clear()

    unauth = await client.get("/api/v1/auth/me")
    assert unauth.status_code == 401
    assert unauth.json()["detail"] == "AUTH_REQUIRED"


async def test_me_rejects_invalid_token(client):
    client.cookies.clear()
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_INVALID_TOKEN"
