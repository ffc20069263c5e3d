"""
Integration tests for the authentication flow.

Verifies Login -> Me -> Logout, and that the token carries no authority of
its own: role and library binding are re-read on every request.
"""

import pytest
from sqlalchemy import update

from seatledger.app.models.user import User


async def _login(client, username, password="secret123"):
    return await client.post("/v1/auth/login", json={"username": username, "password": password})


# TEST 1: Login with username or email
@pytest.mark.asyncio
async def test_login_with_username_and_email(client, manager_a, library_a):
    by_username = await _login(client, "manager_a")
    by_email = await _login(client, "manager_a@seatledger.in")

    assert by_username.status_code == 200
    assert by_email.status_code == 200
    data = by_username.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "MANAGER"
    assert data["library_id"] == library_a.id
    assert data["access_token"]


# TEST 2: Bad credentials are indistinguishable
@pytest.mark.asyncio
async def test_invalid_credentials(client, manager_a):
    wrong_password = await _login(client, "manager_a", "not-it")
    unknown_user = await _login(client, "ghost")

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["error_code"] == "ERR_AUTH_001"


# TEST 3: Current user
@pytest.mark.asyncio
async def test_me_returns_bound_library(client, manager_a, library_a):
    token = (await _login(client, "manager_a")).json()["access_token"]

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["username"] == "manager_a"
    assert response.json()["library_id"] == library_a.id


# TEST 4: Logout revokes the token
@pytest.mark.asyncio
async def test_logout_revokes_token(client, superadmin, mock_redis):
    token = (await _login(client, "root")).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    logout = await client.post("/v1/auth/logout", headers=headers)
    assert logout.status_code == 200
    assert logout.json()["revoked"] is True
    assert await mock_redis.exists(f"blacklist:token:{token}") == 1

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_002"


# TEST 5: Deactivated accounts
@pytest.mark.asyncio
async def test_inactive_user_cannot_log_in_or_use_token(client, db_session, manager_a, manager_a_headers):
    await db_session.execute(update(User).where(User.id == manager_a.id).values(is_active=False))
    await db_session.commit()

    login = await _login(client, "manager_a")
    assert login.status_code == 403

    response = await client.get("/v1/students", headers=manager_a_headers)
    assert response.status_code == 403


# TEST 6: Tampered token
@pytest.mark.asyncio
async def test_garbage_token_is_rejected(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


# TEST 7: Health endpoint
@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["redis"] is True
