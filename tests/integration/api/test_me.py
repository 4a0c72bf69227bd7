import pytest
from httpx import AsyncClient

from tests.integration.helpers import API, bearer, login, register


@pytest.mark.asyncio
async def test_me_returns_profile(client: AsyncClient, test_data):
    student = test_data.get_copy("student")
    registered = await register(client, student)
    tokens = await login(client, student)

    response = await client.get(f"{API}/auth/me", headers=bearer(tokens["access_token"]))

    assert response.status_code == 200
    assert response.json()["id"] == registered["id"]
    assert "password_hash" not in response.json()


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    response = await client.get(f"{API}/auth/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


@pytest.mark.asyncio
async def test_me_rejects_refresh_token(client: AsyncClient, test_data):
    student = test_data.get_copy("student")
    await register(client, student)
    tokens = await login(client, student)

    response = await client.get(f"{API}/auth/me", headers=bearer(tokens["refresh_token"]))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "WRONG_TOKEN_TYPE"
