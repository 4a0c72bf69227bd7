from httpx import AsyncClient

API = "/api"


async def register(client: AsyncClient, user: dict) -> dict:
    response = await client.post(f"{API}/auth/register", json=user)
    assert response.status_code == 201, response.text
    return response.json()["user"]


async def login(client: AsyncClient, user: dict) -> dict:
    response = await client.post(
        f"{API}/auth/login",
        json={"email": user["email"], "password": user["password"]},
    )
    assert response.status_code == 200, response.text
    return response.json()


def bearer(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}
