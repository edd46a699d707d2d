"""Shared helpers for API tests."""
from typing import Any

from httpx import AsyncClient

DEFAULT_PASSWORD = "Sup3rSecret"


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a credential."""
    return {"Authorization": f"Bearer {token}"}


async def signup_user(
    client: AsyncClient,
    email: str,
    password: str = DEFAULT_PASSWORD,
    **fields: Any,
) -> tuple[dict[str, Any], str]:
    """Sign up through the API and return (user, token)."""
    response = await client.post(
        "/auth/signup", json={"email": email, "password": password, **fields},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["user"], data["token"]


async def login_user(
    client: AsyncClient,
    email: str,
    password: str = DEFAULT_PASSWORD,
) -> str:
    """Log in through the API and return the new token."""
    response = await client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]
