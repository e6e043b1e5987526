"""Integration-test fixtures.

Every test gets a fresh app (see tests/conftest.py) over its own
InMemoryContentStore, so flows never leak state into each other.
"""

import pytest
from httpx import AsyncClient

ADMIN_SIGNATURE = "0x" + "ad" * 65


@pytest.fixture
async def seller_client(client: AsyncClient) -> AsyncClient:
    """Client whose seller a@x.com has been granted 50 tokens by an admin."""
    resp = await client.post("/api/balance/store", json={
        "userEmail": "a@x.com",
        "userId": "user-a",
        "walletAddress": "0xAAA",
        "amount": 50,
        "adminSignature": ADMIN_SIGNATURE,
        "ticketId": "TICKET-1",
        "adminEmail": "admin@x.com",
    })
    assert resp.status_code == 200, resp.text
    return client
