"""
Shared fixtures for HashYield integration tests.

Provides:
 - A TestClient over the full app (lifespan run, in-memory SQLite)
 - Admin-key headers and a factory registering miners over HTTP
 - Catalog and subscription factories that go through the public API
"""

import pytest
from fastapi.testclient import TestClient

from hashyield.config import Settings
from hashyield.server import create_app

ADMIN_KEY = "test-admin-key"
PASSWORD = "correct-horse-battery"


# ── App ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def client():
    settings = Settings(
        env="development", db_path=":memory:",
        admin_key=ADMIN_KEY, jwt_secret="test-secret",
    )
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def admin_headers():
    return {"X-API-Key": ADMIN_KEY}


# ── Accounts ────────────────────────────────────────────────────────────────

@pytest.fixture
def register(client):
    """Factory: sign up and log in a miner; returns (bearer headers, miner_id)."""

    def _register(username: str):
        resp = client.post("/api/auth/signup", json={
            "email": f"{username}@example.com",
            "username": username,
            "password": PASSWORD,
            "firstname": username.title(),
            "lastname": "Tester",
            "age": 30,
        })
        assert resp.status_code == 201, resp.text
        resp = client.post("/api/auth/login", json={
            "email": f"{username}@example.com", "password": PASSWORD,
        })
        assert resp.status_code == 200, resp.text
        # bearer only; the login cookie would otherwise ride along on later requests
        client.cookies.clear()
        data = resp.json()["data"]
        return {"Authorization": f"Bearer {data['token']}"}, data["miner"]["id"]

    return _register


@pytest.fixture
def alice(register):
    return register("alice")


@pytest.fixture
def bob(register):
    return register("bob")


# ── Catalog / subscriptions ────────────────────────────────────────────────

@pytest.fixture
def contract_id(client, admin_headers):
    """A 3% weekly contract on an active server."""
    resp = client.post("/api/servers", headers=admin_headers, json={
        "name": "Antminer S19", "hash_rate": "110 TH/s", "power_consumption_kwh": "3.25",
    })
    assert resp.status_code == 201, resp.text
    server_id = resp.json()["data"]["id"]
    resp = client.post("/api/contracts", headers=admin_headers, json={
        "miningServerId": server_id, "periodReturn": 3, "period": "weekly",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest.fixture
def subscribe(client, admin_headers, contract_id):
    """Factory: subscribe with a deposit; confirm the payment unless paid=False."""

    def _subscribe(headers, amount=1000, earnings=None, paid=True):
        resp = client.post("/api/subscriptions", headers=headers, json={
            "miningContractId": contract_id, "amount": amount,
        })
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        sub_id = data["subscription"]["id"]
        if paid:
            resp = client.patch(
                f"/api/transactions/{data['transaction_id']}/status",
                headers=admin_headers, json={"status": "successful"},
            )
            assert resp.status_code == 200, resp.text
        if earnings is not None:
            resp = client.patch(
                f"/api/subscriptions/{sub_id}/earnings", headers=admin_headers,
                json={"earnings": earnings, "actionType": "set"},
            )
            assert resp.status_code == 200, resp.text
        return sub_id

    return _subscribe
