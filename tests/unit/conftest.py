"""Shared fixtures for HashYield unit tests."""

from decimal import Decimal

import pytest
import pytest_asyncio

from hashyield.auth import Caller
from hashyield.storage import StorageManager


# ── Storage ─────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def storage():
    sm = StorageManager(":memory:")
    await sm.initialize()
    yield sm
    await sm.close()


@pytest_asyncio.fixture
async def miner(storage):
    _, miner = await storage.users.create_miner_account(
        email="alice@example.com", username="alice", password_hash="x",
        firstname="Alice", lastname="Nakamoto", country="PT", age=34,
    )
    return miner


@pytest_asyncio.fixture
async def other_miner(storage):
    _, miner = await storage.users.create_miner_account(
        email="bob@example.com", username="bob", password_hash="x",
        firstname="Bob", lastname="Finney",
    )
    return miner


@pytest_asyncio.fixture
async def server(storage):
    return await storage.servers.create("Antminer S19", "110 TH/s", "3.25")


@pytest_asyncio.fixture
async def contract(storage, server):
    """3% per week."""
    return await storage.contracts.create(server.id, Decimal("3"), "weekly")


@pytest.fixture
def make_subscription(storage):
    """Factory: subscription with the given deposit/earnings, activated by default."""

    async def _make(miner_id, contract_id, deposit="1000", earnings=None, activate=True):
        sub, _ = await storage.subscriptions.create_with_payment(
            miner_id, contract_id, Decimal(deposit),
        )
        if activate:
            async with storage.subscriptions.transaction() as db:
                await storage.subscriptions.activate_in(db, sub.id)
        if earnings is not None:
            async with storage.subscriptions.transaction() as db:
                current = await storage.subscriptions.get(sub.id)
                await storage.subscriptions.write_balance(
                    db, current, "earnings", "set", Decimal(earnings), Decimal(earnings), "seed",
                )
        return await storage.subscriptions.get(sub.id)

    return _make


# ── Callers ─────────────────────────────────────────────────────────────────

@pytest.fixture
def admin():
    return Caller(user_id=None, role="admin")


@pytest.fixture
def alice(miner):
    return Caller(user_id=miner.user_id, role="miner", miner_id=miner.id)


@pytest.fixture
def bob(other_miner):
    return Caller(user_id=other_miner.user_id, role="miner", miner_id=other_miner.id)
