"""
test_kyc.py - KYC submission, review and fees.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from hashyield.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hashyield.kyc import KYCService

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def service(storage):
    return KYCService(storage.kyc, storage.kyc_fees, Decimal("10.00"))


class TestSubmit:

    async def test_submit_creates_fee(self, service, alice):
        kyc, fee = await service.submit(alice, "ids/alice.png")
        assert kyc.status == "pending"
        assert fee.amount == Decimal("10.00")
        assert not fee.is_paid
        assert fee.miner_id == alice.miner_id

    async def test_one_per_miner(self, service, storage, alice):
        await service.submit(alice, "ids/alice.png")
        with pytest.raises(ConflictError):
            await service.submit(alice, "ids/alice-2.png")
        assert len(await storage.kyc_fees.list_all(miner_id=alice.miner_id)) == 1

    async def test_id_card_required(self, service, alice):
        with pytest.raises(ValidationError):
            await service.submit(alice, "   ")

    async def test_admin_key_cannot_submit(self, service, admin):
        with pytest.raises(ForbiddenError):
            await service.submit(admin, "ids/x.png")


class TestReview:

    async def test_approve(self, service, admin, alice):
        kyc, _ = await service.submit(alice, "ids/alice.png")
        reviewed = await service.review(admin, kyc.id, "successful")
        assert reviewed.status == "successful"
        assert reviewed.reviewed_at is not None
        assert reviewed.rejection_reason is None

    async def test_fail_requires_reason(self, service, admin, alice):
        kyc, _ = await service.submit(alice, "ids/alice.png")
        with pytest.raises(ValidationError):
            await service.review(admin, kyc.id, "failed")
        failed = await service.review(admin, kyc.id, "failed", "Blurry photo")
        assert failed.rejection_reason == "Blurry photo"

    async def test_already_reviewed(self, service, admin, alice):
        kyc, _ = await service.submit(alice, "ids/alice.png")
        await service.review(admin, kyc.id, "successful")
        with pytest.raises(ValidationError):
            await service.review(admin, kyc.id, "failed", "changed mind")

    async def test_miner_cannot_review(self, service, alice):
        kyc, _ = await service.submit(alice, "ids/alice.png")
        with pytest.raises(ForbiddenError):
            await service.review(alice, kyc.id, "successful")

    async def test_stats(self, service, admin, alice, bob):
        first, _ = await service.submit(alice, "a.png")
        await service.submit(bob, "b.png")
        await service.review(admin, first.id, "successful")
        stats = await service.stats()
        assert stats == {
            "total": 2, "pending": 1, "successful": 1, "failed": 0, "approval_rate": 100.0,
        }


class TestAccess:

    async def test_get_for_miner(self, service, alice, bob):
        await service.submit(alice, "a.png")
        assert (await service.get_for_miner(alice, alice.miner_id)).id_card == "a.png"
        with pytest.raises(ForbiddenError):
            await service.get_for_miner(bob, alice.miner_id)

    async def test_get_hidden_from_other_miner(self, service, alice, bob):
        kyc, _ = await service.submit(alice, "a.png")
        with pytest.raises(NotFoundError):
            await service.get(bob, kyc.id)


class TestFees:

    async def test_mark_paid(self, service, admin, alice):
        _, fee = await service.submit(alice, "a.png")
        paid = await service.mark_fee_paid(admin, fee.id)
        assert paid.is_paid
        assert paid.paid_at is not None
        with pytest.raises(ValidationError):
            await service.mark_fee_paid(admin, fee.id)

    async def test_paid_unpaid_filters(self, service, admin, alice, bob):
        _, fee = await service.submit(alice, "a.png")
        await service.submit(bob, "b.png")
        await service.mark_fee_paid(admin, fee.id)
        assert [f.id for f in await service.list_fees(is_paid=True)] == [fee.id]
        assert len(await service.list_fees(is_paid=False)) == 1

    async def test_fee_stats(self, service, admin, alice, bob):
        _, fee = await service.submit(alice, "a.png")
        await service.submit(bob, "b.png")
        await service.mark_fee_paid(admin, fee.id)
        stats = await service.fee_stats()
        assert stats["paid"] == 1
        assert stats["unpaid"] == 1
        assert stats["collected"] == 10.0
        assert stats["outstanding"] == 10.0
