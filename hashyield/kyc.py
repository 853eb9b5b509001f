"""
kyc.py - Know-your-customer submissions and the fees charged for review.

Each miner may submit one KYC record. Submitting also raises a fixed,
unpaid review fee; the fee is settled by a payment transaction (see
payments.py) or marked paid by an admin directly.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from hashyield.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from hashyield.auth import Caller
    from hashyield.storage import KYCFeeRepo, KYCRepo
    from hashyield.storage.records import KYC, KYCFee

logger = logging.getLogger("kyc")

STATUSES = ("pending", "successful", "failed")
REVIEW_STATUSES = ("successful", "failed")


class KYCService:

    def __init__(self, kyc: "KYCRepo", fees: "KYCFeeRepo", fee_amount):
        self._kyc = kyc
        self._fees = fees
        self._fee_amount = fee_amount

    async def submit(self, caller: "Caller", id_card: str) -> Tuple["KYC", "KYCFee"]:
        if caller.miner_id is None:
            raise ForbiddenError("Miner account required")
        id_card = (id_card or "").strip()
        if not id_card:
            raise ValidationError("id_card is required")
        if await self._kyc.get_by_miner(caller.miner_id):
            raise ConflictError("KYC has already been submitted for this miner")
        kyc, fee = await self._kyc.create_with_fee(caller.miner_id, id_card, self._fee_amount)
        logger.info("KYC %d submitted by miner %d (fee %d: %s)", kyc.id, caller.miner_id, fee.id, fee.amount)
        return kyc, fee

    async def get(self, caller: "Caller", kyc_id: int) -> "KYC":
        kyc = await self._kyc.get(kyc_id)
        if kyc is None or not caller.owns(kyc.miner_id):
            raise NotFoundError("KYC")
        return kyc

    async def get_for_miner(self, caller: "Caller", miner_id: int) -> "KYC":
        if not caller.owns(miner_id):
            raise ForbiddenError("You can only view your own KYC")
        kyc = await self._kyc.get_by_miner(miner_id)
        if kyc is None:
            raise NotFoundError("KYC")
        return kyc

    async def list(self, status: Optional[str] = None) -> List["KYC"]:
        if status is not None and status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        return await self._kyc.list_all(status=status)

    async def review(self, caller: "Caller", kyc_id: int, status: str,
                     rejection_reason: Optional[str] = None) -> "KYC":
        if not caller.is_admin:
            raise ForbiddenError("Admin access required")
        if status not in REVIEW_STATUSES:
            raise ValidationError("status must be one of: successful, failed")
        kyc = await self._kyc.get(kyc_id)
        if kyc is None:
            raise NotFoundError("KYC")
        if kyc.status != "pending":
            raise ValidationError(f"KYC has already been reviewed (status: {kyc.status})")
        if status == "failed" and not (rejection_reason or "").strip():
            raise ValidationError("rejection_reason is required when failing a KYC")
        updated = await self._kyc.update_status(
            kyc_id, status, caller.user_id,
            rejection_reason.strip() if status == "failed" else None,
        )
        logger.info("KYC %d reviewed: %s", kyc_id, status)
        return updated

    async def stats(self) -> dict:
        return await self._kyc.stats()

    # -------------------------------------------------------------------
    # Fees
    # -------------------------------------------------------------------

    async def list_fees(self, miner_id: Optional[int] = None,
                        is_paid: Optional[bool] = None) -> List["KYCFee"]:
        return await self._fees.list_all(miner_id=miner_id, is_paid=is_paid)

    async def fees_for_miner(self, caller: "Caller", miner_id: int) -> List["KYCFee"]:
        if not caller.owns(miner_id):
            raise ForbiddenError("You can only view your own KYC fees")
        return await self._fees.list_all(miner_id=miner_id)

    async def get_fee(self, caller: "Caller", fee_id: int) -> "KYCFee":
        fee = await self._fees.get(fee_id)
        if fee is None or not caller.owns(fee.miner_id):
            raise NotFoundError("KYC fee")
        return fee

    async def mark_fee_paid(self, caller: "Caller", fee_id: int) -> "KYCFee":
        if not caller.is_admin:
            raise ForbiddenError("Admin access required")
        fee = await self._fees.get(fee_id)
        if fee is None:
            raise NotFoundError("KYC fee")
        if fee.is_paid:
            raise ValidationError("KYC fee is already paid")
        updated = await self._fees.mark_paid(fee_id)
        logger.info("KYC fee %d marked paid", fee_id)
        return updated

    async def fee_stats(self) -> dict:
        stats = await self._fees.stats()
        stats["collected"] = float(stats["collected"])
        stats["outstanding"] = float(stats["outstanding"])
        return stats
