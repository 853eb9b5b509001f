"""
withdrawals.py - Miner withdrawal requests and their review workflow.

Requesting a withdrawal checks the balance but does not touch it. The
balance is decremented when an admin approves the request, in the same
transaction as the status change, and restored if a request that already
took money is later rejected.

    pending ──> approved ──> processing ──> completed
       │            │             │
       │            └─> completed └─> rejected (refund)
       ├─> rejected
       └─> cancelled (owning miner only)
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from hashyield.errors import (
    ForbiddenError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from hashyield.ledger import parse_amount

if TYPE_CHECKING:
    from hashyield.auth import Caller
    from hashyield.ledger import LedgerService
    from hashyield.storage import SubscriptionRepo, WithdrawalRepo
    from hashyield.storage.records import Withdrawal

logger = logging.getLogger("withdrawal")

TYPES = ("earnings", "deposit")
STATUSES = ("pending", "approved", "processing", "completed", "rejected", "cancelled")

# Admin-driven transitions; cancellation is the miner's and handled separately
TRANSITIONS = {
    "pending": ("approved", "rejected"),
    "approved": ("processing", "completed"),
    "processing": ("completed", "rejected"),
}
# Statuses in which the amount has already left the subscription balance
DEBITED = ("approved", "processing", "completed")


class WithdrawalService:

    def __init__(self, withdrawals: "WithdrawalRepo", subscriptions: "SubscriptionRepo",
                 ledger: "LedgerService"):
        self._withdrawals = withdrawals
        self._subs = subscriptions
        self._ledger = ledger

    async def create(
        self, caller: "Caller", subscription_id: int, amount, withdrawal_type: str = "earnings",
        destination: str = "", currency: Optional[str] = None,
    ) -> "Withdrawal":
        """Record a pending withdrawal if the balance covers it; nothing is written otherwise."""
        amount = parse_amount(amount)
        if amount <= 0:
            raise ValidationError("Withdrawal amount must be greater than zero")
        if withdrawal_type not in TYPES:
            raise ValidationError(f"type must be one of: {', '.join(TYPES)}")

        async with self._withdrawals.transaction() as db:
            sub = await self._subs.get(subscription_id)
            if sub is None or not caller.owns(sub.miner_id):
                raise NotFoundError("Mining subscription")
            available = sub.balance(withdrawal_type)
            if amount > available:
                raise InsufficientBalanceError(withdrawal_type, available, amount)
            withdrawal_id = await self._withdrawals.insert_in(
                db, sub.miner_id, sub.id, withdrawal_type, amount,
                currency or sub.currency, (destination or "").strip(),
            )
        logger.info(
            "Withdrawal %d requested: subscription=%d %s %s",
            withdrawal_id, subscription_id, withdrawal_type, amount,
        )
        return await self._withdrawals.get(withdrawal_id)

    async def update_status(
        self, caller: "Caller", withdrawal_id: int, status: str,
        rejection_reason: Optional[str] = None, transaction_hash: Optional[str] = None,
    ) -> "Withdrawal":
        if not caller.is_admin:
            raise ForbiddenError("Admin access required")
        if status not in STATUSES or status in ("pending", "cancelled"):
            raise ValidationError(
                "status must be one of: approved, processing, completed, rejected",
            )

        async with self._withdrawals.transaction() as db:
            withdrawal = await self._withdrawals.get(withdrawal_id)
            if withdrawal is None:
                raise NotFoundError("Withdrawal")
            if status not in TRANSITIONS.get(withdrawal.status, ()):
                raise ValidationError(
                    f"Cannot change withdrawal status from {withdrawal.status} to {status}"
                )
            reference = f"withdrawal:{withdrawal.id}"
            if status == "approved":
                await self._ledger.apply_in(
                    db, withdrawal.subscription_id, withdrawal.type, withdrawal.amount,
                    "decrease", reference,
                )
            elif status == "rejected" and withdrawal.status in DEBITED:
                await self._ledger.apply_in(
                    db, withdrawal.subscription_id, withdrawal.type, withdrawal.amount,
                    "increase", f"{reference}:reversal",
                )
            await self._withdrawals.update_status_in(
                db, withdrawal.id, status,
                rejection_reason=rejection_reason if status == "rejected" else None,
                transaction_hash=transaction_hash,
                processed_by=caller.user_id,
            )
        logger.info("Withdrawal %d: %s -> %s", withdrawal_id, withdrawal.status, status)
        return await self._withdrawals.get(withdrawal_id)

    async def cancel(self, caller: "Caller", withdrawal_id: int) -> "Withdrawal":
        async with self._withdrawals.transaction() as db:
            withdrawal = await self._withdrawals.get(withdrawal_id)
            if withdrawal is None:
                raise NotFoundError("Withdrawal")
            if caller.miner_id is None or caller.miner_id != withdrawal.miner_id:
                raise ForbiddenError("You can only cancel your own withdrawals")
            if withdrawal.status != "pending":
                raise ValidationError(
                    f"Only pending withdrawals can be cancelled (status: {withdrawal.status})"
                )
            await self._withdrawals.update_status_in(db, withdrawal.id, "cancelled")
        logger.info("Withdrawal %d cancelled by miner %d", withdrawal_id, caller.miner_id)
        return await self._withdrawals.get(withdrawal_id)

    async def get(self, caller: "Caller", withdrawal_id: int) -> "Withdrawal":
        withdrawal = await self._withdrawals.get(withdrawal_id)
        if withdrawal is None or not caller.owns(withdrawal.miner_id):
            raise NotFoundError("Withdrawal")
        return withdrawal

    async def list_for_miner(self, caller: "Caller", miner_id: int,
                             status: Optional[str] = None) -> List["Withdrawal"]:
        if not caller.owns(miner_id):
            raise ForbiddenError("You can only view your own withdrawals")
        _check_status(status)
        return await self._withdrawals.list_all(status=status, miner_id=miner_id)

    async def list(self, status: Optional[str] = None, limit: Optional[int] = None,
                   offset: int = 0) -> Tuple[List["Withdrawal"], int]:
        _check_status(status)
        items = await self._withdrawals.list_all(status=status, limit=limit, offset=offset)
        return items, await self._withdrawals.count(status=status)

    async def stats(self) -> dict:
        stats = await self._withdrawals.stats()
        return {
            "total": stats["total"],
            "by_status": {
                k: {"count": v["count"], "amount": float(v["amount"])}
                for k, v in stats["by_status"].items()
            },
            "completed_amount": float(stats["completed_amount"]),
            "pending_amount": float(stats["pending_amount"]),
        }


def _check_status(status: Optional[str]):
    if status is not None and status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
