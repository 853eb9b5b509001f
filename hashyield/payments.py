"""
payments.py - Payment transactions into the platform.

A transaction pays for either a subscription deposit or a KYC fee. When an
admin marks one successful, the thing it paid for is settled in the same
storage transaction: the subscription is activated, or the fee marked paid.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from hashyield.errors import ForbiddenError, NotFoundError, ValidationError
from hashyield.ledger import parse_amount

if TYPE_CHECKING:
    from hashyield.auth import Caller
    from hashyield.storage import KYCFeeRepo, SubscriptionRepo, TransactionRepo
    from hashyield.storage.records import Transaction

logger = logging.getLogger("payments")

ENTITIES = ("subscription", "kyc")
STATUSES = ("initialized", "pending", "successful", "failed")

TRANSITIONS = {
    "initialized": ("pending", "successful", "failed"),
    "pending": ("successful", "failed"),
}


class TransactionService:

    def __init__(self, transactions: "TransactionRepo", subscriptions: "SubscriptionRepo",
                 kyc_fees: "KYCFeeRepo"):
        self._transactions = transactions
        self._subs = subscriptions
        self._fees = kyc_fees

    async def create(self, caller: "Caller", entity: str, entity_id: int, amount) -> "Transaction":
        if entity not in ENTITIES:
            raise ValidationError(f"entity must be one of: {', '.join(ENTITIES)}")
        amount = parse_amount(amount, "amount_usd")
        if amount <= 0:
            raise ValidationError("amount_usd must be greater than zero")

        if entity == "subscription":
            target = await self._subs.get(entity_id)
            label = "Mining subscription"
        else:
            target = await self._fees.get(entity_id)
            label = "KYC fee"
        if target is None or not caller.owns(target.miner_id):
            raise NotFoundError(label)

        tx = await self._transactions.create(target.miner_id, entity, entity_id, amount)
        logger.info("Transaction %d created: %s %d amount=%s", tx.id, entity, entity_id, amount)
        return tx

    async def get(self, caller: "Caller", transaction_id: int) -> "Transaction":
        tx = await self._transactions.get(transaction_id)
        if tx is None or not caller.owns(tx.miner_id):
            raise NotFoundError("Transaction")
        return tx

    async def list(self, status: Optional[str] = None, limit: Optional[int] = None,
                   offset: int = 0) -> Tuple[List["Transaction"], int]:
        if status is not None and status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        items = await self._transactions.list_all(status=status, limit=limit, offset=offset)
        return items, await self._transactions.count(status=status)

    async def list_for_miner(self, caller: "Caller", miner_id: int) -> List["Transaction"]:
        if not caller.owns(miner_id):
            raise ForbiddenError("You can only view your own transactions")
        return await self._transactions.list_all(miner_id=miner_id)

    async def update_status(self, caller: "Caller", transaction_id: int, status: str) -> "Transaction":
        if not caller.is_admin:
            raise ForbiddenError("Admin access required")
        if status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")

        async with self._transactions.transaction() as db:
            tx = await self._transactions.get(transaction_id)
            if tx is None:
                raise NotFoundError("Transaction")
            if status not in TRANSITIONS.get(tx.status, ()):
                raise ValidationError(f"Cannot change transaction status from {tx.status} to {status}")
            await self._transactions.update_status_in(db, tx.id, status)
            if status == "successful":
                if tx.entity == "subscription":
                    await self._subs.activate_in(db, tx.entity_id)
                else:
                    await self._fees.mark_paid_in(db, tx.entity_id)
        logger.info("Transaction %d: %s -> %s", transaction_id, tx.status, status)
        return await self._transactions.get(transaction_id)

    async def stats(self) -> dict:
        stats = await self._transactions.stats()
        stats["total_volume"] = float(stats["total_volume"])
        stats["successful_volume"] = float(stats["successful_volume"])
        return stats
