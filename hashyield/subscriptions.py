"""
subscriptions.py - Miner subscriptions to mining contracts.

A subscription starts `pending` with its deposit recorded and a payment
transaction `initialized`. It becomes `active` when that payment is marked
successful (see payments.py) and `cancelled` is terminal.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from hashyield.calculations import net_profit, next_payment_date, roi, total_deposits, total_earnings
from hashyield.errors import ForbiddenError, NotFoundError, ValidationError
from hashyield.ledger import parse_amount

if TYPE_CHECKING:
    from hashyield.auth import Caller
    from hashyield.storage import ContractRepo, SubscriptionRepo, UserRepo
    from hashyield.storage.records import Subscription

logger = logging.getLogger("subscription")

STATUSES = ("pending", "active", "cancelled")
CURRENCY_MAX_LEN = 10


class SubscriptionService:

    def __init__(self, subscriptions: "SubscriptionRepo", contracts: "ContractRepo",
                 users: "UserRepo"):
        self._subs = subscriptions
        self._contracts = contracts
        self._users = users

    async def subscribe(
        self, caller: "Caller", contract_id: int, amount, currency: str = "USD",
        auto_accrue: bool = True, miner_id: Optional[int] = None,
    ) -> Tuple["Subscription", int]:
        """Open a subscription; returns it with the id of its payment transaction."""
        if caller.is_admin:
            if miner_id is None:
                raise ValidationError("miner_id is required when subscribing on a miner's behalf")
            if await self._users.get_miner(miner_id) is None:
                raise NotFoundError("Miner")
        elif caller.miner_id is None:
            raise ForbiddenError("Miner account required")
        else:
            miner_id = caller.miner_id

        amount = parse_amount(amount)
        if amount <= 0:
            raise ValidationError("A funded deposit greater than zero is required")
        currency = (currency or "USD").strip().upper()
        if not currency or len(currency) > CURRENCY_MAX_LEN:
            raise ValidationError("Invalid currency code")

        contract = await self._contracts.get(contract_id)
        if contract is None:
            raise NotFoundError("Mining contract")
        if not contract.is_active:
            raise ValidationError("Mining contract is not active")

        sub, transaction_id = await self._subs.create_with_payment(
            miner_id, contract_id, amount, currency, auto_accrue,
        )
        logger.info(
            "Miner %d subscribed to contract %d: subscription=%d deposit=%s %s",
            miner_id, contract_id, sub.id, amount, currency,
        )
        return sub, transaction_id

    async def get(self, caller: "Caller", subscription_id: int) -> "Subscription":
        sub = await self._subs.get(subscription_id)
        # hide other miners' subscriptions entirely
        if sub is None or not caller.owns(sub.miner_id):
            raise NotFoundError("Mining subscription")
        return sub

    async def list(self, status: Optional[str] = None, limit: Optional[int] = None,
                   offset: int = 0) -> Tuple[List["Subscription"], int]:
        if status is not None and status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        items = await self._subs.list_all(status=status, limit=limit, offset=offset)
        return items, await self._subs.count(status=status)

    async def list_for_miner(self, caller: "Caller", miner_id: int) -> List["Subscription"]:
        if not caller.owns(miner_id):
            raise ForbiddenError("You can only view your own subscriptions")
        if await self._users.get_miner(miner_id) is None:
            raise NotFoundError("Miner")
        return await self._subs.list_all(miner_id=miner_id)

    async def cancel(self, caller: "Caller", subscription_id: int) -> "Subscription":
        sub = await self.get(caller, subscription_id)
        if sub.status == "cancelled":
            raise ValidationError("Subscription is already cancelled")
        await self._subs.set_status(subscription_id, "cancelled")
        logger.info("Subscription %d cancelled", subscription_id)
        return await self._subs.get(subscription_id)

    async def dashboard(self, caller: "Caller", miner_id: Optional[int] = None) -> dict:
        """Totals, ROI and next payout dates across one miner's subscriptions."""
        miner_id = miner_id if miner_id is not None else caller.miner_id
        if miner_id is None:
            raise ValidationError("miner_id is required")
        subs = await self.list_for_miner(caller, miner_id)
        live = [s for s in subs if s.status != "cancelled"]
        deposits = total_deposits(live)
        earnings = total_earnings(live)
        items = []
        for sub in subs:
            entry = sub.to_dict()
            entry["roi"] = float(roi(sub.earnings, sub.amount_deposited))
            if sub.is_active and sub.contract is not None:
                entry["next_payment_date"] = next_payment_date(sub.contract.period).isoformat()
            items.append(entry)
        return {
            "summary": {
                "total_deposits": float(deposits),
                "total_earnings": float(earnings),
                "net_profit": float(net_profit(earnings, deposits)),
                "roi": float(roi(earnings, deposits)),
                "active_subscriptions": sum(1 for s in subs if s.is_active),
                "pending_subscriptions": sum(1 for s in subs if s.status == "pending"),
                "total_subscriptions": len(subs),
            },
            "subscriptions": items,
        }
