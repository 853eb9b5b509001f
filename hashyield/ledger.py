"""
ledger.py - Subscription ledger service.

Every change to a subscription's deposit or earnings balance goes through
one operation, mutate_balance(), which reads the current balance, computes
the new one and writes it back together with an audit row, all inside a
single BEGIN IMMEDIATE transaction. The older per-field APIs (set/add/subtract
for earnings, credit/debit for deposits) are thin wrappers mapping onto it.

Accrual adds the contract's projected earnings for a number of days to an
active subscription. Nothing here runs on a timer: process_due_earnings()
is invoked from outside (admin endpoint or CLI).
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Dict

from hashyield.calculations import daily_rate, project_earnings, round2, to_decimal
from hashyield.errors import AppError, InsufficientBalanceError, NotFoundError, ValidationError

if TYPE_CHECKING:
    import aiosqlite

    from hashyield.storage import SubscriptionRepo
    from hashyield.storage.records import Subscription

logger = logging.getLogger("ledger")

FIELDS = ("earnings", "deposit")
MODES = ("set", "increase", "decrease")

# Action names accepted by the HTTP layer, mapped onto ledger modes
EARNINGS_ACTIONS = {"set": "set", "add": "increase", "subtract": "decrease"}
DEPOSIT_ACTIONS = {"credit": "increase", "debit": "decrease"}

MAX_ACCRUAL_DAYS = 366


def parse_amount(value, name: str = "amount") -> Decimal:
    """Coerce a user-supplied number to a Decimal in whole cents.

    Amounts finer than a cent are rejected rather than rounded, so a value
    just above a balance can never be rounded down to fit it.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{name} must be a number") from None
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a finite number")
    cents = round2(amount)
    if cents != amount:
        raise ValidationError(f"{name} cannot have more than two decimal places")
    return cents


def apply_mode(current: Decimal, amount: Decimal, mode: str, field: str) -> Decimal:
    """New balance after applying `mode` with `amount` to `current`."""
    if mode == "set":
        if amount < 0:
            raise ValidationError(f"{field} cannot be set to a negative amount")
        return amount
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    if mode == "increase":
        return current + amount
    if amount > current:
        raise InsufficientBalanceError(field, current, amount)
    return current - amount


class LedgerService:
    """Balance mutations and earnings accrual for mining subscriptions."""

    def __init__(self, subscriptions: "SubscriptionRepo"):
        self._subs = subscriptions

    async def mutate_balance(
        self, subscription_id: int, field: str, amount, mode: str, reference: str = "",
    ) -> "Subscription":
        """Apply one ledger mutation atomically and return the updated snapshot."""
        amount = self._check(field, amount, mode)
        async with self._subs.transaction() as db:
            updated = await self._apply(db, subscription_id, field, amount, mode, reference)
        logger.info(
            "Subscription %d %s %s %s -> %s",
            subscription_id, field, mode, amount, updated.balance(field),
        )
        return updated

    async def apply_in(
        self, db: "aiosqlite.Connection", subscription_id: int, field: str, amount,
        mode: str, reference: str = "",
    ) -> "Subscription":
        """Same as mutate_balance() but inside a transaction the caller already holds."""
        amount = self._check(field, amount, mode)
        return await self._apply(db, subscription_id, field, amount, mode, reference)

    @staticmethod
    def _check(field: str, amount, mode: str) -> Decimal:
        if field not in FIELDS:
            raise ValidationError(f"Unknown balance field '{field}'")
        if mode not in MODES:
            raise ValidationError(f"Unknown ledger mode '{mode}'")
        return parse_amount(amount)

    async def _apply(self, db, subscription_id, field, amount, mode, reference):
        sub = await self._subs.get(subscription_id)
        if sub is None:
            raise NotFoundError("Mining subscription")
        new_balance = apply_mode(sub.balance(field), amount, mode, field)
        return await self._subs.write_balance(db, sub, field, mode, amount, new_balance, reference)

    # -------------------------------------------------------------------
    # Per-field wrappers
    # -------------------------------------------------------------------

    async def record_deposit(self, subscription_id: int, amount, reference: str = "deposit"):
        return await self.mutate_balance(subscription_id, "deposit", amount, "increase", reference)

    async def adjust_earnings(self, subscription_id: int, amount, action: str,
                              reference: str = "admin-adjustment"):
        mode = EARNINGS_ACTIONS.get(action)
        if mode is None:
            raise ValidationError("actionType must be one of: set, add, subtract")
        return await self.mutate_balance(subscription_id, "earnings", amount, mode, reference)

    async def adjust_deposit(self, subscription_id: int, amount, action: str,
                             reference: str = "admin-adjustment"):
        mode = DEPOSIT_ACTIONS.get(action)
        if mode is None:
            raise ValidationError("actionType must be one of: credit, debit")
        return await self.mutate_balance(subscription_id, "deposit", amount, mode, reference)

    # -------------------------------------------------------------------
    # Accrual
    # -------------------------------------------------------------------

    async def accrue_earnings(self, subscription_id: int, days: int = 1) -> "Subscription":
        """Credit `days` worth of contract earnings to an active subscription."""
        days = _check_days(days)
        async with self._subs.transaction() as db:
            sub = await self._subs.get(subscription_id)
            if sub is None or not sub.is_active:
                raise NotFoundError("Active mining subscription")
            if sub.contract is None:
                raise NotFoundError("Mining contract")
            delta = project_earnings(
                sub.amount_deposited, sub.contract.period_return, sub.contract.period, days,
            )
            updated = await self._subs.write_balance(
                db, sub, "earnings", "increase", delta, sub.earnings + delta, f"accrual:{days}d",
            )
            await self._subs.record_earning(db, sub.id, delta, days)
        logger.info("Accrued %s on subscription %d over %d day(s)", delta, subscription_id, days)
        return updated

    async def process_due_earnings(self, days: int = 1) -> Dict[str, int]:
        """Accrue every active auto-accruing subscription; failures don't stop the batch."""
        days = _check_days(days)
        subs = await self._subs.list_accruable()
        processed = failed = 0
        for sub in subs:
            try:
                await self.accrue_earnings(sub.id, days)
                processed += 1
            except AppError as exc:
                failed += 1
                logger.warning("Accrual failed for subscription %d: %s", sub.id, exc.message)
        logger.info("Earnings batch: %d processed, %d failed of %d", processed, failed, len(subs))
        return {"processed": processed, "failed": failed, "total": len(subs)}

    async def preview_earnings(self, subscription_id: int, days: int = 1) -> dict:
        """Projected earnings for `days` days without writing anything."""
        days = _check_days(days)
        sub = await self._subs.get(subscription_id)
        if sub is None:
            raise NotFoundError("Mining subscription")
        if sub.contract is None:
            raise NotFoundError("Mining contract")
        projected = project_earnings(
            sub.amount_deposited, sub.contract.period_return, sub.contract.period, days,
        )
        return {
            "subscription_id": sub.id,
            "days": days,
            "daily_rate": float(daily_rate(sub.contract.period_return, sub.contract.period)),
            "projected_earnings": float(projected),
            "current_earnings": float(sub.earnings),
            "projected_balance": float(sub.earnings + projected),
        }

    async def history(self, subscription_id: int) -> dict:
        sub = await self._subs.get(subscription_id)
        if sub is None:
            raise NotFoundError("Mining subscription")
        return {
            "ledger": [e.to_dict() for e in await self._subs.list_ledger(subscription_id)],
            "earnings": [e.to_dict() for e in await self._subs.list_earnings(subscription_id)],
        }


def _check_days(days) -> int:
    if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= MAX_ACCRUAL_DAYS:
        raise ValidationError(f"days must be an integer between 1 and {MAX_ACCRUAL_DAYS}")
    return days
