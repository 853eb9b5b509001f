import time
from decimal import Decimal
from typing import List, Optional, Tuple

import aiosqlite

from .contracts import contract_from_row
from .records import Earning, LedgerEntry, Subscription, money
from ._base import BaseRepo

BALANCE_COLUMNS = {
    "earnings": "earnings",
    "deposit": "amount_deposited",
}

_COLS = ("s.id, s.miner_id, s.mining_contract_id, s.amount_deposited, s.earnings, s.currency, "
         "s.status, s.deposit_status, s.auto_accrue, s.first_payment_at, s.created_at, s.updated_at, "
         "c.id, c.mining_server_id, c.period_return, c.period, c.is_active, c.created_at, "
         "c.updated_at, srv.name")
_FROM = ("FROM mining_subscriptions s "
         "LEFT JOIN mining_contracts c ON c.id = s.mining_contract_id "
         "LEFT JOIN mining_servers srv ON srv.id = c.mining_server_id")


def _subscription(row) -> Subscription:
    contract = contract_from_row(row[12:20]) if row[12] is not None else None
    return Subscription(
        id=row[0],
        miner_id=row[1],
        mining_contract_id=row[2],
        amount_deposited=money(row[3]),
        earnings=money(row[4]),
        currency=row[5],
        status=row[6],
        deposit_status=row[7],
        auto_accrue=bool(row[8]),
        first_payment_at=row[9],
        created_at=row[10],
        updated_at=row[11],
        contract=contract,
    )


class SubscriptionRepo(BaseRepo):
    """Mining subscriptions plus their ledger and earnings history."""

    async def create_with_payment(
        self, miner_id: int, contract_id: int, amount: Decimal,
        currency: str = "USD", auto_accrue: bool = True,
    ) -> Tuple[Subscription, int]:
        """Insert a pending subscription and its initial payment transaction."""
        now = time.time()
        async with self.transaction() as db:
            cursor = await db.execute(
                "INSERT INTO mining_subscriptions (miner_id, mining_contract_id, amount_deposited, "
                "earnings, currency, status, deposit_status, auto_accrue, created_at, updated_at) "
                "VALUES (?, ?, ?, 0, ?, 'pending', 'pending', ?, ?, ?)",
                (miner_id, contract_id, float(amount), currency, 1 if auto_accrue else 0, now, now),
            )
            subscription_id = cursor.lastrowid
            cursor = await db.execute(
                "INSERT INTO transactions (miner_id, entity, entity_id, amount_usd, status, "
                "created_at, updated_at) VALUES (?, 'subscription', ?, ?, 'initialized', ?, ?)",
                (miner_id, subscription_id, float(amount), now, now),
            )
            transaction_id = cursor.lastrowid
        return await self.get(subscription_id), transaction_id

    async def get(self, subscription_id: int) -> Optional[Subscription]:
        row = await self._fetchone(f"SELECT {_COLS} {_FROM} WHERE s.id = ?", (subscription_id,))
        return _subscription(row) if row else None

    async def list_all(self, status: Optional[str] = None, miner_id: Optional[int] = None,
                       limit: Optional[int] = None, offset: int = 0) -> List[Subscription]:
        query = f"SELECT {_COLS} {_FROM} WHERE 1 = 1"
        params: tuple = ()
        if status:
            query += " AND s.status = ?"
            params += (status,)
        if miner_id is not None:
            query += " AND s.miner_id = ?"
            params += (miner_id,)
        query += " ORDER BY s.created_at DESC, s.id DESC"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params += (limit, offset)
        return [_subscription(row) for row in await self._fetchall(query, params)]

    async def count(self, status: Optional[str] = None, miner_id: Optional[int] = None) -> int:
        query = "SELECT COUNT(*) FROM mining_subscriptions WHERE 1 = 1"
        params: tuple = ()
        if status:
            query += " AND status = ?"
            params += (status,)
        if miner_id is not None:
            query += " AND miner_id = ?"
            params += (miner_id,)
        return await self._count(query, params)

    async def list_accruable(self) -> List[Subscription]:
        rows = await self._fetchall(
            f"SELECT {_COLS} {_FROM} WHERE s.status = 'active' AND s.auto_accrue = 1 ORDER BY s.id"
        )
        return [_subscription(row) for row in rows]

    async def set_status(self, subscription_id: int, status: str):
        await self._write(
            "UPDATE mining_subscriptions SET status = ?, updated_at = ? WHERE id = ?",
            (status, time.time(), subscription_id),
        )

    async def activate_in(self, db: aiosqlite.Connection, subscription_id: int):
        """Mark a pending subscription funded and active (caller holds the transaction)."""
        now = time.time()
        await db.execute(
            "UPDATE mining_subscriptions SET status = 'active', deposit_status = 'complete', "
            "first_payment_at = COALESCE(first_payment_at, ?), updated_at = ? "
            "WHERE id = ? AND status = 'pending'",
            (now, now, subscription_id),
        )

    # -------------------------------------------------------------------
    # Ledger writes (caller holds the transaction)
    # -------------------------------------------------------------------

    async def write_balance(
        self, db: aiosqlite.Connection, subscription: Subscription, field: str,
        mode: str, amount: Decimal, new_balance: Decimal, reference: str = "",
    ) -> Subscription:
        column = BALANCE_COLUMNS[field]
        now = time.time()
        await db.execute(
            f"UPDATE mining_subscriptions SET {column} = ?, updated_at = ? WHERE id = ?",
            (float(new_balance), now, subscription.id),
        )
        await db.execute(
            "INSERT INTO ledger_entries (subscription_id, field, mode, amount, balance_before, "
            "balance_after, reference, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (subscription.id, field, mode, float(amount), float(subscription.balance(field)),
             float(new_balance), reference, now),
        )
        return await self.get(subscription.id)

    async def record_earning(self, db: aiosqlite.Connection, subscription_id: int,
                             amount: Decimal, days: int):
        await db.execute(
            "INSERT INTO earnings (subscription_id, amount, days, created_at) VALUES (?, ?, ?, ?)",
            (subscription_id, float(amount), days, time.time()),
        )

    # -------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------

    async def list_ledger(self, subscription_id: int) -> List[LedgerEntry]:
        rows = await self._fetchall(
            "SELECT id, subscription_id, field, mode, amount, balance_before, balance_after, "
            "reference, created_at FROM ledger_entries WHERE subscription_id = ? ORDER BY id",
            (subscription_id,),
        )
        return [
            LedgerEntry(
                id=row[0],
                subscription_id=row[1],
                field=row[2],
                mode=row[3],
                amount=money(row[4]),
                balance_before=money(row[5]),
                balance_after=money(row[6]),
                reference=row[7],
                created_at=row[8],
            )
            for row in rows
        ]

    async def list_earnings(self, subscription_id: int) -> List[Earning]:
        rows = await self._fetchall(
            "SELECT id, subscription_id, amount, days, created_at FROM earnings "
            "WHERE subscription_id = ? ORDER BY id",
            (subscription_id,),
        )
        return [
            Earning(id=row[0], subscription_id=row[1], amount=money(row[2]), days=row[3],
                    created_at=row[4])
            for row in rows
        ]
