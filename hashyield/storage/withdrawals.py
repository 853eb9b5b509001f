import time
from decimal import Decimal
from typing import List, Optional

import aiosqlite

from .records import Withdrawal, money
from ._base import BaseRepo

_COLS = ("id, miner_id, subscription_id, type, amount, currency, destination, status, "
         "rejection_reason, transaction_hash, processed_by, created_at, updated_at")


def _withdrawal(row) -> Withdrawal:
    return Withdrawal(
        id=row[0],
        miner_id=row[1],
        subscription_id=row[2],
        type=row[3],
        amount=money(row[4]),
        currency=row[5],
        destination=row[6],
        status=row[7],
        rejection_reason=row[8],
        transaction_hash=row[9],
        processed_by=row[10],
        created_at=row[11],
        updated_at=row[12],
    )


class WithdrawalRepo(BaseRepo):
    """Withdrawal requests. Inserts and status changes run inside a caller's transaction."""

    async def insert_in(
        self, db: aiosqlite.Connection, miner_id: int, subscription_id: int,
        withdrawal_type: str, amount: Decimal, currency: str = "USD", destination: str = "",
    ) -> int:
        now = time.time()
        cursor = await db.execute(
            "INSERT INTO withdrawals (miner_id, subscription_id, type, amount, currency, "
            "destination, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, 'pending', ?, ?)",
            (miner_id, subscription_id, withdrawal_type, float(amount), currency, destination, now, now),
        )
        return cursor.lastrowid

    async def update_status_in(
        self, db: aiosqlite.Connection, withdrawal_id: int, status: str,
        rejection_reason: Optional[str] = None, transaction_hash: Optional[str] = None,
        processed_by: Optional[int] = None,
    ):
        await db.execute(
            "UPDATE withdrawals SET status = ?, "
            "rejection_reason = COALESCE(?, rejection_reason), "
            "transaction_hash = COALESCE(?, transaction_hash), "
            "processed_by = COALESCE(?, processed_by), updated_at = ? WHERE id = ?",
            (status, rejection_reason, transaction_hash, processed_by, time.time(), withdrawal_id),
        )

    async def get(self, withdrawal_id: int) -> Optional[Withdrawal]:
        row = await self._fetchone(f"SELECT {_COLS} FROM withdrawals WHERE id = ?", (withdrawal_id,))
        return _withdrawal(row) if row else None

    async def list_all(self, status: Optional[str] = None, miner_id: Optional[int] = None,
                       limit: Optional[int] = None, offset: int = 0) -> List[Withdrawal]:
        query = f"SELECT {_COLS} FROM withdrawals WHERE 1 = 1"
        params: tuple = ()
        if status:
            query += " AND status = ?"
            params += (status,)
        if miner_id is not None:
            query += " AND miner_id = ?"
            params += (miner_id,)
        query += " ORDER BY created_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params += (limit, offset)
        return [_withdrawal(row) for row in await self._fetchall(query, params)]

    async def count(self, status: Optional[str] = None, miner_id: Optional[int] = None) -> int:
        query = "SELECT COUNT(*) FROM withdrawals WHERE 1 = 1"
        params: tuple = ()
        if status:
            query += " AND status = ?"
            params += (status,)
        if miner_id is not None:
            query += " AND miner_id = ?"
            params += (miner_id,)
        return await self._count(query, params)

    async def stats(self) -> dict:
        rows = await self._fetchall(
            "SELECT status, COUNT(*), COALESCE(SUM(amount), 0) FROM withdrawals GROUP BY status"
        )
        by_status = {row[0]: {"count": row[1], "amount": money(row[2])} for row in rows}
        return {
            "total": sum(v["count"] for v in by_status.values()),
            "by_status": by_status,
            "completed_amount": by_status.get("completed", {}).get("amount", money(0)),
            "pending_amount": by_status.get("pending", {}).get("amount", money(0)),
        }
