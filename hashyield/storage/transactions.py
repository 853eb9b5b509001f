import time
from decimal import Decimal
from typing import List, Optional

import aiosqlite

from .records import Transaction, money
from ._base import BaseRepo

_COLS = "id, miner_id, entity, entity_id, amount_usd, status, created_at, updated_at"


def _transaction(row) -> Transaction:
    return Transaction(
        id=row[0],
        miner_id=row[1],
        entity=row[2],
        entity_id=row[3],
        amount_usd=money(row[4]),
        status=row[5],
        created_at=row[6],
        updated_at=row[7],
    )


class TransactionRepo(BaseRepo):
    """Payment records for subscription deposits and KYC fees."""

    async def create(self, miner_id: int, entity: str, entity_id: int, amount_usd: Decimal,
                     status: str = "initialized") -> Transaction:
        now = time.time()
        cursor = await self._write(
            "INSERT INTO transactions (miner_id, entity, entity_id, amount_usd, status, "
            "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (miner_id, entity, entity_id, float(amount_usd), status, now, now),
        )
        return await self.get(cursor.lastrowid)

    async def get(self, transaction_id: int) -> Optional[Transaction]:
        row = await self._fetchone(f"SELECT {_COLS} FROM transactions WHERE id = ?", (transaction_id,))
        return _transaction(row) if row else None

    async def list_all(self, status: Optional[str] = None, miner_id: Optional[int] = None,
                       limit: Optional[int] = None, offset: int = 0) -> List[Transaction]:
        query = f"SELECT {_COLS} FROM transactions WHERE 1 = 1"
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
        return [_transaction(row) for row in await self._fetchall(query, params)]

    async def count(self, status: Optional[str] = None, miner_id: Optional[int] = None) -> int:
        query = "SELECT COUNT(*) FROM transactions WHERE 1 = 1"
        params: tuple = ()
        if status:
            query += " AND status = ?"
            params += (status,)
        if miner_id is not None:
            query += " AND miner_id = ?"
            params += (miner_id,)
        return await self._count(query, params)

    async def update_status_in(self, db: aiosqlite.Connection, transaction_id: int, status: str):
        await db.execute(
            "UPDATE transactions SET status = ?, updated_at = ? WHERE id = ?",
            (status, time.time(), transaction_id),
        )

    async def stats(self) -> dict:
        rows = await self._fetchall(
            "SELECT status, COUNT(*), COALESCE(SUM(amount_usd), 0) FROM transactions GROUP BY status"
        )
        counts = {row[0]: row[1] for row in rows}
        volume = {row[0]: money(row[2]) for row in rows}
        total = sum(counts.values())
        successful = counts.get("successful", 0)
        return {
            "total": total,
            "by_status": counts,
            "total_volume": money(sum(volume.values(), Decimal("0"))),
            "successful_volume": volume.get("successful", money(0)),
            "success_rate": round(successful / total * 100, 2) if total else 0.0,
        }
