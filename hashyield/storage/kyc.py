import time
from decimal import Decimal
from typing import List, Optional, Tuple

import aiosqlite

from .records import KYC, KYCFee, money
from ._base import BaseRepo

_KYC_COLS = ("id, miner_id, id_card, status, reviewed_by, reviewed_at, rejection_reason, "
             "created_at, updated_at")
_FEE_COLS = "id, miner_id, amount, is_paid, paid_at, created_at, updated_at"


def _kyc(row) -> KYC:
    return KYC(
        id=row[0],
        miner_id=row[1],
        id_card=row[2],
        status=row[3],
        reviewed_by=row[4],
        reviewed_at=row[5],
        rejection_reason=row[6],
        created_at=row[7],
        updated_at=row[8],
    )


def _fee(row) -> KYCFee:
    return KYCFee(
        id=row[0],
        miner_id=row[1],
        amount=money(row[2]),
        is_paid=bool(row[3]),
        paid_at=row[4],
        created_at=row[5],
        updated_at=row[6],
    )


class KYCRepo(BaseRepo):
    """Identity verification records, one per miner."""

    async def create_with_fee(self, miner_id: int, id_card: str,
                              fee: Decimal) -> Tuple[KYC, KYCFee]:
        now = time.time()
        async with self.transaction() as db:
            cursor = await db.execute(
                "INSERT INTO kyc (miner_id, id_card, status, created_at, updated_at) "
                "VALUES (?, ?, 'pending', ?, ?)",
                (miner_id, id_card, now, now),
            )
            kyc_id = cursor.lastrowid
            cursor = await db.execute(
                "INSERT INTO kyc_fees (miner_id, amount, is_paid, created_at, updated_at) "
                "VALUES (?, ?, 0, ?, ?)",
                (miner_id, float(fee), now, now),
            )
            fee_id = cursor.lastrowid
        kyc = await self.get(kyc_id)
        row = await self._fetchone(f"SELECT {_FEE_COLS} FROM kyc_fees WHERE id = ?", (fee_id,))
        return kyc, _fee(row)

    async def get(self, kyc_id: int) -> Optional[KYC]:
        row = await self._fetchone(f"SELECT {_KYC_COLS} FROM kyc WHERE id = ?", (kyc_id,))
        return _kyc(row) if row else None

    async def get_by_miner(self, miner_id: int) -> Optional[KYC]:
        row = await self._fetchone(f"SELECT {_KYC_COLS} FROM kyc WHERE miner_id = ?", (miner_id,))
        return _kyc(row) if row else None

    async def list_all(self, status: Optional[str] = None) -> List[KYC]:
        query = f"SELECT {_KYC_COLS} FROM kyc"
        params: tuple = ()
        if status:
            query += " WHERE status = ?"
            params = (status,)
        query += " ORDER BY created_at DESC, id DESC"
        return [_kyc(row) for row in await self._fetchall(query, params)]

    async def update_status(self, kyc_id: int, status: str, reviewed_by: Optional[int],
                            rejection_reason: Optional[str] = None) -> Optional[KYC]:
        now = time.time()
        await self._write(
            "UPDATE kyc SET status = ?, reviewed_by = ?, reviewed_at = ?, rejection_reason = ?, "
            "updated_at = ? WHERE id = ?",
            (status, reviewed_by, now, rejection_reason, now, kyc_id),
        )
        return await self.get(kyc_id)

    async def stats(self) -> dict:
        rows = await self._fetchall("SELECT status, COUNT(*) FROM kyc GROUP BY status")
        counts = {row[0]: row[1] for row in rows}
        total = sum(counts.values())
        reviewed = counts.get("successful", 0) + counts.get("failed", 0)
        return {
            "total": total,
            "pending": counts.get("pending", 0),
            "successful": counts.get("successful", 0),
            "failed": counts.get("failed", 0),
            "approval_rate": round(counts.get("successful", 0) / reviewed * 100, 2) if reviewed else 0.0,
        }


class KYCFeeRepo(BaseRepo):
    """Fees charged for KYC review."""

    async def get(self, fee_id: int) -> Optional[KYCFee]:
        row = await self._fetchone(f"SELECT {_FEE_COLS} FROM kyc_fees WHERE id = ?", (fee_id,))
        return _fee(row) if row else None

    async def list_all(self, miner_id: Optional[int] = None,
                       is_paid: Optional[bool] = None) -> List[KYCFee]:
        query = f"SELECT {_FEE_COLS} FROM kyc_fees WHERE 1 = 1"
        params: tuple = ()
        if miner_id is not None:
            query += " AND miner_id = ?"
            params += (miner_id,)
        if is_paid is not None:
            query += " AND is_paid = ?"
            params += (1 if is_paid else 0,)
        query += " ORDER BY created_at DESC, id DESC"
        return [_fee(row) for row in await self._fetchall(query, params)]

    async def mark_paid_in(self, db: aiosqlite.Connection, fee_id: int):
        now = time.time()
        await db.execute(
            "UPDATE kyc_fees SET is_paid = 1, paid_at = COALESCE(paid_at, ?), updated_at = ? "
            "WHERE id = ?",
            (now, now, fee_id),
        )

    async def mark_paid(self, fee_id: int) -> Optional[KYCFee]:
        async with self.transaction() as db:
            await self.mark_paid_in(db, fee_id)
        return await self.get(fee_id)

    async def stats(self) -> dict:
        row = await self._fetchone(
            "SELECT COUNT(*), COALESCE(SUM(is_paid), 0), "
            "COALESCE(SUM(CASE WHEN is_paid = 1 THEN amount ELSE 0 END), 0), "
            "COALESCE(SUM(CASE WHEN is_paid = 0 THEN amount ELSE 0 END), 0) FROM kyc_fees"
        )
        total, paid, collected, outstanding = row
        return {
            "total": total,
            "paid": paid,
            "unpaid": total - paid,
            "collected": money(collected),
            "outstanding": money(outstanding),
        }
