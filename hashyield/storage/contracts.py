import time
from typing import List, Optional

from .records import MiningContract, money
from ._base import BaseRepo

_COLS = ("c.id, c.mining_server_id, c.period_return, c.period, c.is_active, "
         "c.created_at, c.updated_at, s.name")
_FROM = "FROM mining_contracts c LEFT JOIN mining_servers s ON s.id = c.mining_server_id"

CONTRACT_FIELDS = ("mining_server_id", "period_return", "period", "is_active")


def contract_from_row(row) -> MiningContract:
    return MiningContract(
        id=row[0],
        mining_server_id=row[1],
        period_return=money(row[2]),
        period=row[3],
        is_active=bool(row[4]),
        created_at=row[5],
        updated_at=row[6],
        server_name=row[7],
    )


class ContractRepo(BaseRepo):
    """CRUD operations for the mining_contracts table."""

    async def create(self, mining_server_id: int, period_return, period: str) -> MiningContract:
        now = time.time()
        cursor = await self._write(
            "INSERT INTO mining_contracts (mining_server_id, period_return, period, is_active, "
            "created_at, updated_at) VALUES (?, ?, ?, 1, ?, ?)",
            (mining_server_id, float(period_return), period, now, now),
        )
        return await self.get(cursor.lastrowid)

    async def get(self, contract_id: int) -> Optional[MiningContract]:
        row = await self._fetchone(f"SELECT {_COLS} {_FROM} WHERE c.id = ?", (contract_id,))
        return contract_from_row(row) if row else None

    async def list_all(self, server_id: Optional[int] = None, period: Optional[str] = None,
                       active_only: bool = False) -> List[MiningContract]:
        query = f"SELECT {_COLS} {_FROM} WHERE 1 = 1"
        params: tuple = ()
        if server_id is not None:
            query += " AND c.mining_server_id = ?"
            params += (server_id,)
        if period is not None:
            query += " AND c.period = ?"
            params += (period,)
        if active_only:
            query += " AND c.is_active = 1"
        query += " ORDER BY c.created_at DESC, c.id DESC"
        return [contract_from_row(row) for row in await self._fetchall(query, params)]

    async def update(self, contract_id: int, changes: dict) -> Optional[MiningContract]:
        changes = {k: v for k, v in changes.items() if k in CONTRACT_FIELDS}
        if "period_return" in changes:
            changes["period_return"] = float(changes["period_return"])
        if changes:
            assignments = ", ".join(f"{k} = ?" for k in changes)
            await self._write(
                f"UPDATE mining_contracts SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), time.time(), contract_id),
            )
        return await self.get(contract_id)

    async def set_active(self, contract_id: int, active: bool):
        await self._write(
            "UPDATE mining_contracts SET is_active = ?, updated_at = ? WHERE id = ?",
            (1 if active else 0, time.time(), contract_id),
        )
