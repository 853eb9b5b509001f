import time
from typing import List, Optional

from .records import MiningServer
from ._base import BaseRepo

_COLS = "id, name, hash_rate, power_consumption_kwh, is_active, created_at, updated_at"

SERVER_FIELDS = ("name", "hash_rate", "power_consumption_kwh", "is_active")


def _server(row, contracts: tuple = ()) -> MiningServer:
    return MiningServer(
        id=row[0],
        name=row[1],
        hash_rate=row[2],
        power_consumption_kwh=row[3],
        is_active=bool(row[4]),
        created_at=row[5],
        updated_at=row[6],
        contracts=contracts,
    )


class ServerRepo(BaseRepo):
    """CRUD operations for the mining_servers table."""

    async def create(self, name: str, hash_rate: str, power_consumption_kwh: str) -> MiningServer:
        now = time.time()
        cursor = await self._write(
            "INSERT INTO mining_servers (name, hash_rate, power_consumption_kwh, is_active, "
            "created_at, updated_at) VALUES (?, ?, ?, 1, ?, ?)",
            (name, hash_rate, power_consumption_kwh, now, now),
        )
        return await self.get(cursor.lastrowid)

    async def get(self, server_id: int) -> Optional[MiningServer]:
        row = await self._fetchone(f"SELECT {_COLS} FROM mining_servers WHERE id = ?", (server_id,))
        return _server(row) if row else None

    async def get_by_name(self, name: str) -> Optional[MiningServer]:
        row = await self._fetchone(f"SELECT {_COLS} FROM mining_servers WHERE name = ?", (name,))
        return _server(row) if row else None

    async def list_all(self, active_only: bool = False) -> List[MiningServer]:
        query = f"SELECT {_COLS} FROM mining_servers"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name ASC"
        return [_server(row) for row in await self._fetchall(query)]

    async def update(self, server_id: int, changes: dict) -> Optional[MiningServer]:
        changes = {k: v for k, v in changes.items() if k in SERVER_FIELDS}
        if changes:
            assignments = ", ".join(f"{k} = ?" for k in changes)
            await self._write(
                f"UPDATE mining_servers SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), time.time(), server_id),
            )
        return await self.get(server_id)

    async def set_active(self, server_id: int, active: bool):
        await self._write(
            "UPDATE mining_servers SET is_active = ?, updated_at = ? WHERE id = ?",
            (1 if active else 0, time.time(), server_id),
        )
