import time
from typing import List, Optional, Tuple

from .records import Miner, User
from ._base import BaseRepo

_USER_COLS = "id, email, username, role, created_at, updated_at"
_MINER_COLS = ("m.id, m.user_id, m.firstname, m.lastname, m.country, m.age, m.phone, "
               "m.wallet_address, m.is_active, m.created_at, m.updated_at, u.email")

MINER_FIELDS = ("firstname", "lastname", "country", "age", "phone", "wallet_address", "is_active")


def _user(row) -> User:
    return User(
        id=row[0],
        email=row[1],
        username=row[2],
        role=row[3],
        created_at=row[4],
        updated_at=row[5],
    )


def _miner(row) -> Miner:
    return Miner(
        id=row[0],
        user_id=row[1],
        firstname=row[2],
        lastname=row[3],
        country=row[4],
        age=row[5],
        phone=row[6],
        wallet_address=row[7],
        is_active=bool(row[8]),
        created_at=row[9],
        updated_at=row[10],
        email=row[11] or "",
    )


class UserRepo(BaseRepo):
    """CRUD operations for the users and miners tables."""

    async def create_user(self, email: str, username: str, password_hash: str, role: str) -> User:
        now = time.time()
        cursor = await self._write(
            "INSERT INTO users (email, username, password_hash, role, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (email, username, password_hash, role, now, now),
        )
        return await self.get(cursor.lastrowid)

    async def create_miner_account(
        self, email: str, username: str, password_hash: str,
        firstname: str, lastname: str, country: str = "", age: int = 0,
        phone: str = "", wallet_address: str = "",
    ) -> Tuple[User, Miner]:
        """Insert the user row and its miner profile atomically."""
        now = time.time()
        async with self.transaction() as db:
            cursor = await db.execute(
                "INSERT INTO users (email, username, password_hash, role, created_at, updated_at) "
                "VALUES (?, ?, ?, 'miner', ?, ?)",
                (email, username, password_hash, now, now),
            )
            user_id = cursor.lastrowid
            cursor = await db.execute(
                "INSERT INTO miners (user_id, firstname, lastname, country, age, phone, "
                "wallet_address, is_active, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?)",
                (user_id, firstname, lastname, country, age, phone, wallet_address, now, now),
            )
            miner_id = cursor.lastrowid
        return await self.get(user_id), await self.get_miner(miner_id)

    async def get(self, user_id: int) -> Optional[User]:
        row = await self._fetchone(f"SELECT {_USER_COLS} FROM users WHERE id = ?", (user_id,))
        return _user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        row = await self._fetchone(
            f"SELECT {_USER_COLS} FROM users WHERE email = ? COLLATE NOCASE", (email,)
        )
        return _user(row) if row else None

    async def get_by_username(self, username: str) -> Optional[User]:
        row = await self._fetchone(f"SELECT {_USER_COLS} FROM users WHERE username = ?", (username,))
        return _user(row) if row else None

    async def get_password_hash(self, user_id: int) -> Optional[str]:
        row = await self._fetchone("SELECT password_hash FROM users WHERE id = ?", (user_id,))
        return row[0] if row else None

    async def get_miner(self, miner_id: int) -> Optional[Miner]:
        row = await self._fetchone(
            f"SELECT {_MINER_COLS} FROM miners m JOIN users u ON u.id = m.user_id WHERE m.id = ?",
            (miner_id,),
        )
        return _miner(row) if row else None

    async def get_miner_by_user(self, user_id: int) -> Optional[Miner]:
        row = await self._fetchone(
            f"SELECT {_MINER_COLS} FROM miners m JOIN users u ON u.id = m.user_id WHERE m.user_id = ?",
            (user_id,),
        )
        return _miner(row) if row else None

    async def list_miners(self, limit: Optional[int] = None, offset: int = 0) -> List[Miner]:
        query = (f"SELECT {_MINER_COLS} FROM miners m JOIN users u ON u.id = m.user_id "
                 "ORDER BY m.created_at DESC")
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params = (limit, offset)
        return [_miner(row) for row in await self._fetchall(query, params)]

    async def count_miners(self) -> int:
        return await self._count("SELECT COUNT(*) FROM miners")

    async def update_miner(self, miner_id: int, changes: dict) -> Optional[Miner]:
        changes = {k: v for k, v in changes.items() if k in MINER_FIELDS}
        if changes:
            assignments = ", ".join(f"{k} = ?" for k in changes)
            await self._write(
                f"UPDATE miners SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), time.time(), miner_id),
            )
        return await self.get_miner(miner_id)
