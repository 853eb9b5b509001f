import time
from typing import List, Optional

from .records import AdminWallet, Bank
from ._base import BaseRepo

_BANK_COLS = ("id, name, account_number, account_name, branch, swift_code, is_active, "
              "created_at, updated_at")
_WALLET_COLS = ("id, currency, currency_abbreviation, address, logo, is_active, "
                "created_at, updated_at")

BANK_FIELDS = ("name", "account_number", "account_name", "branch", "swift_code", "is_active")
WALLET_FIELDS = ("currency", "currency_abbreviation", "address", "logo", "is_active")


def _bank(row) -> Bank:
    return Bank(
        id=row[0],
        name=row[1],
        account_number=row[2],
        account_name=row[3],
        branch=row[4],
        swift_code=row[5],
        is_active=bool(row[6]),
        created_at=row[7],
        updated_at=row[8],
    )


def _wallet(row) -> AdminWallet:
    return AdminWallet(
        id=row[0],
        currency=row[1],
        currency_abbreviation=row[2],
        address=row[3],
        logo=row[4],
        is_active=bool(row[5]),
        created_at=row[6],
        updated_at=row[7],
    )


class BankRepo(BaseRepo):
    """CRUD operations for the banks table."""

    async def create(self, name: str, account_number: str, account_name: str,
                     branch: Optional[str] = None, swift_code: Optional[str] = None) -> Bank:
        now = time.time()
        cursor = await self._write(
            "INSERT INTO banks (name, account_number, account_name, branch, swift_code, "
            "is_active, created_at, updated_at) VALUES (?, ?, ?, ?, ?, 1, ?, ?)",
            (name, account_number, account_name, branch, swift_code, now, now),
        )
        return await self.get(cursor.lastrowid)

    async def get(self, bank_id: int) -> Optional[Bank]:
        row = await self._fetchone(f"SELECT {_BANK_COLS} FROM banks WHERE id = ?", (bank_id,))
        return _bank(row) if row else None

    async def get_by_account_number(self, account_number: str) -> Optional[Bank]:
        row = await self._fetchone(
            f"SELECT {_BANK_COLS} FROM banks WHERE account_number = ?", (account_number,)
        )
        return _bank(row) if row else None

    async def list_all(self, active_only: bool = False) -> List[Bank]:
        query = f"SELECT {_BANK_COLS} FROM banks"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name ASC"
        return [_bank(row) for row in await self._fetchall(query)]

    async def update(self, bank_id: int, changes: dict) -> Optional[Bank]:
        changes = {k: v for k, v in changes.items() if k in BANK_FIELDS}
        if changes:
            assignments = ", ".join(f"{k} = ?" for k in changes)
            await self._write(
                f"UPDATE banks SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), time.time(), bank_id),
            )
        return await self.get(bank_id)

    async def delete(self, bank_id: int):
        await self._write("DELETE FROM banks WHERE id = ?", (bank_id,))


class WalletRepo(BaseRepo):
    """CRUD operations for the admin_wallets table."""

    async def create(self, currency: str, currency_abbreviation: str, address: str,
                     logo: str = "") -> AdminWallet:
        now = time.time()
        cursor = await self._write(
            "INSERT INTO admin_wallets (currency, currency_abbreviation, address, logo, "
            "is_active, created_at, updated_at) VALUES (?, ?, ?, ?, 1, ?, ?)",
            (currency, currency_abbreviation, address, logo, now, now),
        )
        return await self.get(cursor.lastrowid)

    async def get(self, wallet_id: int) -> Optional[AdminWallet]:
        row = await self._fetchone(
            f"SELECT {_WALLET_COLS} FROM admin_wallets WHERE id = ?", (wallet_id,)
        )
        return _wallet(row) if row else None

    async def get_by_address(self, address: str) -> Optional[AdminWallet]:
        row = await self._fetchone(
            f"SELECT {_WALLET_COLS} FROM admin_wallets WHERE address = ?", (address,)
        )
        return _wallet(row) if row else None

    async def list_all(self, active_only: bool = False) -> List[AdminWallet]:
        query = f"SELECT {_WALLET_COLS} FROM admin_wallets"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY currency ASC"
        return [_wallet(row) for row in await self._fetchall(query)]

    async def update(self, wallet_id: int, changes: dict) -> Optional[AdminWallet]:
        changes = {k: v for k, v in changes.items() if k in WALLET_FIELDS}
        if changes:
            assignments = ", ".join(f"{k} = ?" for k in changes)
            await self._write(
                f"UPDATE admin_wallets SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), time.time(), wallet_id),
            )
        return await self.get(wallet_id)

    async def delete(self, wallet_id: int):
        await self._write("DELETE FROM admin_wallets WHERE id = ?", (wallet_id,))
