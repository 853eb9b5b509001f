"""
catalog.py - Admin-managed reference data.

Mining servers and the contracts offered on them, plus the bank accounts
and crypto wallets miners pay into. Uniquely keyed records (server name,
bank account number, wallet address) are pre-checked so callers get a clean
ConflictError; the database UNIQUE constraint remains the real guard, and a
lost race surfaces as the same ConflictError from the repository.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, List, Optional

from hashyield.calculations import PERIODS, is_valid_period
from hashyield.errors import ConflictError, NotFoundError, ValidationError
from hashyield.ledger import parse_amount

if TYPE_CHECKING:
    from hashyield.storage import BankRepo, ContractRepo, ServerRepo, WalletRepo
    from hashyield.storage.records import AdminWallet, Bank, MiningContract, MiningServer

logger = logging.getLogger("catalog")


def _required(data: dict, *names: str) -> dict:
    missing = [n for n in names if not str(data.get(n) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", details=missing)
    return {n: str(data[n]).strip() for n in names}


def _clean(changes: dict, allowed: tuple, required: tuple = ()) -> dict:
    cleaned = {}
    for key, value in changes.items():
        if key not in allowed or value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value and key in required:
                raise ValidationError(f"{key} cannot be empty")
        cleaned[key] = value
    return cleaned


class ServerService:

    def __init__(self, servers: "ServerRepo", contracts: "ContractRepo"):
        self._servers = servers
        self._contracts = contracts

    async def create(self, data: dict) -> "MiningServer":
        fields = _required(data, "name", "hash_rate", "power_consumption_kwh")
        if await self._servers.get_by_name(fields["name"]):
            raise ConflictError("Mining server with this name already exists")
        server = await self._servers.create(**fields)
        logger.info("Created mining server %d name=%s", server.id, server.name)
        return server

    async def get(self, server_id: int) -> "MiningServer":
        server = await self._servers.get(server_id)
        if server is None:
            raise NotFoundError("Mining server")
        return server

    async def list(self, active_only: bool = False) -> List["MiningServer"]:
        return await self._servers.list_all(active_only=active_only)

    async def list_with_contracts(self) -> List["MiningServer"]:
        servers = await self._servers.list_all(active_only=True)
        contracts = await self._contracts.list_all(active_only=True)
        by_server = {}
        for contract in contracts:
            by_server.setdefault(contract.mining_server_id, []).append(contract)
        return [
            replace(s, contracts=tuple(by_server.get(s.id, ())))
            for s in servers
        ]

    async def update(self, server_id: int, changes: dict) -> "MiningServer":
        server = await self.get(server_id)
        changes = _clean(
            changes, ("name", "hash_rate", "power_consumption_kwh", "is_active"),
            required=("name", "hash_rate", "power_consumption_kwh"),
        )
        if "name" in changes and changes["name"] != server.name:
            if await self._servers.get_by_name(changes["name"]):
                raise ConflictError("Mining server with this name already exists")
        return await self._servers.update(server_id, changes)

    async def deactivate(self, server_id: int):
        await self.get(server_id)
        await self._servers.set_active(server_id, False)
        logger.info("Deactivated mining server %d", server_id)


class ContractService:

    def __init__(self, contracts: "ContractRepo", servers: "ServerRepo"):
        self._contracts = contracts
        self._servers = servers

    @staticmethod
    def _check_period(period) -> str:
        if not is_valid_period(period):
            raise ValidationError(f"period must be one of: {', '.join(PERIODS)}")
        return period.lower()

    @staticmethod
    def _check_return(value):
        period_return = parse_amount(value, "period_return")
        if period_return < 0:
            raise ValidationError("period_return cannot be negative")
        return period_return

    async def create(self, mining_server_id: int, period_return, period: str) -> "MiningContract":
        period = self._check_period(period)
        period_return = self._check_return(period_return)
        server = await self._servers.get(mining_server_id)
        if server is None:
            raise NotFoundError("Mining server")
        if not server.is_active:
            raise ValidationError("Mining server is not active")
        contract = await self._contracts.create(mining_server_id, period_return, period)
        logger.info(
            "Created contract %d on server %d: %s%% %s",
            contract.id, mining_server_id, period_return, period,
        )
        return contract

    async def get(self, contract_id: int) -> "MiningContract":
        contract = await self._contracts.get(contract_id)
        if contract is None:
            raise NotFoundError("Mining contract")
        return contract

    async def list(self, server_id: Optional[int] = None, period: Optional[str] = None,
                   active_only: bool = False) -> List["MiningContract"]:
        if period is not None:
            period = self._check_period(period)
        if server_id is not None and await self._servers.get(server_id) is None:
            raise NotFoundError("Mining server")
        return await self._contracts.list_all(server_id=server_id, period=period,
                                              active_only=active_only)

    async def update(self, contract_id: int, changes: dict) -> "MiningContract":
        await self.get(contract_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        if "period" in changes:
            changes["period"] = self._check_period(changes["period"])
        if "period_return" in changes:
            changes["period_return"] = self._check_return(changes["period_return"])
        if "mining_server_id" in changes and await self._servers.get(changes["mining_server_id"]) is None:
            raise NotFoundError("Mining server")
        return await self._contracts.update(contract_id, changes)

    async def deactivate(self, contract_id: int):
        await self.get(contract_id)
        await self._contracts.set_active(contract_id, False)
        logger.info("Deactivated contract %d", contract_id)


class BankService:

    def __init__(self, banks: "BankRepo"):
        self._banks = banks

    async def create(self, data: dict) -> "Bank":
        fields = _required(data, "name", "account_number", "account_name")
        if await self._banks.get_by_account_number(fields["account_number"]):
            raise ConflictError("Bank with this account number already exists")
        bank = await self._banks.create(
            branch=data.get("branch"), swift_code=data.get("swift_code"), **fields,
        )
        logger.info("Created bank %d account=%s", bank.id, bank.account_number)
        return bank

    async def get(self, bank_id: int) -> "Bank":
        bank = await self._banks.get(bank_id)
        if bank is None:
            raise NotFoundError("Bank")
        return bank

    async def list(self, active_only: bool = False) -> List["Bank"]:
        return await self._banks.list_all(active_only=active_only)

    async def update(self, bank_id: int, changes: dict) -> "Bank":
        bank = await self.get(bank_id)
        changes = _clean(
            changes, ("name", "account_number", "account_name", "branch", "swift_code", "is_active"),
            required=("name", "account_number", "account_name"),
        )
        number = changes.get("account_number")
        if number and number != bank.account_number:
            if await self._banks.get_by_account_number(number):
                raise ConflictError("Bank with this account number already exists")
        return await self._banks.update(bank_id, changes)

    async def delete(self, bank_id: int):
        await self.get(bank_id)
        await self._banks.delete(bank_id)
        logger.info("Deleted bank %d", bank_id)


class WalletService:

    def __init__(self, wallets: "WalletRepo"):
        self._wallets = wallets

    async def create(self, data: dict) -> "AdminWallet":
        fields = _required(data, "currency", "currency_abbreviation", "address")
        if await self._wallets.get_by_address(fields["address"]):
            raise ConflictError("Wallet with this address already exists")
        wallet = await self._wallets.create(logo=data.get("logo") or "", **fields)
        logger.info("Created admin wallet %d %s", wallet.id, wallet.currency_abbreviation)
        return wallet

    async def get(self, wallet_id: int) -> "AdminWallet":
        wallet = await self._wallets.get(wallet_id)
        if wallet is None:
            raise NotFoundError("Wallet")
        return wallet

    async def list(self, active_only: bool = False) -> List["AdminWallet"]:
        return await self._wallets.list_all(active_only=active_only)

    async def update(self, wallet_id: int, changes: dict) -> "AdminWallet":
        wallet = await self.get(wallet_id)
        changes = _clean(
            changes, ("currency", "currency_abbreviation", "address", "logo", "is_active"),
            required=("currency", "currency_abbreviation", "address"),
        )
        address = changes.get("address")
        if address and address != wallet.address:
            if await self._wallets.get_by_address(address):
                raise ConflictError("Wallet with this address already exists")
        return await self._wallets.update(wallet_id, changes)

    async def delete(self, wallet_id: int):
        await self.get(wallet_id)
        await self._wallets.delete(wallet_id)
        logger.info("Deleted admin wallet %d", wallet_id)
