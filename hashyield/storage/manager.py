import asyncio
import logging
from typing import Optional

import aiosqlite

from ._migrate import run_migrations
from .banks import BankRepo, WalletRepo
from .contracts import ContractRepo
from .kyc import KYCFeeRepo, KYCRepo
from .servers import ServerRepo
from .subscriptions import SubscriptionRepo
from .transactions import TransactionRepo
from .users import UserRepo
from .withdrawals import WithdrawalRepo

logger = logging.getLogger("storage")


class StorageManager:
    """Top-level manager: opens the database, runs migrations, exposes repos."""

    def __init__(self, db_path: str = "hashyield.db"):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self.users: Optional[UserRepo] = None
        self.servers: Optional[ServerRepo] = None
        self.contracts: Optional[ContractRepo] = None
        self.subscriptions: Optional[SubscriptionRepo] = None
        self.withdrawals: Optional[WithdrawalRepo] = None
        self.transactions: Optional[TransactionRepo] = None
        self.banks: Optional[BankRepo] = None
        self.wallets: Optional[WalletRepo] = None
        self.kyc: Optional[KYCRepo] = None
        self.kyc_fees: Optional[KYCFeeRepo] = None

    async def initialize(self):
        self._db = await aiosqlite.connect(self.db_path)
        if self.db_path != ":memory:":
            await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await run_migrations(self._db, logger)

        # one lock for every repo: they all share the connection
        lock = asyncio.Lock()
        self.users = UserRepo(self._db, lock)
        self.servers = ServerRepo(self._db, lock)
        self.contracts = ContractRepo(self._db, lock)
        self.subscriptions = SubscriptionRepo(self._db, lock)
        self.withdrawals = WithdrawalRepo(self._db, lock)
        self.transactions = TransactionRepo(self._db, lock)
        self.banks = BankRepo(self._db, lock)
        self.wallets = WalletRepo(self._db, lock)
        self.kyc = KYCRepo(self._db, lock)
        self.kyc_fees = KYCFeeRepo(self._db, lock)

        logger.info("Storage initialized: %s", self.db_path)

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Storage closed")
