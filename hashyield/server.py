"""
server.py - HashYield API server entry point.

Single-process server combining:
 - SQLite persistent storage via StorageManager
 - Platform services (auth, catalog, ledger, subscriptions, withdrawals,
   payments, KYC)
 - REST API (FastAPI on uvicorn, port 8080)

Earnings accrual is not scheduled here. Run it from cron or similar with
--process-earnings, or call POST /api/subscriptions/process-earnings.

Usage:
    python -m hashyield.server [--host 0.0.0.0] [--port 8080] [--db-path data/hashyield.db]
    python -m hashyield.server --process-earnings 1
"""

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from hashyield import __version__
from hashyield.auth import AuthService
from hashyield.catalog import BankService, ContractService, ServerService, WalletService
from hashyield.config import DEFAULT_DB_PATH, Settings
from hashyield.kyc import KYCService
from hashyield.ledger import LedgerService
from hashyield.payments import TransactionService
from hashyield.responses import register_exception_handlers
from hashyield.routers import register_all_routers
from hashyield.storage import StorageManager
from hashyield.subscriptions import SubscriptionService
from hashyield.withdrawals import WithdrawalService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("server")


# ---------------------------------------------------------------------------
# Platform server
# ---------------------------------------------------------------------------

class PlatformServer:
    """FastAPI app plus the storage and services behind it."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()

        # Storage + services are initialized async in the app lifespan
        self.storage: Optional[StorageManager] = None
        self.auth: Optional[AuthService] = None
        self.servers: Optional[ServerService] = None
        self.contracts: Optional[ContractService] = None
        self.banks: Optional[BankService] = None
        self.wallets: Optional[WalletService] = None
        self.ledger: Optional[LedgerService] = None
        self.subscriptions: Optional[SubscriptionService] = None
        self.withdrawals: Optional[WithdrawalService] = None
        self.transactions: Optional[TransactionService] = None
        self.kyc: Optional[KYCService] = None

        self.app = FastAPI(title="HashYield API", version=__version__, lifespan=self._lifespan)
        self.app.state.server = self
        register_exception_handlers(self.app, self.settings)
        register_all_routers(self.app)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self._init_services()
        try:
            yield
        finally:
            await self.shutdown()

    async def _init_services(self):
        """Initialize storage and wire up services (must be called in async context)."""
        db_path = self.settings.db_path
        db_dir = os.path.dirname(db_path)
        if db_path != ":memory:" and db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.storage = StorageManager(db_path)
        await self.storage.initialize()
        st = self.storage

        self.auth = AuthService(st.users, self.settings)
        self.servers = ServerService(st.servers, st.contracts)
        self.contracts = ContractService(st.contracts, st.servers)
        self.banks = BankService(st.banks)
        self.wallets = WalletService(st.wallets)
        self.ledger = LedgerService(st.subscriptions)
        self.subscriptions = SubscriptionService(st.subscriptions, st.contracts, st.users)
        self.withdrawals = WithdrawalService(st.withdrawals, st.subscriptions, self.ledger)
        self.transactions = TransactionService(st.transactions, st.subscriptions, st.kyc_fees)
        self.kyc = KYCService(st.kyc, st.kyc_fees, self.settings.kyc_fee)

        logger.info("Services initialized (db=%s env=%s)", db_path, self.settings.env)

    async def shutdown(self):
        if self.storage:
            await self.storage.close()
            self.storage = None

    async def process_earnings(self, days: int) -> dict:
        """One-shot accrual run for external schedulers."""
        await self._init_services()
        try:
            return await self.ledger.process_due_earnings(days)
        finally:
            await self.shutdown()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    return PlatformServer(settings).app


def main():
    """CLI entry point for the API server."""
    parser = argparse.ArgumentParser(description="HashYield API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="REST API port (default: 8080)")
    parser.add_argument("--db-path", default=None, help=f"SQLite database path (default: {DEFAULT_DB_PATH})")
    parser.add_argument("--env", default=None, help="development or production (default: $HASHYIELD_ENV)")
    parser.add_argument("--admin-key", default=None, help="Admin API key (default: $HASHYIELD_ADMIN_KEY)")
    parser.add_argument("--jwt-secret", default=None, help="JWT signing secret (default: $HASHYIELD_JWT_SECRET)")
    parser.add_argument("--process-earnings", type=int, metavar="DAYS", default=None,
                        help="Accrue DAYS of earnings for all active subscriptions and exit")
    args = parser.parse_args()

    try:
        settings = Settings.from_env(
            db_path=args.db_path, env=args.env,
            admin_key=args.admin_key, jwt_secret=args.jwt_secret,
        )
    except ValueError as exc:
        parser.error(str(exc))
    server = PlatformServer(settings)

    if args.process_earnings is not None:
        result = asyncio.run(server.process_earnings(args.process_earnings))
        logger.info("Accrual run: %(processed)d processed, %(failed)d failed", result)
        return

    logger.info("=" * 60)
    logger.info("  HashYield API Server v%s", __version__)
    logger.info("  REST API:    http://%s:%d", args.host, args.port)
    logger.info("  Database:    %s", settings.db_path)
    logger.info("  Environment: %s", settings.env)
    logger.info("=" * 60)

    try:
        uvicorn.run(server.app, host=args.host, port=args.port, log_level="info")
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
