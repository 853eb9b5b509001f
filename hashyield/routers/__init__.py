"""Router package: collects all API routers and registers them on the FastAPI app."""

from fastapi import FastAPI

from hashyield.routers import (
    auth,
    banks,
    contracts,
    health,
    kyc,
    kyc_fees,
    servers,
    subscriptions,
    transactions,
    wallets,
    withdrawals,
)


def register_all_routers(app: FastAPI):
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(servers.router)
    app.include_router(contracts.router)
    app.include_router(subscriptions.router)
    app.include_router(withdrawals.router)
    app.include_router(transactions.router)
    app.include_router(banks.router)
    app.include_router(wallets.router)
    app.include_router(kyc.router)
    app.include_router(kyc_fees.router)
