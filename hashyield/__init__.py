"""
HashYield - Mining investment platform server package

REST API for an admin-managed catalog of mining servers and contracts,
miner subscriptions with earnings accrual, withdrawals, payments and KYC.
"""

__version__ = "0.1.0"

__all__ = [
    "auth",
    "calculations",
    "catalog",
    "config",
    "errors",
    "kyc",
    "ledger",
    "payments",
    "responses",
    "server",
    "storage",
    "subscriptions",
    "withdrawals",
]
