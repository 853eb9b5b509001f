"""
records.py - Immutable snapshots returned by the repositories.

Every repository read produces one of these frozen dataclasses. They are
detached from the database: mutating a balance means going back through a
repository, never editing a snapshot. `to_dict()` renders JSON-safe values
for the HTTP layer.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Optional

from hashyield.calculations import round2


def money(value) -> Decimal:
    return round2(value if value is not None else 0)


class Record:
    """Mixin giving snapshots a JSON-safe dict view."""

    def to_dict(self) -> dict:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal):
                value = float(value)
            elif isinstance(value, Record):
                value = value.to_dict()
            elif isinstance(value, tuple):
                value = [v.to_dict() if isinstance(v, Record) else v for v in value]
            result[f.name] = value
        return result


@dataclass(frozen=True)
class User(Record):
    id: int
    email: str
    username: str
    role: str
    created_at: float
    updated_at: float


@dataclass(frozen=True)
class Miner(Record):
    id: int
    user_id: int
    firstname: str
    lastname: str
    country: str
    age: int
    phone: str
    wallet_address: str
    is_active: bool
    created_at: float
    updated_at: float
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


@dataclass(frozen=True)
class MiningServer(Record):
    id: int
    name: str
    hash_rate: str
    power_consumption_kwh: str
    is_active: bool
    created_at: float
    updated_at: float
    contracts: tuple = ()


@dataclass(frozen=True)
class MiningContract(Record):
    id: int
    mining_server_id: int
    period_return: Decimal
    period: str
    is_active: bool
    created_at: float
    updated_at: float
    server_name: Optional[str] = None


@dataclass(frozen=True)
class Subscription(Record):
    id: int
    miner_id: int
    mining_contract_id: int
    amount_deposited: Decimal
    earnings: Decimal
    currency: str
    status: str
    deposit_status: str
    auto_accrue: bool
    first_payment_at: Optional[float]
    created_at: float
    updated_at: float
    contract: Optional[MiningContract] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def balance(self, field: str) -> Decimal:
        return self.earnings if field == "earnings" else self.amount_deposited


@dataclass(frozen=True)
class LedgerEntry(Record):
    id: int
    subscription_id: int
    field: str
    mode: str
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reference: str
    created_at: float


@dataclass(frozen=True)
class Earning(Record):
    id: int
    subscription_id: int
    amount: Decimal
    days: int
    created_at: float


@dataclass(frozen=True)
class Withdrawal(Record):
    id: int
    miner_id: int
    subscription_id: int
    type: str
    amount: Decimal
    currency: str
    destination: str
    status: str
    rejection_reason: Optional[str]
    transaction_hash: Optional[str]
    processed_by: Optional[int]
    created_at: float
    updated_at: float


@dataclass(frozen=True)
class Transaction(Record):
    id: int
    miner_id: int
    entity: str
    entity_id: int
    amount_usd: Decimal
    status: str
    created_at: float
    updated_at: float


@dataclass(frozen=True)
class Bank(Record):
    id: int
    name: str
    account_number: str
    account_name: str
    branch: Optional[str]
    swift_code: Optional[str]
    is_active: bool
    created_at: float
    updated_at: float


@dataclass(frozen=True)
class AdminWallet(Record):
    id: int
    currency: str
    currency_abbreviation: str
    address: str
    logo: str
    is_active: bool
    created_at: float
    updated_at: float


@dataclass(frozen=True)
class KYC(Record):
    id: int
    miner_id: int
    id_card: str
    status: str
    reviewed_by: Optional[int]
    reviewed_at: Optional[float]
    rejection_reason: Optional[str]
    created_at: float
    updated_at: float


@dataclass(frozen=True)
class KYCFee(Record):
    id: int
    miner_id: int
    amount: Decimal
    is_paid: bool
    paid_at: Optional[float]
    created_at: float
    updated_at: float
