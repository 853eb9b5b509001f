"""Pydantic request models for the REST API."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Accepts both the camelCase aliases and the snake_case field names."""

    model_config = ConfigDict(populate_by_name=True)


# ── Auth ──

class SignupRequest(BaseModel):
    email: str
    username: str
    password: str
    firstname: str
    lastname: str
    country: str = ""
    age: int = 0
    phone: str = ""
    wallet_address: str = ""


class AdminSignupRequest(BaseModel):
    email: str
    username: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


# ── Catalog ──

class ServerCreateRequest(BaseModel):
    name: str
    hash_rate: str
    power_consumption_kwh: str


class ServerUpdateRequest(BaseModel):
    name: Optional[str] = None
    hash_rate: Optional[str] = None
    power_consumption_kwh: Optional[str] = None
    is_active: Optional[bool] = None


class ContractCreateRequest(CamelModel):
    mining_server_id: int = Field(alias="miningServerId")
    period_return: Decimal = Field(alias="periodReturn")
    period: str


class ContractUpdateRequest(CamelModel):
    mining_server_id: Optional[int] = Field(default=None, alias="miningServerId")
    period_return: Optional[Decimal] = Field(default=None, alias="periodReturn")
    period: Optional[str] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")


class BankCreateRequest(BaseModel):
    name: str
    account_number: str
    account_name: str
    branch: Optional[str] = None
    swift_code: Optional[str] = None


class BankUpdateRequest(BaseModel):
    name: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None
    branch: Optional[str] = None
    swift_code: Optional[str] = None
    is_active: Optional[bool] = None


class WalletCreateRequest(BaseModel):
    currency: str
    currency_abbreviation: str
    address: str
    logo: str = ""


class WalletUpdateRequest(BaseModel):
    currency: Optional[str] = None
    currency_abbreviation: Optional[str] = None
    address: Optional[str] = None
    logo: Optional[str] = None
    is_active: Optional[bool] = None


# ── Subscriptions and ledger ──

class SubscribeRequest(CamelModel):
    mining_contract_id: int = Field(alias="miningContractId")
    amount: Decimal
    currency: str = "USD"
    auto_accrue: bool = Field(default=True, alias="autoAccrue")
    miner_id: Optional[int] = Field(default=None, alias="minerId")


class EarningsUpdateRequest(CamelModel):
    earnings: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    action_type: str = Field(alias="actionType")

    @property
    def value(self) -> Optional[Decimal]:
        return self.earnings if self.earnings is not None else self.amount


class DepositUpdateRequest(CamelModel):
    amount: Decimal
    action_type: str = Field(alias="actionType")


class AccrueRequest(BaseModel):
    days: int = 1


# ── Withdrawals ──

class WithdrawalCreateRequest(CamelModel):
    subscription_id: int = Field(alias="subscriptionId")
    amount: Decimal
    type: str = "earnings"
    destination: str = ""
    currency: Optional[str] = None


class WithdrawalStatusRequest(CamelModel):
    status: str
    rejection_reason: Optional[str] = Field(default=None, alias="rejectionReason")
    transaction_hash: Optional[str] = Field(default=None, alias="transactionHash")


# ── Transactions / KYC ──

class TransactionCreateRequest(CamelModel):
    entity: str
    entity_id: int = Field(alias="entityId")
    amount_usd: Decimal = Field(alias="amountUsd")


class StatusRequest(BaseModel):
    status: str


class KYCSubmitRequest(CamelModel):
    id_card: str = Field(alias="idCard")


class KYCReviewRequest(CamelModel):
    status: str
    rejection_reason: Optional[str] = Field(default=None, alias="rejectionReason")
