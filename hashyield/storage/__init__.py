from ._schema import SCHEMA_VERSION, SCHEMA_SQL
from .users import UserRepo
from .servers import ServerRepo
from .contracts import ContractRepo
from .subscriptions import SubscriptionRepo
from .withdrawals import WithdrawalRepo
from .transactions import TransactionRepo
from .banks import BankRepo, WalletRepo
from .kyc import KYCRepo, KYCFeeRepo
from .manager import StorageManager

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "UserRepo",
    "ServerRepo",
    "ContractRepo",
    "SubscriptionRepo",
    "WithdrawalRepo",
    "TransactionRepo",
    "BankRepo",
    "WalletRepo",
    "KYCRepo",
    "KYCFeeRepo",
    "StorageManager",
]
