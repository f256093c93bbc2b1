"""SQLAlchemy models for the Sprinter day-end engine."""

from sprinter.models.contract import (
    ContractSchedule,
    ContractFinancial,
    RecoveryStatus,
    InstallmentType,
)
from sprinter.models.ledger import (
    Account,
    Transaction,
    AccountTransaction,
    EntryType,
)

__all__ = [
    "ContractSchedule",
    "ContractFinancial",
    "RecoveryStatus",
    "InstallmentType",
    "Account",
    "Transaction",
    "AccountTransaction",
    "EntryType",
]
