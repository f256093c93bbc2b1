"""Day-end processing: arrears classification, journal postings and recovery status."""

from sprinter.services.day_end.accounts import ChartOfAccounts
from sprinter.services.day_end.engine import (
    DayEndResult,
    UpdatedContract,
    apply_decision,
    run_day_end,
)
from sprinter.services.day_end.errors import (
    BalanceError,
    DayEndError,
    FinancialNotFoundError,
    UnclassifiedContractError,
)

__all__ = [
    "ChartOfAccounts",
    "DayEndResult",
    "UpdatedContract",
    "apply_decision",
    "run_day_end",
    "BalanceError",
    "DayEndError",
    "FinancialNotFoundError",
    "UnclassifiedContractError",
]
