"""Exceptions raised by the day-end engine.

Data-access failures are not wrapped: SQLAlchemy errors reach the caller
unchanged so the enclosing transaction can be rolled back.
"""


class DayEndError(Exception):
    """Base exception for day-end processing errors."""


class FinancialNotFoundError(DayEndError):
    """A contract with a due installment has no contract_financial row."""


class UnclassifiedContractError(DayEndError):
    """The contract state matches no row of the decision table."""


class BalanceError(DayEndError):
    """Debits do not equal credits."""
