"""Financial snapshot reader and provisioning lookups."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from sprinter.models.contract import ContractFinancial, ContractSchedule, InstallmentType
from sprinter.services.day_end.errors import FinancialNotFoundError
from sprinter.services.day_end.journal_builder import round_cents

logger = logging.getLogger(__name__)


@dataclass
class ContractSnapshot:
    """Point-in-time copy of a contract_financial row."""
    contract_id: int
    active: bool
    recovery_status: int
    doubtful: bool
    payment: Decimal
    capital_arrears: Decimal
    interest_arrears: Decimal
    capital_provisioned: Decimal
    schedule_end_date: date


def _dec(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


async def get_contract_financial(db: AsyncSession, contract_id: int) -> ContractSnapshot:
    """Read the current financial snapshot of *contract_id*.

    Columns are selected directly rather than loading the ORM entity, so
    the values always reflect updates already issued in this transaction.
    """
    result = await db.execute(
        select(
            ContractFinancial.active,
            ContractFinancial.recovery_status_id,
            ContractFinancial.doubtful,
            ContractFinancial.payment,
            ContractFinancial.capital_arrears,
            ContractFinancial.interest_arrears,
            ContractFinancial.capital_provisioned,
            ContractFinancial.financial_schedule_end_date,
        ).where(ContractFinancial.contract_id == contract_id)
    )
    row = result.one_or_none()
    if row is None:
        raise FinancialNotFoundError(
            f"No contract_financial row for contract {contract_id}"
        )
    return ContractSnapshot(
        contract_id=contract_id,
        active=bool(row.active),
        recovery_status=int(row.recovery_status_id),
        doubtful=bool(row.doubtful),
        payment=_dec(row.payment),
        capital_arrears=_dec(row.capital_arrears),
        interest_arrears=_dec(row.interest_arrears),
        capital_provisioned=_dec(row.capital_provisioned),
        schedule_end_date=row.financial_schedule_end_date,
    )


async def get_capital_receivable(db: AsyncSession, contract_id: int) -> Decimal:
    """Outstanding rental capital: sum of (capital - capital_paid)."""
    result = await db.execute(
        select(func.sum(ContractSchedule.capital - ContractSchedule.capital_paid))
        .where(
            ContractSchedule.contract_id == contract_id,
            ContractSchedule.contract_installment_type_id == InstallmentType.RECURRING_RENTAL,
        )
    )
    return _dec(result.scalar())


async def get_half_capital_provision(db: AsyncSession, contract_id: int) -> Decimal:
    """50% of outstanding rental capital, rounded to cents."""
    receivable = await get_capital_receivable(db, contract_id)
    provision = round_cents(receivable / 2)
    logger.debug("Contract %s: 50%% capital provision %s", contract_id, provision)
    return provision
