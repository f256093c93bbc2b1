"""Due-installment loader.

Selects the recurring-rental schedule rows that have not yet received
their day-end entries, oldest first within each contract. Arrears build
up installment by installment, so the ordering matters.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from sprinter.models.contract import ContractSchedule, InstallmentType

logger = logging.getLogger(__name__)


@dataclass
class DueInstallment:
    """A schedule row due for its day-end journal entries."""
    id: int
    contract_id: int
    capital: Decimal
    interest: Decimal
    due_date: date

    @property
    def amount(self) -> Decimal:
        return self.capital + self.interest


def due_installments_query(cutoff: date, contract_id: int | None = None) -> Select:
    stmt = select(
        ContractSchedule.id,
        ContractSchedule.contract_id,
        ContractSchedule.capital,
        ContractSchedule.interest,
        ContractSchedule.monthly_date,
    ).where(
        ContractSchedule.daily_entry_issued.is_(False),
        ContractSchedule.monthly_date <= cutoff,
        ContractSchedule.contract_installment_type_id == InstallmentType.RECURRING_RENTAL,
    )
    if contract_id is not None:
        stmt = stmt.where(ContractSchedule.contract_id == contract_id)
    return stmt.order_by(
        ContractSchedule.contract_id.asc(),
        ContractSchedule.monthly_date.asc(),
    )


async def load_due_installments(
    db: AsyncSession, cutoff: date, contract_id: int | None = None
) -> list[DueInstallment]:
    """Return unissued rental installments due on or before *cutoff*."""
    result = await db.execute(due_installments_query(cutoff, contract_id))
    installments = [
        DueInstallment(
            id=row_id,
            contract_id=cid,
            capital=Decimal(str(capital)),
            interest=Decimal(str(interest)),
            due_date=due_date,
        )
        for row_id, cid, capital, interest, due_date in result.all()
    ]
    logger.debug(
        "Loaded %d due installments (cutoff=%s, contract=%s)",
        len(installments), cutoff, contract_id,
    )
    return installments
