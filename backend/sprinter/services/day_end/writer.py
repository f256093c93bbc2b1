"""Transaction writer.

All writes go through the caller's session; nothing here commits.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from sprinter.models.contract import ContractFinancial, ContractSchedule, RecoveryStatus
from sprinter.models.ledger import AccountTransaction, EntryType, Transaction
from sprinter.services.day_end.journal_builder import JournalEntry, validate_balance
from sprinter.services.day_end.loader import DueInstallment
from sprinter.services.day_end.snapshot import ContractSnapshot

logger = logging.getLogger(__name__)


async def post_transaction(
    db: AsyncSession, installment: DueInstallment, *, user_id: int
) -> int:
    """Insert the transaction header for an installment and return its id."""
    now = datetime.now()
    txn = Transaction(
        user_id=user_id,
        created_at=now,
        posting_date=now.date(),
        contract_id=installment.contract_id,
        remark=f"DAY END {installment.id} [{installment.contract_id}]",
    )
    db.add(txn)
    await db.flush()
    return txn.id


async def issue_journal_entries(
    db: AsyncSession, transaction_id: int, entries: list[JournalEntry]
) -> int:
    """Write one posting per non-empty debit/credit side.  Returns row count."""
    validate_balance(entries)
    count = 0
    for entry in entries:
        for amount, entry_type in ((entry.debit, EntryType.DEBIT), (entry.credit, EntryType.CREDIT)):
            if not amount:
                continue
            db.add(AccountTransaction(
                transaction_id=transaction_id,
                account_id=entry.account_id,
                type=entry_type,
                amount=Decimal(amount),
            ))
            count += 1
    if count:
        await db.flush()
    return count


async def apply_financial_update(
    db: AsyncSession,
    installment: DueInstallment,
    before: ContractSnapshot,
    after: ContractSnapshot,
    provision: Decimal = Decimal("0"),
) -> None:
    """Persist the difference between two snapshots of a contract.

    Arrears are always incremented by the installment.  Status, doubtful
    and active are written only when they changed.  A top-up made on the
    move to BDP is also accumulated in ``capital_provisioned_bdp``.
    """
    values = {
        "capital_arrears": ContractFinancial.capital_arrears + installment.capital,
        "interest_arrears": ContractFinancial.interest_arrears + installment.interest,
    }
    if after.recovery_status != before.recovery_status:
        values["recovery_status_id"] = int(after.recovery_status)
    if after.doubtful != before.doubtful:
        values["doubtful"] = after.doubtful
    if after.active != before.active:
        values["active"] = after.active
    if provision:
        values["capital_provisioned"] = ContractFinancial.capital_provisioned + provision
        if (
            after.recovery_status == RecoveryStatus.BDP
            and before.recovery_status != RecoveryStatus.BDP
        ):
            values["capital_provisioned_bdp"] = (
                ContractFinancial.capital_provisioned_bdp + provision
            )

    await db.execute(
        update(ContractFinancial)
        .where(ContractFinancial.contract_id == installment.contract_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


async def mark_installment_issued(db: AsyncSession, installment_id: int) -> None:
    await db.execute(
        update(ContractSchedule)
        .where(ContractSchedule.id == installment_id)
        .values(daily_entry_issued=True)
        .execution_options(synchronize_session=False)
    )
