"""Seed the chart of accounts the day-end run posts to (idempotent)."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sprinter.models.ledger import Account
from sprinter.services.day_end.accounts import ChartOfAccounts

logger = logging.getLogger(__name__)


async def _get_or_create_account(db: AsyncSession, *, account_id: int, name: str) -> Account:
    result = await db.execute(select(Account).where(Account.id == account_id))
    acct = result.scalar_one_or_none()
    if acct:
        return acct
    acct = Account(id=account_id, account_id=str(account_id), name=name)
    db.add(acct)
    await db.flush()
    return acct


async def seed_chart_of_accounts(
    db: AsyncSession, chart: ChartOfAccounts | None = None
) -> list[Account]:
    chart = chart or ChartOfAccounts.from_settings()
    accounts = [
        await _get_or_create_account(db, account_id=acct_id, name=name)
        for acct_id, name in chart.labelled().items()
    ]
    await db.commit()
    logger.info("Chart of accounts seeded (%d accounts)", len(accounts))
    return accounts
