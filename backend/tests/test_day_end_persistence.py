"""Tests for the day-end data-access layer against a mocked session.

Covers the due-installment query, the snapshot reader, provisioning
lookups, the transaction writer and the chart-of-accounts seed.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.dialects import postgresql

from sprinter.models.contract import RecoveryStatus
from sprinter.models.ledger import Account, AccountTransaction, EntryType, Transaction
from sprinter.seed_ledger import seed_chart_of_accounts
from sprinter.services.day_end.accounts import ChartOfAccounts
from sprinter.services.day_end.errors import BalanceError, FinancialNotFoundError
from sprinter.services.day_end.journal_builder import JournalEntry
from sprinter.services.day_end.loader import (
    DueInstallment,
    due_installments_query,
    load_due_installments,
)
from sprinter.services.day_end.snapshot import (
    ContractSnapshot,
    get_capital_receivable,
    get_contract_financial,
    get_half_capital_provision,
)
from sprinter.services.day_end.writer import (
    apply_financial_update,
    issue_journal_entries,
    mark_installment_issued,
    post_transaction,
)


D = Decimal


def _db(result=None) -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    if result is not None:
        db.execute.return_value = result
    return db


def _installment() -> DueInstallment:
    return DueInstallment(id=11, contract_id=7, capital=D("50"), interest=D("10"),
                          due_date=date(2024, 1, 31))


def _snapshot(**kw) -> ContractSnapshot:
    base = dict(
        contract_id=7, active=True, recovery_status=RecoveryStatus.ACTIVE,
        doubtful=False, payment=D("100"), capital_arrears=D("0"),
        interest_arrears=D("0"), capital_provisioned=D("0"),
        schedule_end_date=date(2025, 12, 31),
    )
    base.update(kw)
    return ContractSnapshot(**base)


def _sql(db: AsyncMock) -> str:
    return str(db.execute.await_args.args[0])


# ===================================================================
# Due-installment loader
# ===================================================================


class TestLoader:
    def test_query_selects_unissued_rentals_in_order(self):
        sql = str(due_installments_query(date(2024, 1, 31)))
        assert "contract_schedule.daily_entry_issued" in sql
        assert "contract_schedule.monthly_date <=" in sql
        assert "contract_schedule.contract_installment_type_id =" in sql
        assert "contract_schedule.contract_id =" not in sql
        assert sql.rstrip().endswith(
            "ORDER BY contract_schedule.contract_id ASC, contract_schedule.monthly_date ASC"
        )

    def test_query_skips_issued_installments(self):
        stmt = due_installments_query(date(2024, 1, 31))
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "contract_schedule.daily_entry_issued IS false" in sql
        assert True not in stmt.compile().params.values()

    def test_query_binds_cutoff_and_rental_type(self):
        params = due_installments_query(date(2024, 1, 31)).compile().params
        assert date(2024, 1, 31) in params.values()
        assert 1 in params.values()

    def test_contract_filter(self):
        stmt = due_installments_query(date(2024, 1, 31), contract_id=7)
        assert "contract_schedule.contract_id =" in str(stmt)
        assert 7 in stmt.compile().params.values()

    @pytest.mark.asyncio
    async def test_rows_become_installments(self):
        result = MagicMock()
        result.all.return_value = [
            (11, 7, D("50.00"), D("10.00"), date(2024, 1, 31)),
            (12, 7, 50.5, 9.5, date(2024, 2, 29)),
        ]
        db = _db(result)

        installments = await load_due_installments(db, date(2024, 2, 29))

        assert installments[0] == DueInstallment(11, 7, D("50.00"), D("10.00"), date(2024, 1, 31))
        assert installments[1].capital == D("50.5")
        assert installments[1].amount == D("60.0")


# ===================================================================
# Snapshot reader and provisioning lookups
# ===================================================================


class TestSnapshotReader:
    @pytest.mark.asyncio
    async def test_reads_snapshot(self):
        row = SimpleNamespace(
            active=1, recovery_status_id=2, doubtful=0, payment=D("100.00"),
            capital_arrears=D("400.00"), interest_arrears=D("100.00"),
            capital_provisioned=D("0.00"),
            financial_schedule_end_date=date(2025, 12, 31),
        )
        result = MagicMock()
        result.one_or_none.return_value = row
        db = _db(result)

        snap = await get_contract_financial(db, 7)

        assert snap == _snapshot(
            recovery_status=2, capital_arrears=D("400.00"),
            interest_arrears=D("100.00"), payment=D("100.00"),
            capital_provisioned=D("0.00"),
        )
        assert "contract_financial.contract_id =" in _sql(db)

    @pytest.mark.asyncio
    async def test_missing_row_raises(self):
        result = MagicMock()
        result.one_or_none.return_value = None
        with pytest.raises(FinancialNotFoundError, match="contract 7"):
            await get_contract_financial(_db(result), 7)

    @pytest.mark.asyncio
    async def test_capital_receivable(self):
        result = MagicMock()
        result.scalar.return_value = D("1000.01")
        db = _db(result)
        assert await get_capital_receivable(db, 7) == D("1000.01")
        assert "capital_paid" in _sql(db)

    @pytest.mark.asyncio
    async def test_capital_receivable_without_rows_is_zero(self):
        result = MagicMock()
        result.scalar.return_value = None
        assert await get_capital_receivable(_db(result), 7) == D("0")

    @pytest.mark.asyncio
    async def test_half_provision_rounds_half_up(self):
        result = MagicMock()
        result.scalar.return_value = D("1000.01")
        assert await get_half_capital_provision(_db(result), 7) == D("500.01")


# ===================================================================
# Transaction writer
# ===================================================================


class TestTransactionWriter:
    @pytest.mark.asyncio
    async def test_post_transaction_header(self):
        db = _db()

        async def _flush():
            db.add.call_args.args[0].id = 42

        db.flush.side_effect = _flush

        tid = await post_transaction(db, _installment(), user_id=1)

        assert tid == 42
        txn = db.add.call_args.args[0]
        assert isinstance(txn, Transaction)
        assert txn.remark == "DAY END 11 [7]"
        assert txn.contract_id == 7
        assert txn.user_id == 1
        assert isinstance(txn.created_at, datetime)
        assert txn.posting_date == txn.created_at.date()

    @pytest.mark.asyncio
    async def test_one_row_per_side(self):
        db = _db()
        entries = [
            JournalEntry(192, debit="60.00"),
            JournalEntry(185, credit="60.00"),
            JournalEntry(188, debit="10.00"),
            JournalEntry(190, credit="10.00"),
        ]

        count = await issue_journal_entries(db, 42, entries)

        assert count == 4
        rows = [c.args[0] for c in db.add.call_args_list]
        assert all(isinstance(r, AccountTransaction) for r in rows)
        assert [(r.account_id, r.type, r.amount) for r in rows] == [
            (192, EntryType.DEBIT, D("60.00")),
            (185, EntryType.CREDIT, D("60.00")),
            (188, EntryType.DEBIT, D("10.00")),
            (190, EntryType.CREDIT, D("10.00")),
        ]
        assert {r.transaction_id for r in rows} == {42}
        db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_sides_are_skipped(self):
        db = _db()
        count = await issue_journal_entries(db, 42, [JournalEntry(1)])
        assert count == 0
        db.add.assert_not_called()
        db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unbalanced_entries_are_not_written(self):
        db = _db()
        entries = [JournalEntry(1, debit="10.00"), JournalEntry(2, credit="5.00")]
        with pytest.raises(BalanceError):
            await issue_journal_entries(db, 42, entries)
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_arrears_only_update(self):
        db = _db()
        before = _snapshot()
        await apply_financial_update(db, _installment(), before, before)

        sql = _sql(db)
        assert sql.startswith("UPDATE contract_financial SET")
        assert "capital_arrears=" in sql
        assert "interest_arrears=" in sql
        assert "recovery_status_id" not in sql
        assert "doubtful" not in sql
        assert "active" not in sql
        assert "capital_provisioned" not in sql

    @pytest.mark.asyncio
    async def test_changed_columns_are_written(self):
        db = _db()
        before = _snapshot(recovery_status=RecoveryStatus.ARREARS)
        after = _snapshot(recovery_status=RecoveryStatus.NPL, doubtful=True, active=False)
        await apply_financial_update(db, _installment(), before, after, D("250"))

        sql = _sql(db)
        assert "recovery_status_id=" in sql
        assert "doubtful=" in sql
        assert "active=" in sql
        assert "capital_provisioned=" in sql
        assert "capital_provisioned_bdp" not in sql

    @pytest.mark.asyncio
    async def test_bdp_top_up_tracked_separately(self):
        db = _db()
        before = _snapshot(recovery_status=RecoveryStatus.NPL, doubtful=True)
        after = _snapshot(recovery_status=RecoveryStatus.BDP, doubtful=True)
        await apply_financial_update(db, _installment(), before, after, D("734.57"))

        assert "capital_provisioned_bdp=" in _sql(db)

    @pytest.mark.asyncio
    async def test_mark_installment_issued(self):
        db = _db()
        await mark_installment_issued(db, 11)
        sql = _sql(db)
        assert sql.startswith("UPDATE contract_schedule SET daily_entry_issued=")
        assert "contract_schedule.id =" in sql
        params = db.execute.await_args.args[0].compile().params
        assert params["daily_entry_issued"] is True


# ===================================================================
# Chart-of-accounts seed
# ===================================================================


class TestSeedChartOfAccounts:
    @pytest.mark.asyncio
    async def test_creates_missing_accounts(self):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        db = _db(result)

        accounts = await seed_chart_of_accounts(db, ChartOfAccounts())

        assert len(accounts) == 7
        added = [c.args[0] for c in db.add.call_args_list]
        assert all(isinstance(a, Account) for a in added)
        assert {a.id for a in added} == {185, 188, 190, 192, 194, 195, 196}
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_accounts_are_kept(self):
        existing = Account(id=185, account_id="185", name="Receivable")
        result = MagicMock()
        result.scalar_one_or_none.return_value = existing
        db = _db(result)

        accounts = await seed_chart_of_accounts(db, ChartOfAccounts())

        assert accounts[0] is existing
        db.add.assert_not_called()
