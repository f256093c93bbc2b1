"""Tests for the day-end Celery task: transaction ownership and summary."""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.exc import SQLAlchemyError

from sprinter.services.day_end import DayEndResult, UpdatedContract
from sprinter.tasks.day_end_tasks import _run_in_transaction, run_day_end_task

TASKS = "sprinter.tasks.day_end_tasks"


def _session_factory():
    db = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = db
    factory.return_value.__aexit__.return_value = False
    return factory, db


def _result() -> DayEndResult:
    return DayEndResult(
        updated_contracts=[UpdatedContract(7, 1, 2), UpdatedContract(8, 3, 3)],
        duration=timedelta(milliseconds=1234),
    )


class TestRunInTransaction:
    @pytest.mark.asyncio
    async def test_commits_on_success(self):
        factory, db = _session_factory()
        with patch(f"{TASKS}.run_day_end", AsyncMock(return_value=_result())) as run:
            summary = await _run_in_transaction(factory, "2024-01-31", None)

        run.assert_awaited_once_with(db, "2024-01-31", None, manual=False)
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()
        assert summary["processed"] == 2
        assert summary["duration_seconds"] == 1.234
        assert summary["updated_contracts"][0] == {
            "contract_id": 7, "recovery_status": 1, "updated_recovery_status": 2,
        }

    @pytest.mark.asyncio
    async def test_single_contract_is_manual(self):
        factory, db = _session_factory()
        with patch(f"{TASKS}.run_day_end", AsyncMock(return_value=_result())) as run:
            summary = await _run_in_transaction(factory, "2024-01-31", 7)
        run.assert_awaited_once_with(db, "2024-01-31", 7, manual=True)
        assert summary["contract_id"] == 7

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self):
        factory, db = _session_factory()
        failing = AsyncMock(side_effect=SQLAlchemyError("deadlock"))
        with patch(f"{TASKS}.run_day_end", failing):
            with pytest.raises(SQLAlchemyError, match="deadlock"):
                await _run_in_transaction(factory, "2024-01-31", None)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


def _engine() -> MagicMock:
    engine = MagicMock()
    engine.dispose = AsyncMock()
    return engine


class TestRunDayEndTask:
    def test_task_runs_synchronously(self):
        factory, db = _session_factory()
        engine = _engine()
        with patch(f"{TASKS}._get_async_session", return_value=(engine, factory)), \
             patch(f"{TASKS}.run_day_end", AsyncMock(return_value=_result())):
            summary = run_day_end_task("2024-01-31")
        assert summary["cutoff_date"] == "2024-01-31"
        db.commit.assert_awaited_once()
        engine.dispose.assert_awaited_once()

    def test_engine_disposed_after_failure(self):
        factory, db = _session_factory()
        engine = _engine()
        failing = AsyncMock(side_effect=SQLAlchemyError("deadlock"))
        with patch(f"{TASKS}._get_async_session", return_value=(engine, factory)), \
             patch(f"{TASKS}.run_day_end", failing):
            with pytest.raises(SQLAlchemyError):
                run_day_end_task("2024-01-31", 7)
        db.rollback.assert_awaited_once()
        engine.dispose.assert_awaited_once()
