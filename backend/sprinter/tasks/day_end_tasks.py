"""Celery task: run the day-end program inside one database transaction."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from sprinter.tasks import celery_app
from sprinter.config import settings
from sprinter.services.day_end import DayEndResult, run_day_end

logger = logging.getLogger(__name__)

__all__ = ["run_day_end_task"]


def _get_async_session():
    engine = create_async_engine(settings.database_url, echo=settings.debug)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _summarise(cutoff_date: str, contract_id: int | None, result: DayEndResult) -> dict:
    return {
        "cutoff_date": cutoff_date,
        "contract_id": contract_id,
        "processed": len(result.updated_contracts),
        "duration_seconds": round(result.duration.total_seconds(), 3),
        "updated_contracts": [
            {
                "contract_id": u.contract_id,
                "recovery_status": u.recovery_status,
                "updated_recovery_status": u.updated_recovery_status,
            }
            for u in result.updated_contracts
        ],
    }


async def _run_in_transaction(session_factory, cutoff_date: str, contract_id: int | None) -> dict:
    async with session_factory() as db:
        try:
            result = await run_day_end(
                db,
                cutoff_date,
                contract_id,
                manual=contract_id is not None,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error("Day-end run for %s rolled back", cutoff_date)
            raise
    return _summarise(cutoff_date, contract_id, result)


async def _run_with_engine(cutoff_date: str, contract_id: int | None) -> dict:
    # The engine's pool is bound to this event loop; dispose before it closes.
    engine, session_factory = _get_async_session()
    try:
        return await _run_in_transaction(session_factory, cutoff_date, contract_id)
    finally:
        await engine.dispose()


@celery_app.task(name="sprinter.tasks.day_end_tasks.run_day_end_task")
def run_day_end_task(cutoff_date: str, contract_id: int | None = None) -> dict:
    """Run day-end for *cutoff_date*; with *contract_id* only that contract.

    Commits on success.  On failure the whole run is rolled back and the
    error re-raised, so a retry starts from a clean state.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(_run_with_engine(cutoff_date, contract_id))
    finally:
        loop.close()
