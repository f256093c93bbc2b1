"""Day-end run orchestrator.

For every due installment, in loader order:

1. Read the contract's financial snapshot
2. Classify it (age + decision table)
3. Look up the capital provision the decision calls for
4. Apply the decision to the snapshot (pure) to get the new snapshot
   and the journal entries
5. Write the transaction header, the postings and the financial update,
   then flag the installment as issued

The run shares one caller-owned transaction.  Any exception aborts the
run and propagates; the caller rolls back.
"""

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from sprinter.config import settings
from sprinter.services.day_end.accounts import ChartOfAccounts
from sprinter.services.day_end.classifier import (
    DayEndDecision,
    ProvisionAction,
    classify,
    compute_age,
)
from sprinter.services.day_end.errors import DayEndError, UnclassifiedContractError
from sprinter.services.day_end.journal_builder import (
    JournalEntry,
    build_journal_entries,
    round_cents,
)
from sprinter.services.day_end.loader import DueInstallment, load_due_installments
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

logger = logging.getLogger(__name__)


@dataclass
class UpdatedContract:
    contract_id: int
    recovery_status: int
    updated_recovery_status: int


@dataclass
class DayEndOutcome:
    """Result of applying a decision to a snapshot."""
    snapshot: ContractSnapshot
    provision: Decimal
    entries: list[JournalEntry] = field(default_factory=list)


@dataclass
class DayEndResult:
    updated_contracts: list[UpdatedContract]
    duration: timedelta

    @property
    def status_changes(self) -> list[UpdatedContract]:
        return [
            u for u in self.updated_contracts
            if u.recovery_status != u.updated_recovery_status
        ]


# ---------------------------------------------------------------------------
# Pure state transition
# ---------------------------------------------------------------------------

def bdp_top_up(capital_receivable: Decimal, capital_provisioned: Decimal) -> Decimal:
    """Provision needed to cover 100% of outstanding capital, never negative."""
    return max(round_cents(capital_receivable - capital_provisioned), Decimal("0.00"))


def apply_decision(
    before: ContractSnapshot,
    installment: DueInstallment,
    decision: DayEndDecision | None,
    chart: ChartOfAccounts,
    *,
    provision: Decimal = Decimal("0"),
) -> DayEndOutcome:
    """Return the contract snapshot after this installment and its entries.

    Arrears always grow by the installment and the contract goes inactive
    on its last scheduled date, whatever the decision.  Without a
    decision no entries are produced and status is unchanged.
    """
    after = dataclasses.replace(
        before,
        capital_arrears=before.capital_arrears + installment.capital,
        interest_arrears=before.interest_arrears + installment.interest,
    )
    if installment.due_date == before.schedule_end_date:
        after.active = False

    if decision is None:
        return DayEndOutcome(after, Decimal("0"), [])

    if decision.provision == ProvisionAction.NONE:
        provision = Decimal("0")
    else:
        provision = max(round_cents(provision), Decimal("0.00"))

    after.recovery_status = decision.new_status
    after.doubtful = before.doubtful or decision.mark_doubtful
    after.capital_provisioned = before.capital_provisioned + provision

    entries = build_journal_entries(
        installment,
        decision,
        chart,
        interest_arrears=before.interest_arrears,
        provision=provision,
    )
    return DayEndOutcome(after, provision, entries)


# ---------------------------------------------------------------------------
# Per-installment processing
# ---------------------------------------------------------------------------

async def _resolve_provision(
    db: AsyncSession, snapshot: ContractSnapshot, decision: DayEndDecision | None
) -> Decimal:
    if decision is None or decision.provision == ProvisionAction.NONE:
        return Decimal("0")
    if decision.provision == ProvisionAction.HALF_CAPITAL:
        return await get_half_capital_provision(db, snapshot.contract_id)
    receivable = await get_capital_receivable(db, snapshot.contract_id)
    return bdp_top_up(receivable, snapshot.capital_provisioned)


async def process_installment(
    db: AsyncSession,
    installment: DueInstallment,
    *,
    chart: ChartOfAccounts,
    user_id: int,
    strict: bool = False,
) -> UpdatedContract:
    before = await get_contract_financial(db, installment.contract_id)

    age = compute_age(
        before.capital_arrears,
        before.interest_arrears,
        before.payment,
        installment.capital,
        installment.interest,
    )
    decision = classify(before.recovery_status, before.doubtful, age)
    if decision is None:
        msg = (
            f"Contract {installment.contract_id} matches no day-end rule "
            f"(status={before.recovery_status}, doubtful={before.doubtful}, age={age})"
        )
        if strict:
            raise UnclassifiedContractError(msg)
        logger.warning("%s; posting no entries for installment %d", msg, installment.id)

    provision = await _resolve_provision(db, before, decision)
    outcome = apply_decision(before, installment, decision, chart, provision=provision)

    transaction_id = await post_transaction(db, installment, user_id=user_id)
    await issue_journal_entries(db, transaction_id, outcome.entries)
    await apply_financial_update(db, installment, before, outcome.snapshot, outcome.provision)
    await mark_installment_issued(db, installment.id)

    if outcome.snapshot.recovery_status != before.recovery_status:
        logger.info(
            "Contract %d: recovery status %d -> %d (%s, age=%s)",
            installment.contract_id,
            before.recovery_status,
            outcome.snapshot.recovery_status,
            decision.rule,
            age,
        )

    return UpdatedContract(
        contract_id=installment.contract_id,
        recovery_status=before.recovery_status,
        updated_recovery_status=int(outcome.snapshot.recovery_status),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _parse_cutoff(cutoff_date: date | str) -> date:
    if isinstance(cutoff_date, date):
        return cutoff_date
    try:
        return date.fromisoformat(cutoff_date)
    except ValueError as e:
        raise DayEndError(f"Invalid cutoff date {cutoff_date!r}") from e


async def run_day_end(
    db: AsyncSession,
    cutoff_date: date | str,
    contract_id: int | None = None,
    *,
    manual: bool = False,
    chart: ChartOfAccounts | None = None,
    user_id: int | None = None,
    strict: bool | None = None,
) -> DayEndResult:
    """Run the day-end program for the whole book or for a single contract.

    Parameters
    ----------
    cutoff_date : date or ``YYYY-MM-DD`` string
        Installments due on or before this date are processed.
    contract_id, manual : int, bool
        With ``manual=True`` only *contract_id* is processed.
    chart : ChartOfAccounts
        Account ids to post to; defaults to the configured chart.
    strict : bool
        Raise ``UnclassifiedContractError`` instead of skipping postings
        for contracts outside the decision table.
    """
    start = time.perf_counter()
    cutoff = _parse_cutoff(cutoff_date)
    if manual and contract_id is None:
        raise DayEndError("A manual day-end run requires a contract id")

    chart = chart or ChartOfAccounts.from_settings()
    if user_id is None:
        user_id = settings.day_end_user_id
    if strict is None:
        strict = settings.day_end_strict_classification
    if strict:
        logger.info("Strict day-end classification enabled")

    installments = await load_due_installments(
        db, cutoff, contract_id if manual else None
    )
    logger.info(
        "Day-end run for %s%s: %d due installments",
        cutoff,
        f" (contract {contract_id})" if manual else "",
        len(installments),
    )

    updated_contracts: list[UpdatedContract] = []
    for installment in installments:
        try:
            updated = await process_installment(
                db, installment, chart=chart, user_id=user_id, strict=strict
            )
        except Exception as e:
            logger.error(
                "Day-end run for %s failed at installment %d (contract %d): %s",
                cutoff, installment.id, installment.contract_id, e,
            )
            raise
        updated_contracts.append(updated)

    result = DayEndResult(
        updated_contracts=updated_contracts,
        duration=timedelta(seconds=time.perf_counter() - start),
    )
    logger.info(
        "Day-end run for %s completed: %d installments, %d status changes in %.3fs",
        cutoff,
        len(updated_contracts),
        len(result.status_changes),
        result.duration.total_seconds(),
    )
    return result
