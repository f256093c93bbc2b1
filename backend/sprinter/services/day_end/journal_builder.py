"""Journal entry builder for day-end postings.

Every posting is a debit/credit pair of the same amount, so each list
this module returns is balanced.  Amounts are carried as fixed-point
strings; an empty side means the entry has no posting on that side.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sprinter.services.day_end.accounts import ChartOfAccounts
from sprinter.services.day_end.classifier import (
    DayEndDecision,
    InterestRouting,
    ProvisionAction,
)
from sprinter.services.day_end.errors import BalanceError
from sprinter.services.day_end.loader import DueInstallment

CENT = Decimal("0.01")


@dataclass
class JournalEntry:
    account_id: int
    debit: str = ""
    credit: str = ""


def round_cents(amount) -> Decimal:
    """Round half away from zero to two decimal places."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(amount) -> str:
    return f"{round_cents(amount):.2f}"


def _pair(debit_account: int, credit_account: int, amount) -> list[JournalEntry]:
    value = format_amount(amount)
    return [
        JournalEntry(debit_account, debit=value),
        JournalEntry(credit_account, credit=value),
    ]


# ---------------------------------------------------------------------------
# Entry groups
# ---------------------------------------------------------------------------

def receivable_to_arrears_entries(
    installment: DueInstallment, chart: ChartOfAccounts
) -> list[JournalEntry]:
    """Move the full installment from performing to arrears receivable."""
    return _pair(chart.receivable_arrears, chart.receivable, installment.amount)


def interest_entries(
    routing: InterestRouting, installment: DueInstallment, chart: ChartOfAccounts
) -> list[JournalEntry]:
    """Release unearned interest to income or to suspense."""
    if routing == InterestRouting.INCOME:
        target = chart.interest_income
    else:
        target = chart.suspense_interest
    return _pair(chart.unearned_interest, target, installment.interest)


def income_to_suspense_entries(
    interest_arrears: Decimal, chart: ChartOfAccounts
) -> list[JournalEntry]:
    """Reverse interest already recognised as income into suspense."""
    return _pair(chart.interest_income, chart.suspense_interest, interest_arrears)


def capital_provision_entries(
    provision: Decimal, chart: ChartOfAccounts
) -> list[JournalEntry]:
    return _pair(chart.bad_debt_provision, chart.provision_for_bad_debt, provision)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_journal_entries(
    installment: DueInstallment,
    decision: DayEndDecision,
    chart: ChartOfAccounts,
    *,
    interest_arrears: Decimal = Decimal("0"),
    provision: Decimal = Decimal("0"),
) -> list[JournalEntry]:
    """Build the ordered day-end entries for one installment.

    Provision entries come first, then the income-to-suspense
    reclassification, then the receivable move and the interest release.
    A provision of zero produces no provision entries.
    """
    entries: list[JournalEntry] = []
    if decision.provision != ProvisionAction.NONE and provision > 0:
        entries.extend(capital_provision_entries(provision, chart))
    if decision.reclassify_arrears_interest:
        entries.extend(income_to_suspense_entries(interest_arrears, chart))
    entries.extend(receivable_to_arrears_entries(installment, chart))
    entries.extend(interest_entries(decision.interest_routing, installment, chart))
    return entries


def entry_totals(entries: list[JournalEntry]) -> tuple[Decimal, Decimal]:
    """Return (total_dr, total_cr) for a list of entries."""
    total_dr = sum((Decimal(e.debit) for e in entries if e.debit), Decimal("0"))
    total_cr = sum((Decimal(e.credit) for e in entries if e.credit), Decimal("0"))
    return total_dr, total_cr


def validate_balance(entries: list[JournalEntry]) -> tuple[Decimal, Decimal]:
    """Ensure total debits == total credits.  Returns (total_dr, total_cr)."""
    total_dr, total_cr = entry_totals(entries)
    if total_dr != total_cr:
        raise BalanceError(
            f"Entries are not balanced: debits={total_dr}, credits={total_cr}"
        )
    return total_dr, total_cr
