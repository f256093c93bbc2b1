"""Age-of-arrears classifier.

The age of a contract approximates how many payment periods it is
behind::

    age = (capital_arrears + interest_arrears + capital + interest) / payment

The recovery status, doubtful flag and age bucket select one row of
``DECISION_TABLE``.  Each row says where the installment interest goes,
whether capital is provisioned, and which status the contract moves to.

    Status   Doubtful  Age      Interest             Provision   New status
    -------  --------  -------  -------------------  ----------  ----------
    ACTIVE   any       <= 0     income               -           ACTIVE
    ACTIVE   any       > 0      income               -           ARREARS
    ARREARS  yes       >= 6     suspense             50%         NPL
    ARREARS  yes       < 6      suspense             -           ARREARS
    ARREARS  no        >= 6     suspense + reclass   50%         NPL, doubtful
    ARREARS  no        < 6      income               -           ARREARS
    NPL      any       >= 12    suspense             top-up      BDP
    NPL      any       < 12     suspense             -           NPL
    BDP      any       any      suspense             -           BDP

Statuses only move forward through the table.
"""

import enum
from dataclasses import dataclass
from decimal import Decimal

from sprinter.models.contract import RecoveryStatus

NPL_AGE = Decimal("6")
BDP_AGE = Decimal("12")


class InterestRouting(str, enum.Enum):
    INCOME = "income"
    SUSPENSE = "suspense"


class ProvisionAction(str, enum.Enum):
    NONE = "none"
    HALF_CAPITAL = "half_capital"
    TOP_UP_TO_FULL = "top_up_to_full"


class AgeBucket(str, enum.Enum):
    CURRENT = "current"        # ACTIVE, age <= 0
    OVERDUE = "overdue"        # ACTIVE, age > 0
    BELOW_NPL = "below_npl"    # ARREARS, age < 6
    NPL = "npl"                # ARREARS, age >= 6
    BELOW_BDP = "below_bdp"    # NPL, age < 12
    BDP = "bdp"                # NPL, age >= 12
    ANY = "any"                # BDP


@dataclass
class DayEndDecision:
    """Routing and status transition for one installment."""
    rule: str
    interest_routing: InterestRouting
    new_status: RecoveryStatus
    provision: ProvisionAction = ProvisionAction.NONE
    reclassify_arrears_interest: bool = False
    mark_doubtful: bool = False


# (status, doubtful or None for "any", bucket) -> decision
DECISION_TABLE: dict[tuple[RecoveryStatus, bool | None, AgeBucket], DayEndDecision] = {
    (RecoveryStatus.ACTIVE, None, AgeBucket.CURRENT): DayEndDecision(
        "active_current", InterestRouting.INCOME, RecoveryStatus.ACTIVE,
    ),
    (RecoveryStatus.ACTIVE, None, AgeBucket.OVERDUE): DayEndDecision(
        "active_to_arrears", InterestRouting.INCOME, RecoveryStatus.ARREARS,
    ),
    (RecoveryStatus.ARREARS, True, AgeBucket.NPL): DayEndDecision(
        "arrears_doubtful_to_npl", InterestRouting.SUSPENSE, RecoveryStatus.NPL,
        provision=ProvisionAction.HALF_CAPITAL,
    ),
    (RecoveryStatus.ARREARS, True, AgeBucket.BELOW_NPL): DayEndDecision(
        "arrears_doubtful", InterestRouting.SUSPENSE, RecoveryStatus.ARREARS,
    ),
    (RecoveryStatus.ARREARS, False, AgeBucket.NPL): DayEndDecision(
        "arrears_to_npl", InterestRouting.SUSPENSE, RecoveryStatus.NPL,
        provision=ProvisionAction.HALF_CAPITAL,
        reclassify_arrears_interest=True,
        mark_doubtful=True,
    ),
    (RecoveryStatus.ARREARS, False, AgeBucket.BELOW_NPL): DayEndDecision(
        "arrears", InterestRouting.INCOME, RecoveryStatus.ARREARS,
    ),
    (RecoveryStatus.NPL, None, AgeBucket.BDP): DayEndDecision(
        "npl_to_bdp", InterestRouting.SUSPENSE, RecoveryStatus.BDP,
        provision=ProvisionAction.TOP_UP_TO_FULL,
    ),
    (RecoveryStatus.NPL, None, AgeBucket.BELOW_BDP): DayEndDecision(
        "npl", InterestRouting.SUSPENSE, RecoveryStatus.NPL,
    ),
    (RecoveryStatus.BDP, None, AgeBucket.ANY): DayEndDecision(
        "bdp", InterestRouting.SUSPENSE, RecoveryStatus.BDP,
    ),
}


def compute_age(
    capital_arrears: Decimal,
    interest_arrears: Decimal,
    payment: Decimal,
    capital: Decimal,
    interest: Decimal,
) -> Decimal | None:
    """Arrears age in payment periods, or None when payment is not positive."""
    if payment <= 0:
        return None
    return (capital_arrears + interest_arrears + capital + interest) / payment


def age_bucket(status: RecoveryStatus, age: Decimal | None) -> AgeBucket | None:
    if status == RecoveryStatus.BDP:
        return AgeBucket.ANY
    if age is None:
        return None
    if status == RecoveryStatus.ACTIVE:
        return AgeBucket.CURRENT if age <= 0 else AgeBucket.OVERDUE
    if status == RecoveryStatus.ARREARS:
        return AgeBucket.NPL if age >= NPL_AGE else AgeBucket.BELOW_NPL
    return AgeBucket.BDP if age >= BDP_AGE else AgeBucket.BELOW_BDP


def classify(status: int, doubtful: bool, age: Decimal | None) -> DayEndDecision | None:
    """Look up the decision for a contract state.

    Returns None for states outside the table: an unknown status id, or
    an undefined age on a status whose row depends on it.
    """
    try:
        status = RecoveryStatus(status)
    except ValueError:
        return None
    bucket = age_bucket(status, age)
    if bucket is None:
        return None
    decision = DECISION_TABLE.get((status, bool(doubtful), bucket))
    if decision is None:
        decision = DECISION_TABLE.get((status, None, bucket))
    return decision
