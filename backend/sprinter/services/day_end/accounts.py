"""Chart of accounts used by day-end postings.

Account ids differ between deployments, so the journal builder receives
a ``ChartOfAccounts`` value instead of reading module constants.
"""

from dataclasses import dataclass, fields

from sprinter.config import Settings, settings as default_settings


ACCOUNT_LABELS = {
    "unearned_interest": "Unearned Interest",
    "interest_income": "Interest Income",
    "receivable": "Receivable",
    "receivable_arrears": "Receivable Arrears",
    "suspense_interest": "Suspense Interest",
    "bad_debt_provision": "Bad Debt Provision",
    "provision_for_bad_debt": "Provision for Bad Debt",
}


@dataclass
class ChartOfAccounts:
    """Account database ids for every ledger role the day-end run posts to."""
    unearned_interest: int = 188
    interest_income: int = 190
    receivable: int = 185
    receivable_arrears: int = 192
    suspense_interest: int = 194
    bad_debt_provision: int = 195
    provision_for_bad_debt: int = 196

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "ChartOfAccounts":
        cfg = cfg or default_settings
        return cls(**{f.name: getattr(cfg, f"account_{f.name}") for f in fields(cls)})

    def labelled(self) -> dict[int, str]:
        """Map each account id to its display name."""
        return {getattr(self, role): label for role, label in ACCOUNT_LABELS.items()}
