"""Contract schedule and contract financial models."""

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from sprinter.database import Base


class RecoveryStatus(enum.IntEnum):
    """Delinquency stage of a contract; ids match the recovery_status table."""

    ACTIVE = 1
    ARREARS = 2
    NPL = 3
    BDP = 4


class InstallmentType(enum.IntEnum):
    RECURRING_RENTAL = 1


class ContractSchedule(Base):
    """One scheduled installment of a contract."""

    __tablename__ = "contract_schedule"
    __table_args__ = (
        Index("ix_contract_schedule_due", "daily_entry_issued", "monthly_date"),
        Index("ix_contract_schedule_contract", "contract_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    contract_id: Mapped[int] = mapped_column(Integer, nullable=False)
    contract_installment_type_id: Mapped[int] = mapped_column(
        Integer, default=InstallmentType.RECURRING_RENTAL, nullable=False
    )
    capital: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    capital_paid: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    interest: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    interest_paid: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    monthly_date: Mapped[date] = mapped_column(Date, nullable=False)
    daily_entry_issued: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )


class ContractFinancial(Base):
    """Per-contract running financial summary, updated by every day-end run."""

    __tablename__ = "contract_financial"

    contract_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    recovery_status_id: Mapped[int] = mapped_column(
        Integer, default=RecoveryStatus.ACTIVE, nullable=False
    )
    doubtful: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    capital_arrears: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    interest_arrears: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    capital_provisioned: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    capital_provisioned_bdp: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    financial_schedule_end_date: Mapped[date] = mapped_column(Date, nullable=False)
