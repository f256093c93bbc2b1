"""Ledger models: chart of accounts, transaction headers and postings."""

import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String,
    Numeric,
    Integer,
    Enum,
    DateTime,
    Date,
    ForeignKey,
    Text,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sprinter.database import Base


class EntryType(str, enum.Enum):
    DEBIT = "DR"
    CREDIT = "CR"


class Account(Base):
    """Chart of Accounts entry."""

    __tablename__ = "account"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    account_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    postings = relationship("AccountTransaction", back_populates="account")


class Transaction(Base):
    """Header grouping the postings made for one business event."""

    __tablename__ = "transaction"
    __table_args__ = (
        Index("ix_transaction_contract", "contract_id"),
        Index("ix_transaction_posting_date", "posting_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column("datetime", DateTime, nullable=False)
    posting_date: Mapped[date] = mapped_column(Date, nullable=False)
    contract_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    postings = relationship(
        "AccountTransaction",
        back_populates="transaction",
        cascade="all, delete-orphan",
    )


class AccountTransaction(Base):
    """A single debit or credit posting against an account."""

    __tablename__ = "account_transaction"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_account_transaction_amount"),
        Index("ix_account_transaction_account", "account_id"),
        Index("ix_account_transaction_transaction", "transaction_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transaction.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[int] = mapped_column(ForeignKey("account.id"), nullable=False)
    type: Mapped[EntryType] = mapped_column(
        Enum(EntryType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    transaction = relationship("Transaction", back_populates="postings")
    account = relationship("Account", back_populates="postings")
