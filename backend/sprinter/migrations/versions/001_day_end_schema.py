"""Day-end schema: contract schedule, contract financial and ledger tables.

Revision ID: 001
Revises:
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- Enums -----------------------------------------------------------------
    entry_type = postgresql.ENUM("DR", "CR", name="entrytype", create_type=False)
    entry_type.create(op.get_bind(), checkfirst=True)

    # -- Contracts -------------------------------------------------------------

    op.create_table(
        "contract_schedule",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("contract_id", sa.Integer, nullable=False),
        sa.Column("contract_installment_type_id", sa.Integer, nullable=False, server_default="1"),
        sa.Column("capital", sa.Numeric(12, 2), nullable=False),
        sa.Column("capital_paid", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("interest", sa.Numeric(12, 2), nullable=False),
        sa.Column("interest_paid", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("monthly_date", sa.Date, nullable=False),
        sa.Column("daily_entry_issued", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_contract_schedule_due", "contract_schedule", ["daily_entry_issued", "monthly_date"])
    op.create_index("ix_contract_schedule_contract", "contract_schedule", ["contract_id"])

    op.create_table(
        "contract_financial",
        sa.Column("contract_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("recovery_status_id", sa.Integer, nullable=False, server_default="1"),
        sa.Column("doubtful", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("payment", sa.Numeric(12, 2), nullable=False),
        sa.Column("capital_arrears", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("interest_arrears", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("capital_provisioned", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("capital_provisioned_bdp", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("financial_schedule_end_date", sa.Date, nullable=False),
    )

    # -- Ledger ----------------------------------------------------------------

    op.create_table(
        "account",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("account_id", sa.String(30), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
    )

    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, nullable=False),
        sa.Column("datetime", sa.DateTime, nullable=False),
        sa.Column("posting_date", sa.Date, nullable=False),
        sa.Column("contract_id", sa.Integer, nullable=True),
        sa.Column("remark", sa.Text, nullable=True),
    )
    op.create_index("ix_transaction_contract", "transaction", ["contract_id"])
    op.create_index("ix_transaction_posting_date", "transaction", ["posting_date"])

    op.create_table(
        "account_transaction",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("transaction_id", sa.Integer, sa.ForeignKey("transaction.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.Integer, sa.ForeignKey("account.id"), nullable=False),
        sa.Column("type", entry_type, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_account_transaction_amount"),
    )
    op.create_index("ix_account_transaction_account", "account_transaction", ["account_id"])
    op.create_index("ix_account_transaction_transaction", "account_transaction", ["transaction_id"])


def downgrade() -> None:
    tables = [
        "account_transaction", "transaction", "account",
        "contract_financial", "contract_schedule",
    ]
    for t in tables:
        op.drop_table(t)

    postgresql.ENUM(name="entrytype").drop(op.get_bind(), checkfirst=True)
