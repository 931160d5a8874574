"""core schema: organizations, ledger and bank accounts

Revision ID: 0001_core_schema
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_core_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # organizations
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ledger_accounts
    op.create_table(
        "ledger_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("organization_id", sa.Uuid(), sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("opening_balance", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ledger_accounts_organization_id", "ledger_accounts", ["organization_id"])

    # ledger_transactions
    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("ledger_account_id", sa.Uuid(), sa.ForeignKey("ledger_accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference", sa.String(length=255), nullable=True),
        sa.Column("debit_amount", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("credit_amount", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("cleared", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cleared_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_ledger_transactions_ledger_account_id", "ledger_transactions", ["ledger_account_id"])
    op.create_index("ix_ledger_transactions_date", "ledger_transactions", ["date"])

    # bank_accounts
    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("organization_id", sa.Uuid(), sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ledger_account_id", sa.Uuid(), sa.ForeignKey("ledger_accounts.id"), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("bank_name", sa.String(length=200), nullable=True),
        sa.Column("account_number", sa.String(length=64), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("bank_balance", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("is_reconciled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_reconciled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bank_accounts_organization_id", "bank_accounts", ["organization_id"])


def downgrade() -> None:
    op.drop_index("ix_bank_accounts_organization_id", table_name="bank_accounts")
    op.drop_table("bank_accounts")
    op.drop_index("ix_ledger_transactions_date", table_name="ledger_transactions")
    op.drop_index("ix_ledger_transactions_ledger_account_id", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
    op.drop_index("ix_ledger_accounts_organization_id", table_name="ledger_accounts")
    op.drop_table("ledger_accounts")
    op.drop_table("organizations")
