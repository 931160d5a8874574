"""reconciliation records, cleared marks and status history

Revision ID: 0002_reconciliations
Revises: 0001_core_schema
Create Date: 2026-10-19 09:30:00

"""
from alembic import op
import sqlalchemy as sa

revision = "0002_reconciliations"
down_revision = "0001_core_schema"
branch_labels = None
depends_on = None

ACTIVE = sa.text("status IN ('DRAFT', 'PENDING_REVIEW')")


def upgrade() -> None:
    op.create_table(
        "reconciliations",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("account_id", sa.Uuid(), sa.ForeignKey("bank_accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reconciliation_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="DRAFT"),
        sa.Column("bank_statement_balance", sa.Numeric(20, 4), nullable=False),
        sa.Column("book_balance", sa.Numeric(20, 4), nullable=False),
        sa.Column("adjusted_balance", sa.Numeric(20, 4), nullable=False),
        sa.Column("difference", sa.Numeric(20, 4), nullable=False),
        sa.Column("variance_amount", sa.Numeric(20, 4), nullable=True),
        sa.Column("variance_percent", sa.Numeric(24, 4), nullable=True),
        sa.Column("is_anomalous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("variance_acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("statement_attachment_ref", sa.String(length=1024), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("void_reason", sa.Text(), nullable=True),
        sa.Column("prepared_by", sa.String(length=128), nullable=False),
        sa.Column("reviewed_by", sa.String(length=128), nullable=True),
        sa.Column("approved_by", sa.String(length=128), nullable=True),
        sa.Column("reconciled_by", sa.String(length=128), nullable=True),
        sa.Column("voided_by", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reconciled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voided_at", sa.DateTime(timezone=True), nullable=True),
    )
    # one DRAFT/PENDING_REVIEW reconciliation per account
    op.create_index(
        "uq_reconciliations_active_account",
        "reconciliations",
        ["account_id"],
        unique=True,
        postgresql_where=ACTIVE,
        sqlite_where=ACTIVE,
    )
    op.create_index("ix_reconciliations_account_date", "reconciliations", ["account_id", "reconciliation_date"])

    op.create_table(
        "reconciliation_cleared_transactions",
        sa.Column("reconciliation_id", sa.Uuid(), sa.ForeignKey("reconciliations.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("transaction_id", sa.Uuid(), sa.ForeignKey("ledger_transactions.id"), primary_key=True),
    )

    op.create_table(
        "reconciliation_events",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("reconciliation_id", sa.Uuid(), sa.ForeignKey("reconciliations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("from_status", sa.String(length=16), nullable=True),
        sa.Column("to_status", sa.String(length=16), nullable=True),
        sa.Column("actor", sa.String(length=128), nullable=False),
        sa.Column("at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.UniqueConstraint("reconciliation_id", "sequence", name="uq_reconciliation_events_seq"),
    )
    op.create_index("ix_reconciliation_events_reconciliation_id", "reconciliation_events", ["reconciliation_id"])

    with op.batch_alter_table("ledger_transactions") as batch:
        batch.add_column(sa.Column("cleared_by_reconciliation_id", sa.Uuid(), nullable=True))
        batch.create_foreign_key(
            "fk_ledger_transactions_reconciliation",
            "reconciliations",
            ["cleared_by_reconciliation_id"],
            ["id"],
        )


def downgrade() -> None:
    with op.batch_alter_table("ledger_transactions") as batch:
        batch.drop_constraint("fk_ledger_transactions_reconciliation", type_="foreignkey")
        batch.drop_column("cleared_by_reconciliation_id")
    op.drop_index("ix_reconciliation_events_reconciliation_id", table_name="reconciliation_events")
    op.drop_table("reconciliation_events")
    op.drop_table("reconciliation_cleared_transactions")
    op.drop_index("ix_reconciliations_account_date", table_name="reconciliations")
    op.drop_index("uq_reconciliations_active_account", table_name="reconciliations")
    op.drop_table("reconciliations")
