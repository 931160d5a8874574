import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy import String, Boolean, Date, DateTime, ForeignKey, Index, Numeric, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    RECONCILED = "RECONCILED"
    REJECTED = "REJECTED"
    VOIDED = "VOIDED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ReconciliationStatus.RECONCILED, ReconciliationStatus.REJECTED, ReconciliationStatus.VOIDED})
ACTIVE_STATUSES = frozenset({ReconciliationStatus.DRAFT, ReconciliationStatus.PENDING_REVIEW})

_ACTIVE_PREDICATE = text("status IN ('DRAFT', 'PENDING_REVIEW')")


class Reconciliation(Base):
    __tablename__ = "reconciliations"
    __table_args__ = (
        # at most one active reconciliation per account
        Index(
            "uq_reconciliations_active_account",
            "account_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        Index("ix_reconciliations_account_date", "account_id", "reconciliation_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("bank_accounts.id", ondelete="CASCADE"), nullable=False)
    reconciliation_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ReconciliationStatus.DRAFT.value)

    bank_statement_balance: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False)
    book_balance: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False)
    adjusted_balance: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False)
    difference: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False)

    variance_amount: Mapped[Decimal | None] = mapped_column(Numeric(20, 4), nullable=True)
    variance_percent: Mapped[Decimal | None] = mapped_column(Numeric(24, 4), nullable=True)
    is_anomalous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    variance_acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    statement_attachment_ref: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    void_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    prepared_by: Mapped[str] = mapped_column(String(128), nullable=False)
    reviewed_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reconciled_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    voided_by: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reconciled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def status_enum(self) -> ReconciliationStatus:
        return ReconciliationStatus(self.status)


class ReconciliationClearedTransaction(Base):
    __tablename__ = "reconciliation_cleared_transactions"

    reconciliation_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("reconciliations.id", ondelete="CASCADE"), primary_key=True)
    transaction_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ledger_transactions.id"), primary_key=True)
