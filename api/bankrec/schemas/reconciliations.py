from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from .bank_accounts import BankAccountOut


class ReconciliationDraftIn(BaseModel):
    reconciliation_date: date | None = None
    bank_statement_balance: Decimal | None = None
    cleared_transaction_ids: list[UUID] = Field(default_factory=list)
    notes: str | None = None
    statement_attachment_ref: str | None = Field(None, max_length=1024)


class ApproveIn(BaseModel):
    acknowledge_variance: bool = False


class ReconcileIn(BaseModel):
    acknowledge_variance: bool = False


class ReasonIn(BaseModel):
    reason: str | None = None


class NoteIn(BaseModel):
    note: str = Field(min_length=1)


class ReconciliationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    reconciliation_date: date
    status: str
    bank_statement_balance: Decimal
    book_balance: Decimal
    adjusted_balance: Decimal
    difference: Decimal
    variance_amount: Decimal | None = None
    variance_percent: Decimal | None = None
    is_anomalous: bool
    variance_acknowledged: bool
    notes: str | None = None
    statement_attachment_ref: str | None = None
    rejection_reason: str | None = None
    void_reason: str | None = None
    prepared_by: str
    reviewed_by: str | None = None
    approved_by: str | None = None
    reconciled_by: str | None = None
    voided_by: str | None = None
    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    approved_at: datetime | None = None
    reconciled_at: datetime | None = None
    voided_at: datetime | None = None
    cleared_transaction_ids: list[UUID] = Field(default_factory=list)


class DraftResponse(BaseModel):
    reconciliation: ReconciliationOut
    is_balanced: bool
    cleared_debits: Decimal
    cleared_credits: Decimal
    warnings: list[str] = Field(default_factory=list)


class TransitionResponse(BaseModel):
    reconciliation: ReconciliationOut
    account: BankAccountOut | None = None


class ReconciliationEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    action: str
    from_status: str | None = None
    to_status: str | None = None
    actor: str
    at: datetime
    details: dict | None = None
