from datetime import datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, ConfigDict, constr


class BankAccountCreate(BaseModel):
    name: constr(min_length=1, max_length=200)
    ledger_account_id: UUID
    bank_name: constr(max_length=200) | None = None
    account_number: constr(max_length=64) | None = None
    currency: constr(min_length=3, max_length=3) | None = None


class BankAccountPatch(BaseModel):
    name: constr(min_length=1, max_length=200) | None = None
    bank_name: constr(max_length=200) | None = None
    account_number: constr(max_length=64) | None = None


class BankAccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    ledger_account_id: UUID
    name: str
    bank_name: str | None = None
    account_number: str | None = None
    currency: str
    bank_balance: Decimal
    is_reconciled: bool
    last_reconciled_at: datetime | None = None


class BankAccountBalanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    bank_name: str | None = None
    currency: str
    book_balance: Decimal
    bank_balance: Decimal
    difference: Decimal  # bank - book
    is_reconciled: bool
    last_reconciled_at: datetime | None = None
    active_reconciliation_id: UUID | None = None
    active_reconciliation_status: str | None = None


class OrganizationSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    organization_id: UUID
    account_count: int
    unreconciled_count: int
    total_book_balance: Decimal
    total_bank_balance: Decimal
