from datetime import date
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, ConfigDict


class LedgerTransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: date
    description: str | None = None
    reference: str | None = None
    debit_amount: Decimal
    credit_amount: Decimal
    cleared: bool


class OutstandingOut(BaseModel):
    account_id: UUID
    book_balance: Decimal
    bank_balance: Decimal  # last confirmed statement balance
    transactions: list[LedgerTransactionOut]
