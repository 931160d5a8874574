"""Read-only access to the general ledger behind a bank account."""

import uuid
from collections.abc import Iterable
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models.account import BankAccount, LedgerAccount
from ..models.transaction import LedgerTransaction


class LedgerReader:
    def __init__(self, db: Session):
        self.db = db

    def get_account(self, account_id: uuid.UUID) -> BankAccount:
        acc = self.db.get(BankAccount, account_id)
        if acc is None:
            raise NotFoundError(f"Bank account {account_id} not found")
        return acc

    def get_book_balance(self, account_id: uuid.UUID) -> Decimal:
        """Opening balance of the linked ledger account plus debits minus credits."""
        acc = self.get_account(account_id)
        ledger = self.db.get(LedgerAccount, acc.ledger_account_id)
        if ledger is None:
            raise NotFoundError(f"Ledger account {acc.ledger_account_id} not found")
        debits, credits = (
            self.db.query(
                sa.func.coalesce(sa.func.sum(LedgerTransaction.debit_amount), 0),
                sa.func.coalesce(sa.func.sum(LedgerTransaction.credit_amount), 0),
            )
            .filter(LedgerTransaction.ledger_account_id == ledger.id)
            .one()
        )
        return Decimal(ledger.opening_balance or 0) + Decimal(str(debits)) - Decimal(str(credits))

    def get_outstanding_transactions(self, account_id: uuid.UUID) -> list[LedgerTransaction]:
        acc = self.get_account(account_id)
        return (
            self.db.query(LedgerTransaction)
            .filter(
                LedgerTransaction.ledger_account_id == acc.ledger_account_id,
                LedgerTransaction.cleared.is_(False),
            )
            .order_by(LedgerTransaction.date, LedgerTransaction.id)
            .all()
        )

    def get_transactions(self, account_id: uuid.UUID, ids: Iterable[uuid.UUID]) -> list[LedgerTransaction]:
        """Resolve ids to outstanding transactions of this account, rejecting anything else."""
        wanted = set(ids)
        if not wanted:
            return []
        acc = self.get_account(account_id)
        rows = self.db.query(LedgerTransaction).filter(LedgerTransaction.id.in_(wanted)).all()
        found = {t.id: t for t in rows}
        missing = wanted - found.keys()
        if missing:
            raise ValidationError(f"Unknown transaction ids: {', '.join(sorted(str(i) for i in missing))}")
        foreign = [t.id for t in rows if t.ledger_account_id != acc.ledger_account_id]
        if foreign:
            raise ValidationError(f"Transactions do not belong to account {account_id}: {', '.join(str(i) for i in foreign)}")
        already = [t.id for t in rows if t.cleared]
        if already:
            raise ValidationError(f"Transactions already cleared: {', '.join(str(i) for i in already)}")
        return sorted(rows, key=lambda t: (t.date, str(t.id)))
