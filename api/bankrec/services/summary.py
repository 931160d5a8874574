"""Read-only projections over bank accounts.

Recomputed from the database on every call; nothing here is cached.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Session

from ..models.account import BankAccount, LedgerAccount
from ..models.reconciliation import ACTIVE_STATUSES, Reconciliation
from ..models.transaction import LedgerTransaction


@dataclass
class AccountBalanceRow:
    id: uuid.UUID
    name: str
    bank_name: Optional[str]
    currency: str
    book_balance: Decimal
    bank_balance: Decimal
    difference: Decimal
    is_reconciled: bool
    last_reconciled_at: Optional[datetime]
    active_reconciliation_id: Optional[uuid.UUID]
    active_reconciliation_status: Optional[str]

    @property
    def needs_reconciliation(self) -> bool:
        return not self.is_reconciled


@dataclass
class OrganizationSummary:
    organization_id: uuid.UUID
    account_count: int
    unreconciled_count: int
    total_book_balance: Decimal
    total_bank_balance: Decimal


def account_balances(db: Session, organization_id: uuid.UUID) -> list[AccountBalanceRow]:
    # Aggregate ledger movements per ledger account
    movements = (
        db.query(
            LedgerTransaction.ledger_account_id.label("ledger_account_id"),
            sa.func.coalesce(sa.func.sum(LedgerTransaction.debit_amount), 0).label("debits"),
            sa.func.coalesce(sa.func.sum(LedgerTransaction.credit_amount), 0).label("credits"),
        )
        .group_by(LedgerTransaction.ledger_account_id)
        .subquery()
    )
    active = (
        db.query(Reconciliation.account_id, Reconciliation.id, Reconciliation.status)
        .filter(Reconciliation.status.in_([s.value for s in ACTIVE_STATUSES]))
        .subquery()
    )
    rows = (
        db.query(
            BankAccount,
            LedgerAccount.opening_balance,
            sa.func.coalesce(movements.c.debits, 0).label("debits"),
            sa.func.coalesce(movements.c.credits, 0).label("credits"),
            active.c.id.label("active_id"),
            active.c.status.label("active_status"),
        )
        .join(LedgerAccount, LedgerAccount.id == BankAccount.ledger_account_id)
        .outerjoin(movements, movements.c.ledger_account_id == LedgerAccount.id)
        .outerjoin(active, active.c.account_id == BankAccount.id)
        .filter(BankAccount.organization_id == organization_id)
        .order_by(BankAccount.name)
        .all()
    )
    out: list[AccountBalanceRow] = []
    for acc, opening, debits, credits, active_id, active_status in rows:
        book = Decimal(str(opening or 0)) + Decimal(str(debits or 0)) - Decimal(str(credits or 0))
        bank = Decimal(str(acc.bank_balance or 0))
        out.append(
            AccountBalanceRow(
                id=acc.id,
                name=acc.name,
                bank_name=acc.bank_name,
                currency=acc.currency,
                book_balance=book,
                bank_balance=bank,
                difference=bank - book,
                is_reconciled=acc.is_reconciled,
                last_reconciled_at=acc.last_reconciled_at,
                active_reconciliation_id=active_id,
                active_reconciliation_status=active_status,
            )
        )
    return out


def organization_summary(db: Session, organization_id: uuid.UUID) -> OrganizationSummary:
    rows = account_balances(db, organization_id)
    return OrganizationSummary(
        organization_id=organization_id,
        account_count=len(rows),
        unreconciled_count=sum(1 for r in rows if not r.is_reconciled),
        total_book_balance=sum((r.book_balance for r in rows), Decimal("0")),
        total_bank_balance=sum((r.bank_balance for r in rows), Decimal("0")),
    )


def reconciliation_queue(db: Session, organization_id: uuid.UUID) -> list[AccountBalanceRow]:
    """Accounts still to reconcile, oldest reconciliation first (never-reconciled leading)."""
    pending = [r for r in account_balances(db, organization_id) if r.needs_reconciliation]
    return sorted(pending, key=lambda r: (r.last_reconciled_at is not None, r.last_reconciled_at or datetime.min, r.name))
