"""Persistence boundary for reconciliation records.

The store flushes but never commits; the caller owns the unit of work.
"""

import logging
import uuid
from collections.abc import Iterable
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFoundError
from ..models.audit import ReconciliationEvent
from ..models.reconciliation import (
    ACTIVE_STATUSES,
    Reconciliation,
    ReconciliationClearedTransaction,
)

logger = logging.getLogger(__name__)

_ACTIVE = [s.value for s in ACTIVE_STATUSES]


class ReconciliationStore:
    def __init__(self, db: Session):
        self.db = db

    def has_active_reconciliation(self, account_id: uuid.UUID) -> bool:
        return self.get_active(account_id) is not None

    def get_active(self, account_id: uuid.UUID) -> Optional[Reconciliation]:
        return (
            self.db.query(Reconciliation)
            .filter(Reconciliation.account_id == account_id, Reconciliation.status.in_(_ACTIVE))
            .one_or_none()
        )

    def create(self, rec: Reconciliation) -> uuid.UUID:
        """Insert a new record, failing with Conflict if the account already has an active one."""
        if self.has_active_reconciliation(rec.account_id):
            raise ConflictError(f"Account {rec.account_id} already has an active reconciliation")
        account_id = rec.account_id
        try:
            self.db.add(rec)
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            # lost the race against a concurrent create; the partial unique index decided
            if self.has_active_reconciliation(account_id):
                logger.warning("Concurrent reconciliation create rejected for account %s", account_id)
                raise ConflictError(f"Account {account_id} already has an active reconciliation") from exc
            raise
        return rec.id

    def load(self, reconciliation_id: uuid.UUID, for_update: bool = False) -> Reconciliation:
        if for_update:
            rec = (
                self.db.query(Reconciliation)
                .filter(Reconciliation.id == reconciliation_id)
                .with_for_update()
                .one_or_none()
            )
        else:
            rec = self.db.get(Reconciliation, reconciliation_id)
        if rec is None:
            raise NotFoundError(f"Reconciliation {reconciliation_id} not found")
        return rec

    def update(self, reconciliation_id: uuid.UUID, **fields: Any) -> Reconciliation:
        rec = self.load(reconciliation_id)
        for name, value in fields.items():
            if not hasattr(Reconciliation, name):
                raise AttributeError(f"Reconciliation has no field {name!r}")
            setattr(rec, name, value)
        self.db.flush()
        return rec

    def list_by_account(self, account_id: uuid.UUID) -> list[Reconciliation]:
        return (
            self.db.query(Reconciliation)
            .filter(Reconciliation.account_id == account_id)
            .order_by(Reconciliation.reconciliation_date.desc(), Reconciliation.created_at.desc())
            .all()
        )

    def cleared_transaction_ids(self, reconciliation_id: uuid.UUID) -> set[uuid.UUID]:
        rows = (
            self.db.query(ReconciliationClearedTransaction.transaction_id)
            .filter(ReconciliationClearedTransaction.reconciliation_id == reconciliation_id)
            .all()
        )
        return {r.transaction_id for r in rows}

    def set_cleared_transactions(self, reconciliation_id: uuid.UUID, transaction_ids: Iterable[uuid.UUID]) -> None:
        """Replace the cleared set of a reconciliation."""
        wanted = set(transaction_ids)
        current = self.cleared_transaction_ids(reconciliation_id)
        removed = current - wanted
        if removed:
            marks = (
                self.db.query(ReconciliationClearedTransaction)
                .filter(
                    ReconciliationClearedTransaction.reconciliation_id == reconciliation_id,
                    ReconciliationClearedTransaction.transaction_id.in_(removed),
                )
                .all()
            )
            for mark in marks:
                self.db.delete(mark)
            self.db.flush()
        for tx_id in wanted - current:
            self.db.add(ReconciliationClearedTransaction(reconciliation_id=reconciliation_id, transaction_id=tx_id))
        self.db.flush()

    def record_event(
        self,
        reconciliation_id: uuid.UUID,
        action: str,
        actor: str,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> ReconciliationEvent:
        last = (
            self.db.query(sa.func.max(ReconciliationEvent.sequence))
            .filter(ReconciliationEvent.reconciliation_id == reconciliation_id)
            .scalar()
        )
        event = ReconciliationEvent(
            reconciliation_id=reconciliation_id,
            sequence=(last or 0) + 1,
            action=action,
            actor=actor,
            from_status=from_status,
            to_status=to_status,
            details=details,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def history(self, reconciliation_id: uuid.UUID) -> list[ReconciliationEvent]:
        self.load(reconciliation_id)
        return (
            self.db.query(ReconciliationEvent)
            .filter(ReconciliationEvent.reconciliation_id == reconciliation_id)
            .order_by(ReconciliationEvent.sequence)
            .all()
        )
