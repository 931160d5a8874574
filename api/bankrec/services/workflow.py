"""
Reconciliation workflow.

Owns the reconciliation state machine:

    DRAFT -> PENDING_REVIEW -> APPROVED -> RECONCILED
    DRAFT -> RECONCILED                      (self-certified shortcut)
    PENDING_REVIEW -> REJECTED
    any non-terminal -> VOIDED

Every public operation is one unit of work: it either commits all of its
changes (status, cleared marks, ledger clearing, bank account update, history)
or rolls the session back and re-raises a typed error.
"""

import logging
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from ..config import Settings
from ..errors import (
    InvalidTransitionError,
    ReconciliationError,
    UnacknowledgedVarianceError,
    UnbalancedError,
    ValidationError,
)
from ..models.account import BankAccount
from ..models.audit import ReconciliationEvent
from ..models.reconciliation import Reconciliation, ReconciliationStatus
from ..models.transaction import LedgerTransaction
from .balance import BalanceResult, compute
from .ledger_reader import LedgerReader
from .store import ReconciliationStore
from .variance import VarianceResult, detect_variance

logger = logging.getLogger(__name__)

S = ReconciliationStatus

# column limits: amounts are Numeric(20, 4), variance_percent is Numeric(24, 4)
AMOUNT_SCALE = Decimal("0.0001")
AMOUNT_LIMIT = Decimal("1e15")
PERCENT_CAP = Decimal("1e19")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DraftInput:
    """Caller-supplied fields of a draft reconciliation."""

    reconciliation_date: Optional[date]
    bank_statement_balance: Optional[Decimal]
    cleared_transaction_ids: Iterable[uuid.UUID] = field(default_factory=set)
    notes: Optional[str] = None
    statement_attachment_ref: Optional[str] = None


@dataclass
class DraftOutcome:
    reconciliation: Reconciliation
    balance: BalanceResult
    variance: VarianceResult
    cleared_transaction_ids: set[uuid.UUID]
    warnings: list[str] = field(default_factory=list)


@dataclass
class TransitionOutcome:
    reconciliation: Reconciliation
    balance: Optional[BalanceResult] = None
    # populated on transitions that update the bank account
    account: Optional[BankAccount] = None


@dataclass
class _Evaluation:
    account: BankAccount
    transactions: list[LedgerTransaction]
    balance: BalanceResult
    variance: VarianceResult


class ReconciliationWorkflow:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.reader = LedgerReader(db)
        self.store = ReconciliationStore(db)

    # ------------------------------------------------------------------ reads

    def get(self, reconciliation_id: uuid.UUID) -> Reconciliation:
        return self.store.load(reconciliation_id)

    def cleared_transaction_ids(self, reconciliation_id: uuid.UUID) -> set[uuid.UUID]:
        return self.store.cleared_transaction_ids(reconciliation_id)

    def list_for_account(self, account_id: uuid.UUID) -> list[Reconciliation]:
        self.reader.get_account(account_id)
        return self.store.list_by_account(account_id)

    def history(self, reconciliation_id: uuid.UUID) -> list[ReconciliationEvent]:
        return self.store.history(reconciliation_id)

    # ------------------------------------------------------------ transitions

    def save_draft(
        self,
        draft: DraftInput,
        actor: str,
        account_id: Optional[uuid.UUID] = None,
        reconciliation_id: Optional[uuid.UUID] = None,
    ) -> DraftOutcome:
        """Create a draft, or update an existing one. Large variances come back as warnings."""
        with self._unit_of_work("save_draft"):
            self._require_actor(actor)
            statement_balance = self._validate_draft(draft)

            if reconciliation_id is None:
                if account_id is None:
                    raise ValidationError("account_id is required to open a reconciliation")
                account = self.reader.get_account(account_id)
                book_balance = self.reader.get_book_balance(account_id)
                rec = Reconciliation(
                    id=uuid.uuid4(),
                    account_id=account.id,
                    reconciliation_date=draft.reconciliation_date,
                    status=S.DRAFT.value,
                    bank_statement_balance=statement_balance,
                    book_balance=book_balance,
                    adjusted_balance=book_balance,
                    difference=book_balance - statement_balance,
                    prepared_by=actor,
                )
                self.store.create(rec)
                self.store.record_event(rec.id, "created", actor, to_status=S.DRAFT.value)
                logger.info("Opened reconciliation %s for account %s", rec.id, account.id)
            else:
                rec = self.store.load(reconciliation_id, for_update=True)
                if account_id is not None and rec.account_id != account_id:
                    raise ValidationError(f"Reconciliation {rec.id} does not belong to account {account_id}")
                self._require_status(rec, {S.DRAFT}, "save_draft")
                self._require_preparer(rec, actor, "save_draft")
                account = self.reader.get_account(rec.account_id)

            cleared_ids = set(draft.cleared_transaction_ids or ())
            txns = self.reader.get_transactions(account.id, cleared_ids)
            balance = compute(
                rec.book_balance,
                statement_balance,
                txns,
                tolerance=self.settings.tolerance_for(account.currency),
            )
            variance = self._variance(account, statement_balance)

            rec.reconciliation_date = draft.reconciliation_date
            rec.bank_statement_balance = statement_balance
            rec.notes = (draft.notes or "").strip() or None
            rec.statement_attachment_ref = draft.statement_attachment_ref
            self._apply_computed(rec, balance, variance)
            rec.variance_acknowledged = False
            self.store.set_cleared_transactions(rec.id, cleared_ids)
            self.store.record_event(
                rec.id,
                "draft_saved",
                actor,
                from_status=rec.status,
                to_status=rec.status,
                details={
                    "difference": str(balance.difference),
                    "is_balanced": balance.is_balanced,
                    "cleared_count": len(cleared_ids),
                },
            )

            warnings = []
            if variance.is_anomalous:
                logger.warning("Anomalous statement variance on reconciliation %s: %s", rec.id, variance.message())
                warnings.append(variance.message())

        return DraftOutcome(
            reconciliation=rec,
            balance=balance,
            variance=variance,
            cleared_transaction_ids=cleared_ids,
            warnings=warnings,
        )

    def submit_for_review(self, reconciliation_id: uuid.UUID, actor: str) -> TransitionOutcome:
        with self._unit_of_work("submit_for_review"):
            self._require_actor(actor)
            rec = self.store.load(reconciliation_id, for_update=True)
            self._require_status(rec, {S.DRAFT}, "submit_for_review")
            self._require_preparer(rec, actor, "submit_for_review")
            if self.settings.approval_mode == "disabled":
                raise InvalidTransitionError(
                    "Review chain is disabled; reconcile directly instead",
                    current_status=rec.status,
                    attempted="submit_for_review",
                )
            rec.submitted_at = _utcnow()
            self._move(rec, S.PENDING_REVIEW, actor, "submitted")
        return TransitionOutcome(reconciliation=rec)

    def approve(self, reconciliation_id: uuid.UUID, approver: str, acknowledge_variance: bool = False) -> TransitionOutcome:
        """Checker approval; completes the reconciliation and updates the bank account."""
        with self._unit_of_work("approve"):
            self._require_actor(approver)
            rec = self.store.load(reconciliation_id, for_update=True)
            self._require_status(rec, {S.PENDING_REVIEW}, "approve")
            if approver == rec.prepared_by:
                raise InvalidTransitionError(
                    "Approver must be different from the preparer",
                    current_status=rec.status,
                    attempted="approve",
                )
            ev = self._evaluate(rec, lock_account=True)
            self._require_terminal_ready(rec, ev, acknowledge_variance)

            now = _utcnow()
            rec.reviewed_by = approver
            rec.reviewed_at = now
            rec.approved_by = approver
            rec.approved_at = now
            self._move(rec, S.APPROVED, approver, "approved")
            self._complete(rec, ev, approver, now)
        return TransitionOutcome(reconciliation=rec, balance=ev.balance, account=ev.account)

    def reject(self, reconciliation_id: uuid.UUID, reviewer: str, reason: Optional[str] = None) -> TransitionOutcome:
        with self._unit_of_work("reject"):
            self._require_actor(reviewer)
            rec = self.store.load(reconciliation_id, for_update=True)
            self._require_status(rec, {S.PENDING_REVIEW}, "reject")
            rec.reviewed_by = reviewer
            rec.reviewed_at = _utcnow()
            rec.rejection_reason = (reason or "").strip() or None
            self._move(rec, S.REJECTED, reviewer, "rejected", details={"reason": rec.rejection_reason})
        return TransitionOutcome(reconciliation=rec)

    def reconcile_direct(self, reconciliation_id: uuid.UUID, actor: str, acknowledge_variance: bool = False) -> TransitionOutcome:
        """Self-certified completion straight from DRAFT."""
        with self._unit_of_work("reconcile_direct"):
            self._require_actor(actor)
            rec = self.store.load(reconciliation_id, for_update=True)
            self._require_status(rec, {S.DRAFT}, "reconcile_direct")
            if self.settings.approval_mode == "required":
                raise InvalidTransitionError(
                    "Review is required; submit the reconciliation for review",
                    current_status=rec.status,
                    attempted="reconcile_direct",
                )
            ev = self._evaluate(rec, lock_account=True)
            self._require_terminal_ready(rec, ev, acknowledge_variance)
            self._complete(rec, ev, actor, _utcnow())
        return TransitionOutcome(reconciliation=rec, balance=ev.balance, account=ev.account)

    def void(self, reconciliation_id: uuid.UUID, actor: str, reason: Optional[str] = None) -> TransitionOutcome:
        with self._unit_of_work("void"):
            self._require_actor(actor)
            rec = self.store.load(reconciliation_id, for_update=True)
            self._require_status(rec, {S.DRAFT, S.PENDING_REVIEW, S.APPROVED}, "void")
            rec.voided_by = actor
            rec.voided_at = _utcnow()
            rec.void_reason = (reason or "").strip() or None
            self._move(rec, S.VOIDED, actor, "voided", details={"reason": rec.void_reason})
        return TransitionOutcome(reconciliation=rec)

    def annotate(self, reconciliation_id: uuid.UUID, actor: str, note: str) -> ReconciliationEvent:
        """Audit note; allowed in every status and never touches the record itself."""
        with self._unit_of_work("annotate"):
            self._require_actor(actor)
            if not note or not note.strip():
                raise ValidationError("note is required")
            # row lock serialises event sequence numbers
            rec = self.store.load(reconciliation_id, for_update=True)
            event = self.store.record_event(
                rec.id,
                "annotated",
                actor,
                from_status=rec.status,
                to_status=rec.status,
                details={"note": note.strip()},
            )
        return event

    # ---------------------------------------------------------------- helpers

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except ReconciliationError as exc:
            self.db.rollback()
            logger.warning("%s rejected: %s: %s", operation, exc.kind, exc.message)
            raise
        except Exception:
            self.db.rollback()
            logger.exception("%s failed", operation)
            raise

    @staticmethod
    def _require_actor(actor: str) -> None:
        if not actor or not str(actor).strip():
            raise ValidationError("A user identity is required")

    @staticmethod
    def _validate_draft(draft: DraftInput) -> Decimal:
        if draft.reconciliation_date is None:
            raise ValidationError("reconciliation_date is required")
        if draft.bank_statement_balance is None or draft.bank_statement_balance == "":
            raise ValidationError("bank_statement_balance is required")
        try:
            value = Decimal(str(draft.bank_statement_balance))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid bank_statement_balance: {draft.bank_statement_balance!r}") from exc
        if not value.is_finite():
            raise ValidationError("bank_statement_balance must be a finite number")
        # stored as Numeric(20, 4); reject what the column would round or overflow
        try:
            stored = value.quantize(AMOUNT_SCALE)
        except InvalidOperation as exc:
            raise ValidationError("bank_statement_balance is out of range") from exc
        if stored != value:
            raise ValidationError("bank_statement_balance allows at most 4 decimal places")
        if abs(stored) >= AMOUNT_LIMIT:
            raise ValidationError("bank_statement_balance is out of range")
        return stored

    @staticmethod
    def _require_preparer(rec: Reconciliation, actor: str, attempted: str) -> None:
        if rec.prepared_by != actor:
            raise InvalidTransitionError(
                "Only the preparer may edit or submit a draft reconciliation",
                current_status=rec.status,
                attempted=attempted,
            )

    @staticmethod
    def _require_status(rec: Reconciliation, allowed: set[ReconciliationStatus], attempted: str) -> None:
        current = rec.status_enum
        if current.is_terminal:
            raise InvalidTransitionError(
                f"Reconciliation {rec.id} is {current.value} and can no longer change",
                current_status=current.value,
                attempted=attempted,
            )
        if current not in allowed:
            raise InvalidTransitionError(
                f"Cannot {attempted} a reconciliation in status {current.value}",
                current_status=current.value,
                attempted=attempted,
            )

    def _variance(self, account: BankAccount, statement_balance: Decimal) -> VarianceResult:
        return detect_variance(
            account.bank_balance,
            statement_balance,
            threshold_percent=self.settings.variance_threshold_percent,
            absolute_threshold=self.settings.variance_absolute_threshold,
        )

    def _evaluate(self, rec: Reconciliation, lock_account: bool = False) -> _Evaluation:
        """Recompute balance and variance from the stored snapshot and cleared set."""
        if lock_account:
            account = (
                self.db.query(BankAccount)
                .filter(BankAccount.id == rec.account_id)
                .with_for_update()
                .one_or_none()
            )
            if account is None:
                account = self.reader.get_account(rec.account_id)
        else:
            account = self.reader.get_account(rec.account_id)
        txns = self.reader.get_transactions(account.id, self.store.cleared_transaction_ids(rec.id))
        balance = compute(
            rec.book_balance,
            rec.bank_statement_balance,
            txns,
            tolerance=self.settings.tolerance_for(account.currency),
        )
        variance = self._variance(account, rec.bank_statement_balance)
        self._apply_computed(rec, balance, variance)
        return _Evaluation(account=account, transactions=txns, balance=balance, variance=variance)

    @staticmethod
    def _apply_computed(rec: Reconciliation, balance: BalanceResult, variance: VarianceResult) -> None:
        rec.adjusted_balance = balance.adjusted_balance
        rec.difference = balance.difference
        rec.variance_amount = variance.variance_amount
        rec.variance_percent = min(variance.variance_percent, PERCENT_CAP).quantize(AMOUNT_SCALE)
        rec.is_anomalous = variance.is_anomalous

    @staticmethod
    def _require_terminal_ready(rec: Reconciliation, ev: _Evaluation, acknowledge_variance: bool) -> None:
        if not ev.balance.is_balanced:
            raise UnbalancedError(ev.balance.difference, tolerance=ev.balance.tolerance)
        if ev.variance.is_anomalous:
            if not acknowledge_variance:
                raise UnacknowledgedVarianceError(ev.variance)
            rec.variance_acknowledged = True

    def _move(
        self,
        rec: Reconciliation,
        target: ReconciliationStatus,
        actor: str,
        action: str,
        details: Optional[dict] = None,
    ) -> None:
        previous = rec.status
        rec.status = target.value
        self.db.flush()
        self.store.record_event(rec.id, action, actor, from_status=previous, to_status=target.value, details=details)
        logger.info("Reconciliation %s: %s -> %s by %s", rec.id, previous, target.value, actor)

    def _complete(self, rec: Reconciliation, ev: _Evaluation, actor: str, now: datetime) -> None:
        for txn in ev.transactions:
            txn.cleared = True
            txn.cleared_at = now
            txn.cleared_by_reconciliation_id = rec.id

        account = ev.account
        account.bank_balance = rec.bank_statement_balance
        account.is_reconciled = True
        account.last_reconciled_at = now

        rec.reconciled_by = actor
        rec.reconciled_at = now
        self._move(
            rec,
            S.RECONCILED,
            actor,
            "reconciled",
            details={
                "bank_balance": str(account.bank_balance),
                "cleared_count": len(ev.transactions),
                "variance_acknowledged": rec.variance_acknowledged,
            },
        )
