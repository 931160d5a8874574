from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bankrec.db import get_db
from bankrec.deps import get_current_user, get_workflow
from bankrec.errors import NotFoundError
from bankrec.models.account import BankAccount
from bankrec.models.organization import Organization
from bankrec.models.reconciliation import Reconciliation
from bankrec.schemas.bank_accounts import BankAccountOut
from bankrec.schemas.reconciliations import (
    ApproveIn,
    DraftResponse,
    NoteIn,
    ReasonIn,
    ReconcileIn,
    ReconciliationDraftIn,
    ReconciliationEventOut,
    ReconciliationOut,
    TransitionResponse,
)
from bankrec.services.workflow import DraftInput, DraftOutcome, ReconciliationWorkflow, TransitionOutcome


router = APIRouter(prefix="/api/v1/organizations/{organization_id}/reconciliations", tags=["reconciliations"])


def serialize_reconciliation(wf: ReconciliationWorkflow, rec: Reconciliation) -> ReconciliationOut:
    out = ReconciliationOut.model_validate(rec)
    out.cleared_transaction_ids = sorted(wf.cleared_transaction_ids(rec.id), key=str)
    return out


def draft_response(wf: ReconciliationWorkflow, outcome: DraftOutcome) -> DraftResponse:
    return DraftResponse(
        reconciliation=serialize_reconciliation(wf, outcome.reconciliation),
        is_balanced=outcome.balance.is_balanced,
        cleared_debits=outcome.balance.cleared_debits,
        cleared_credits=outcome.balance.cleared_credits,
        warnings=outcome.warnings,
    )


def _transition_response(wf: ReconciliationWorkflow, outcome: TransitionOutcome) -> TransitionResponse:
    return TransitionResponse(
        reconciliation=serialize_reconciliation(wf, outcome.reconciliation),
        account=BankAccountOut.model_validate(outcome.account) if outcome.account is not None else None,
    )


def _scoped(db: Session, wf: ReconciliationWorkflow, organization_id: UUID, reconciliation_id: UUID) -> Reconciliation:
    _ = db.get(Organization, organization_id) or (_ for _ in ()).throw(HTTPException(404, "Organization not found"))
    rec = wf.get(reconciliation_id)
    acc = db.get(BankAccount, rec.account_id)
    if not acc or acc.organization_id != organization_id:
        raise NotFoundError(f"Reconciliation {reconciliation_id} not found")
    return rec


@router.get("/{reconciliation_id}", response_model=ReconciliationOut)
def get_reconciliation(
    organization_id: UUID,
    reconciliation_id: UUID,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
):
    rec = _scoped(db, wf, organization_id, reconciliation_id)
    return serialize_reconciliation(wf, rec)


@router.put("/{reconciliation_id}", response_model=DraftResponse)
def update_draft(
    organization_id: UUID,
    reconciliation_id: UUID,
    payload: ReconciliationDraftIn,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    outcome = wf.save_draft(
        DraftInput(
            reconciliation_date=payload.reconciliation_date,
            bank_statement_balance=payload.bank_statement_balance,
            cleared_transaction_ids=payload.cleared_transaction_ids,
            notes=payload.notes,
            statement_attachment_ref=payload.statement_attachment_ref,
        ),
        actor=user,
        reconciliation_id=reconciliation_id,
    )
    return draft_response(wf, outcome)


@router.post("/{reconciliation_id}/submit", response_model=TransitionResponse)
def submit_for_review(
    organization_id: UUID,
    reconciliation_id: UUID,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    return _transition_response(wf, wf.submit_for_review(reconciliation_id, user))


@router.post("/{reconciliation_id}/approve", response_model=TransitionResponse)
def approve(
    organization_id: UUID,
    reconciliation_id: UUID,
    payload: ApproveIn | None = None,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    ack = payload.acknowledge_variance if payload else False
    return _transition_response(wf, wf.approve(reconciliation_id, user, acknowledge_variance=ack))


@router.post("/{reconciliation_id}/reject", response_model=TransitionResponse)
def reject(
    organization_id: UUID,
    reconciliation_id: UUID,
    payload: ReasonIn | None = None,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    return _transition_response(wf, wf.reject(reconciliation_id, user, reason=payload.reason if payload else None))


@router.post("/{reconciliation_id}/reconcile", response_model=TransitionResponse)
def reconcile_direct(
    organization_id: UUID,
    reconciliation_id: UUID,
    payload: ReconcileIn | None = None,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    ack = payload.acknowledge_variance if payload else False
    return _transition_response(wf, wf.reconcile_direct(reconciliation_id, user, acknowledge_variance=ack))


@router.post("/{reconciliation_id}/void", response_model=TransitionResponse)
def void(
    organization_id: UUID,
    reconciliation_id: UUID,
    payload: ReasonIn | None = None,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    return _transition_response(wf, wf.void(reconciliation_id, user, reason=payload.reason if payload else None))


@router.post("/{reconciliation_id}/notes", response_model=ReconciliationEventOut, status_code=201)
def add_note(
    organization_id: UUID,
    reconciliation_id: UUID,
    payload: NoteIn,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    return wf.annotate(reconciliation_id, user, payload.note)


@router.get("/{reconciliation_id}/history", response_model=list[ReconciliationEventOut])
def get_history(
    organization_id: UUID,
    reconciliation_id: UUID,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
):
    _scoped(db, wf, organization_id, reconciliation_id)
    return wf.history(reconciliation_id)
