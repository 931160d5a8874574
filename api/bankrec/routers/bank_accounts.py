from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bankrec.db import get_db
from bankrec.deps import get_current_user, get_workflow
from bankrec.errors import NotFoundError
from bankrec.models.organization import Organization
from bankrec.models.account import BankAccount, LedgerAccount
from bankrec.schemas.bank_accounts import (
    BankAccountBalanceOut,
    BankAccountCreate,
    BankAccountOut,
    BankAccountPatch,
    OrganizationSummaryOut,
)
from bankrec.schemas.ledger import OutstandingOut
from bankrec.schemas.reconciliations import DraftResponse, ReconciliationDraftIn, ReconciliationOut
from bankrec.services import summary
from bankrec.services.ledger_reader import LedgerReader
from bankrec.services.workflow import DraftInput, ReconciliationWorkflow
from bankrec.routers.reconciliations import draft_response, serialize_reconciliation


router = APIRouter(prefix="/api/v1/organizations/{organization_id}/bank-accounts", tags=["bank-accounts"])


def _get_org(db: Session, organization_id: UUID) -> Organization:
    return db.get(Organization, organization_id) or (_ for _ in ()).throw(HTTPException(404, "Organization not found"))


def _get_account(db: Session, organization_id: UUID, account_id: UUID) -> BankAccount:
    _get_org(db, organization_id)
    acc = db.get(BankAccount, account_id)
    if not acc or acc.organization_id != organization_id:
        raise NotFoundError(f"Bank account {account_id} not found")
    return acc


@router.get("/", response_model=list[BankAccountBalanceOut])
def list_bank_accounts(organization_id: UUID, db: Session = Depends(get_db)):
    _get_org(db, organization_id)
    return summary.account_balances(db, organization_id)


@router.get("/summary", response_model=OrganizationSummaryOut)
def get_summary(organization_id: UUID, db: Session = Depends(get_db)):
    _get_org(db, organization_id)
    return summary.organization_summary(db, organization_id)


@router.get("/queue", response_model=list[BankAccountBalanceOut])
def get_reconciliation_queue(organization_id: UUID, db: Session = Depends(get_db)):
    _get_org(db, organization_id)
    return summary.reconciliation_queue(db, organization_id)


@router.post("/", response_model=BankAccountOut, status_code=201)
def create_bank_account(organization_id: UUID, payload: BankAccountCreate, db: Session = Depends(get_db)):
    org = _get_org(db, organization_id)
    ledger = db.get(LedgerAccount, payload.ledger_account_id)
    if not ledger or ledger.organization_id != organization_id:
        raise HTTPException(400, "Invalid ledger account")
    if db.query(BankAccount).filter_by(ledger_account_id=ledger.id).first():
        raise HTTPException(409, "Ledger account is already linked to a bank account")
    acc = BankAccount(
        organization_id=organization_id,
        ledger_account_id=ledger.id,
        name=payload.name,
        bank_name=payload.bank_name,
        account_number=payload.account_number,
        currency=(payload.currency or ledger.currency or org.currency).upper(),
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@router.get("/{account_id}", response_model=BankAccountOut)
def get_bank_account(organization_id: UUID, account_id: UUID, db: Session = Depends(get_db)):
    return _get_account(db, organization_id, account_id)


@router.patch("/{account_id}", response_model=BankAccountOut)
def update_bank_account(organization_id: UUID, account_id: UUID, payload: BankAccountPatch, db: Session = Depends(get_db)):
    acc = _get_account(db, organization_id, account_id)
    if payload.name is not None:
        acc.name = payload.name
    if payload.bank_name is not None:
        acc.bank_name = payload.bank_name
    if payload.account_number is not None:
        acc.account_number = payload.account_number
    db.commit()
    db.refresh(acc)
    return acc


@router.get("/{account_id}/outstanding", response_model=OutstandingOut)
def get_outstanding(organization_id: UUID, account_id: UUID, db: Session = Depends(get_db)):
    acc = _get_account(db, organization_id, account_id)
    reader = LedgerReader(db)
    return OutstandingOut(
        account_id=acc.id,
        book_balance=reader.get_book_balance(acc.id),
        bank_balance=acc.bank_balance,
        transactions=reader.get_outstanding_transactions(acc.id),
    )


@router.get("/{account_id}/reconciliations", response_model=list[ReconciliationOut])
def list_reconciliations(
    organization_id: UUID,
    account_id: UUID,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
):
    _get_account(db, organization_id, account_id)
    return [serialize_reconciliation(wf, r) for r in wf.list_for_account(account_id)]


@router.post("/{account_id}/reconciliations", response_model=DraftResponse, status_code=201)
def open_reconciliation(
    organization_id: UUID,
    account_id: UUID,
    payload: ReconciliationDraftIn,
    db: Session = Depends(get_db),
    wf: ReconciliationWorkflow = Depends(get_workflow),
    user: str = Depends(get_current_user),
):
    _get_account(db, organization_id, account_id)
    outcome = wf.save_draft(
        DraftInput(
            reconciliation_date=payload.reconciliation_date,
            bank_statement_balance=payload.bank_statement_balance,
            cleared_transaction_ids=payload.cleared_transaction_ids,
            notes=payload.notes,
            statement_attachment_ref=payload.statement_attachment_ref,
        ),
        actor=user,
        account_id=account_id,
    )
    return draft_response(wf, outcome)
