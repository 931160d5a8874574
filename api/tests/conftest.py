import os

os.environ.setdefault("POSTGRES_URL", "sqlite://")

import uuid
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bankrec.config import Settings, get_settings
from bankrec.db import get_db
from bankrec.models import Base, BankAccount, LedgerAccount, LedgerTransaction, Organization
from bankrec.services.workflow import ReconciliationWorkflow


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings(POSTGRES_URL="sqlite://")


@pytest.fixture
def workflow(db, settings):
    return ReconciliationWorkflow(db, settings)


@pytest.fixture
def org(db):
    o = Organization(name="St. Mary Parish", currency="GHS")
    db.add(o)
    db.commit()
    return o


@pytest.fixture
def make_account(db, org):
    """Create a ledger account plus linked bank account."""

    def _make(opening_balance="0", bank_balance="0", currency="GHS", name="Operating"):
        ledger = LedgerAccount(
            organization_id=org.id,
            code=f"1000-{uuid.uuid4().hex[:6]}",
            name=f"{name} (GL)",
            currency=currency,
            opening_balance=Decimal(opening_balance),
        )
        db.add(ledger)
        db.flush()
        acc = BankAccount(
            organization_id=org.id,
            ledger_account_id=ledger.id,
            name=name,
            bank_name="GCB Bank",
            currency=currency,
            bank_balance=Decimal(bank_balance),
        )
        db.add(acc)
        db.commit()
        return acc

    return _make


@pytest.fixture
def add_txn(db):
    def _add(account, debit="0", credit="0", reference=None, on=date(2026, 9, 15), description=None):
        txn = LedgerTransaction(
            ledger_account_id=account.ledger_account_id,
            date=on,
            description=description or reference,
            reference=reference,
            debit_amount=Decimal(debit),
            credit_amount=Decimal(credit),
        )
        db.add(txn)
        db.commit()
        return txn

    return _add


@pytest.fixture
def standard_account(make_account, add_txn):
    """
    Book balance 10,000.00 with two outstanding entries: a 500.00 deposit and
    a 200.00 payment. Last confirmed bank balance 10,000.00.
    """
    acc = make_account(opening_balance="9700.00", bank_balance="10000.00")
    deposit = add_txn(acc, debit="500.00", reference="DEP-001")
    payment = add_txn(acc, credit="200.00", reference="CHQ-101")
    return acc, deposit, payment


@pytest.fixture
def client(session_factory, settings):
    from bankrec.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
