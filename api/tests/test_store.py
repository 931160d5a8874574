"""Tests for the reconciliation record store, including the one-active-per-account guarantee."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from bankrec.errors import ConflictError, NotFoundError
from bankrec.models import Reconciliation, ReconciliationStatus
from bankrec.services.store import ReconciliationStore


def _rec(account_id, status=ReconciliationStatus.DRAFT, on=date(2026, 9, 30)):
    return Reconciliation(
        id=uuid.uuid4(),
        account_id=account_id,
        reconciliation_date=on,
        status=status.value,
        bank_statement_balance=Decimal("100"),
        book_balance=Decimal("100"),
        adjusted_balance=Decimal("100"),
        difference=Decimal("0"),
        prepared_by="alice",
    )


class TestCreate:
    def test_create_and_load(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)

        rec_id = store.create(_rec(acc.id))
        db.commit()

        assert store.load(rec_id).account_id == acc.id
        assert store.has_active_reconciliation(acc.id) is True

    def test_second_active_is_conflict(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)
        store.create(_rec(acc.id))
        db.commit()

        with pytest.raises(ConflictError):
            store.create(_rec(acc.id))

    def test_pending_review_also_blocks(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)
        store.create(_rec(acc.id, status=ReconciliationStatus.PENDING_REVIEW))
        db.commit()

        with pytest.raises(ConflictError):
            store.create(_rec(acc.id))

    @pytest.mark.parametrize(
        "status",
        [ReconciliationStatus.RECONCILED, ReconciliationStatus.REJECTED, ReconciliationStatus.VOIDED],
    )
    def test_terminal_records_do_not_block(self, db, make_account, status):
        acc = make_account()
        store = ReconciliationStore(db)
        store.create(_rec(acc.id, status=status))
        db.commit()

        store.create(_rec(acc.id))
        db.commit()

        assert len(store.list_by_account(acc.id)) == 2

    def test_other_accounts_are_independent(self, db, make_account):
        a = make_account(name="A")
        b = make_account(name="B")
        store = ReconciliationStore(db)

        store.create(_rec(a.id))
        store.create(_rec(b.id))
        db.commit()

        assert store.has_active_reconciliation(a.id)
        assert store.has_active_reconciliation(b.id)


class TestConcurrentCreate:
    def test_unique_index_rejects_second_active_row(self, session_factory, make_account):
        acc = make_account()
        first = session_factory()
        first.add(_rec(acc.id))
        first.commit()
        first.close()

        second = session_factory()
        second.add(_rec(acc.id))
        with pytest.raises(IntegrityError):
            second.flush()
        second.rollback()
        second.close()

    def test_lost_race_maps_to_conflict(self, session_factory, make_account, monkeypatch):
        """Both callers pass the pre-check; the database picks the winner."""
        acc = make_account()
        winner = session_factory()
        ReconciliationStore(winner).create(_rec(acc.id))
        winner.commit()
        winner.close()

        loser_session = session_factory()
        loser = ReconciliationStore(loser_session)
        answers = iter([False, True])
        monkeypatch.setattr(loser, "has_active_reconciliation", lambda account_id: next(answers))

        with pytest.raises(ConflictError):
            loser.create(_rec(acc.id))
        loser_session.close()


class TestQueries:
    def test_load_unknown(self, db):
        with pytest.raises(NotFoundError):
            ReconciliationStore(db).load(uuid.uuid4())

    def test_list_by_account_newest_first(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)
        old = _rec(acc.id, status=ReconciliationStatus.RECONCILED, on=date(2026, 7, 31))
        mid = _rec(acc.id, status=ReconciliationStatus.VOIDED, on=date(2026, 8, 31))
        new = _rec(acc.id, on=date(2026, 9, 30))
        for r in (mid, new, old):
            store.create(r)
        db.commit()

        assert [r.id for r in store.list_by_account(acc.id)] == [new.id, mid.id, old.id]

    def test_update_sets_fields(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)
        rec_id = store.create(_rec(acc.id))

        store.update(rec_id, notes="checked against paper statement")

        assert store.load(rec_id).notes == "checked against paper statement"

    def test_update_rejects_unknown_field(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)
        rec_id = store.create(_rec(acc.id))

        with pytest.raises(AttributeError):
            store.update(rec_id, colour="blue")

    def test_cleared_set_replacement(self, db, standard_account):
        acc, deposit, payment = standard_account
        store = ReconciliationStore(db)
        rec_id = store.create(_rec(acc.id))

        store.set_cleared_transactions(rec_id, [deposit.id, payment.id])
        assert store.cleared_transaction_ids(rec_id) == {deposit.id, payment.id}

        store.set_cleared_transactions(rec_id, [payment.id])
        assert store.cleared_transaction_ids(rec_id) == {payment.id}

        store.set_cleared_transactions(rec_id, [])
        assert store.cleared_transaction_ids(rec_id) == set()

    def test_history_is_sequenced(self, db, make_account):
        acc = make_account()
        store = ReconciliationStore(db)
        rec_id = store.create(_rec(acc.id))
        store.record_event(rec_id, "created", "alice", to_status="DRAFT")
        store.record_event(rec_id, "annotated", "bob", details={"note": "hi"})

        events = store.history(rec_id)

        assert [e.sequence for e in events] == [1, 2]
        assert [e.action for e in events] == ["created", "annotated"]
