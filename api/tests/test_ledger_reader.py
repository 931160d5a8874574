"""Tests for the read-only ledger accessor."""

import uuid
from decimal import Decimal

import pytest

from bankrec.errors import NotFoundError, ValidationError
from bankrec.services.ledger_reader import LedgerReader


class TestBookBalance:
    def test_opening_plus_debits_minus_credits(self, db, standard_account):
        acc, _, _ = standard_account

        assert LedgerReader(db).get_book_balance(acc.id) == Decimal("10000.00")

    def test_no_transactions_returns_opening_balance(self, db, make_account):
        acc = make_account(opening_balance="250.75")

        assert LedgerReader(db).get_book_balance(acc.id) == Decimal("250.75")

    def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            LedgerReader(db).get_book_balance(uuid.uuid4())


class TestOutstandingTransactions:
    def test_lists_uncleared_in_date_order(self, db, make_account, add_txn):
        from datetime import date

        acc = make_account()
        later = add_txn(acc, debit="1", on=date(2026, 9, 20))
        earlier = add_txn(acc, credit="2", on=date(2026, 9, 1))
        cleared = add_txn(acc, debit="3", on=date(2026, 9, 10))
        cleared.cleared = True
        db.commit()

        ids = [t.id for t in LedgerReader(db).get_outstanding_transactions(acc.id)]

        assert ids == [earlier.id, later.id]

    def test_other_accounts_are_excluded(self, db, make_account, add_txn):
        mine = make_account(name="Mine")
        other = make_account(name="Other")
        add_txn(other, debit="10")

        assert LedgerReader(db).get_outstanding_transactions(mine.id) == []

    def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            LedgerReader(db).get_outstanding_transactions(uuid.uuid4())


class TestGetTransactions:
    def test_resolves_ids(self, db, standard_account):
        acc, deposit, payment = standard_account

        txns = LedgerReader(db).get_transactions(acc.id, {deposit.id, payment.id})

        assert {t.id for t in txns} == {deposit.id, payment.id}

    def test_empty_set(self, db, standard_account):
        acc, _, _ = standard_account

        assert LedgerReader(db).get_transactions(acc.id, []) == []

    def test_unknown_id_rejected(self, db, standard_account):
        acc, _, _ = standard_account

        with pytest.raises(ValidationError, match="Unknown transaction ids"):
            LedgerReader(db).get_transactions(acc.id, {uuid.uuid4()})

    def test_foreign_transaction_rejected(self, db, standard_account, make_account, add_txn):
        acc, _, _ = standard_account
        stranger = add_txn(make_account(name="Savings"), debit="5")

        with pytest.raises(ValidationError, match="do not belong"):
            LedgerReader(db).get_transactions(acc.id, {stranger.id})

    def test_already_cleared_rejected(self, db, standard_account):
        acc, deposit, _ = standard_account
        deposit.cleared = True
        db.commit()

        with pytest.raises(ValidationError, match="already cleared"):
            LedgerReader(db).get_transactions(acc.id, {deposit.id})
