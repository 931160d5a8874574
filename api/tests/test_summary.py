from datetime import date
from decimal import Decimal

from bankrec.services import summary
from bankrec.services.workflow import DraftInput

STATEMENT_DATE = date(2026, 9, 30)


class TestAccountBalances:
    def test_book_and_bank_balances(self, db, org, standard_account):
        acc, _, _ = standard_account

        rows = summary.account_balances(db, org.id)

        assert len(rows) == 1
        row = rows[0]
        assert row.id == acc.id
        assert row.book_balance == Decimal("10000.00")
        assert row.bank_balance == Decimal("10000.00")
        assert row.difference == Decimal("0")
        assert row.needs_reconciliation is True
        assert row.active_reconciliation_id is None

    def test_account_without_transactions(self, db, org, make_account):
        make_account(opening_balance="250.00", bank_balance="300.00", name="Petty cash")

        row = summary.account_balances(db, org.id)[0]

        assert row.book_balance == Decimal("250.00")
        assert row.difference == Decimal("50.00")

    def test_active_reconciliation_is_reported(self, db, org, workflow, standard_account):
        acc, _, _ = standard_account
        rec = workflow.save_draft(
            DraftInput(reconciliation_date=STATEMENT_DATE, bank_statement_balance=Decimal("10300.00")),
            "alice",
            account_id=acc.id,
        ).reconciliation

        row = summary.account_balances(db, org.id)[0]

        assert row.active_reconciliation_id == rec.id
        assert row.active_reconciliation_status == "DRAFT"


class TestOrganizationSummary:
    def test_totals(self, db, org, make_account, add_txn):
        a = make_account(opening_balance="100.00", bank_balance="90.00", name="Current")
        add_txn(a, credit="10.00", reference="FEE")
        make_account(opening_balance="50.00", bank_balance="50.00", name="Savings")

        result = summary.organization_summary(db, org.id)

        assert result.account_count == 2
        assert result.unreconciled_count == 2
        assert result.total_book_balance == Decimal("140.00")
        assert result.total_bank_balance == Decimal("140.00")

    def test_empty_organization(self, db, org):
        result = summary.organization_summary(db, org.id)

        assert result.account_count == 0
        assert result.total_book_balance == Decimal("0")


class TestReconciliationQueue:
    def test_reconciled_accounts_leave_the_queue(self, db, org, workflow, standard_account, make_account):
        acc, deposit, payment = standard_account
        other = make_account(name="Building fund")
        rec = workflow.save_draft(
            DraftInput(
                reconciliation_date=STATEMENT_DATE,
                bank_statement_balance=Decimal("10300.00"),
                cleared_transaction_ids={deposit.id, payment.id},
            ),
            "alice",
            account_id=acc.id,
        ).reconciliation
        workflow.reconcile_direct(rec.id, "alice")

        queue = summary.reconciliation_queue(db, org.id)

        assert [r.id for r in queue] == [other.id]

    def test_never_reconciled_sorted_by_name(self, db, org, make_account):
        make_account(name="Zakat")
        make_account(name="Alms")

        queue = summary.reconciliation_queue(db, org.id)

        assert [r.name for r in queue] == ["Alms", "Zakat"]
