"""Balance calculation for a reconciliation pass.

Pure functions only: no I/O and no module state, so results depend on the
arguments alone and are safe to call from any thread.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

DEFAULT_TOLERANCE = Decimal("0.01")


class ClearableTransaction(Protocol):
    debit_amount: Decimal
    credit_amount: Decimal


@dataclass(frozen=True)
class BalanceResult:
    book_balance: Decimal
    statement_balance: Decimal
    cleared_debits: Decimal
    cleared_credits: Decimal
    adjusted_balance: Decimal
    difference: Decimal
    is_balanced: bool
    tolerance: Decimal = DEFAULT_TOLERANCE


def _dec(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute(
    book_balance,
    statement_balance,
    cleared_transactions: Iterable[ClearableTransaction],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> BalanceResult:
    """
    Reconcile a book balance against a bank statement balance.

    adjusted = book + cleared debits - cleared credits
    difference = adjusted - statement
    balanced when |difference| < tolerance (strict)
    """
    book = _dec(book_balance)
    statement = _dec(statement_balance)
    tolerance = _dec(tolerance)

    debits = Decimal("0")
    credits = Decimal("0")
    for txn in cleared_transactions:
        debits += _dec(txn.debit_amount)
        credits += _dec(txn.credit_amount)

    adjusted = book + debits - credits
    difference = adjusted - statement
    return BalanceResult(
        book_balance=book,
        statement_balance=statement,
        cleared_debits=debits,
        cleared_credits=credits,
        adjusted_balance=adjusted,
        difference=difference,
        is_balanced=abs(difference) < tolerance,
        tolerance=tolerance,
    )
