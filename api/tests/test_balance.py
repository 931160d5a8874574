"""
Unit tests for the balance calculator.

Covers the adjusted-balance formula, the strict tolerance boundary,
order independence and the documented edge cases (empty cleared set,
overdrawn statement balance).
"""

from dataclasses import FrozenInstanceError, dataclass
from decimal import Decimal

import pytest

from bankrec.services.balance import BalanceResult, compute


@dataclass
class Txn:
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")


def D(value: str) -> Decimal:
    return Decimal(value)


class TestCompute:
    def test_reference_scenario_balances(self):
        """10,000 book + 500 cleared debit - 200 cleared credit matches a 10,300 statement."""
        result = compute(D("10000.00"), D("10300.00"), [Txn(debit_amount=D("500.00")), Txn(credit_amount=D("200.00"))])

        assert result.adjusted_balance == D("10300.00")
        assert result.difference == D("0")
        assert result.is_balanced is True
        assert result.cleared_debits == D("500.00")
        assert result.cleared_credits == D("200.00")

    def test_unbalanced_difference_is_adjusted_minus_statement(self):
        result = compute(D("10000.00"), D("10250.00"), [Txn(debit_amount=D("500.00")), Txn(credit_amount=D("200.00"))])

        assert result.difference == D("50.00")
        assert result.is_balanced is False

    def test_empty_cleared_set_leaves_book_balance(self):
        result = compute(D("1234.56"), D("1234.56"), [])

        assert result.adjusted_balance == D("1234.56")
        assert result.is_balanced is True

    def test_negative_statement_balance_is_valid(self):
        """Overdrawn accounts reconcile like any other."""
        result = compute(D("-50.00"), D("-250.00"), [Txn(credit_amount=D("200.00"))])

        assert result.adjusted_balance == D("-250.00")
        assert result.is_balanced is True

    @pytest.mark.parametrize(
        "difference, balanced",
        [
            ("0.01", False),
            ("-0.01", False),
            ("0.0099", True),
            ("-0.0099", True),
            ("0", True),
        ],
    )
    def test_tolerance_boundary_is_strict(self, difference, balanced):
        result = compute(D("100.00") + D(difference), D("100.00"), [])

        assert result.difference == D(difference)
        assert result.is_balanced is balanced

    def test_custom_tolerance_for_sub_cent_currencies(self):
        # 3-decimal currency: 0.005 is a real difference
        result = compute(D("100.005"), D("100.000"), [], tolerance=D("0.001"))

        assert result.is_balanced is False
        assert result.tolerance == D("0.001")

    def test_order_independent(self):
        txns = [Txn(debit_amount=D("10.10")), Txn(credit_amount=D("3.33")), Txn(debit_amount=D("0.07"), credit_amount=D("1.00"))]

        forward = compute(D("500"), D("505.84"), txns)
        backward = compute(D("500"), D("505.84"), list(reversed(txns)))

        assert forward == backward
        assert forward.adjusted_balance == D("505.84")

    def test_repeated_calls_are_identical(self):
        txns = [Txn(debit_amount=D("42.00"))]

        first = compute(D("1"), D("43"), txns)
        second = compute(D("1"), D("43"), txns)

        assert first == second
        assert isinstance(first, BalanceResult)

    def test_accepts_non_decimal_inputs(self):
        result = compute(100, "100.50", [Txn(debit_amount=0.5)])

        assert result.adjusted_balance == D("100.5")
        assert result.is_balanced is True

    def test_result_is_immutable(self):
        result = compute(D("1"), D("1"), [])

        with pytest.raises(FrozenInstanceError):
            result.difference = D("5")
