"""Statement-balance variance detection against the last reconciled balance."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

DEFAULT_THRESHOLD_PERCENT = Decimal("10")


@dataclass(frozen=True)
class VarianceResult:
    last_reconciled_balance: Decimal
    new_statement_balance: Decimal
    variance_amount: Decimal
    variance_percent: Decimal
    threshold_percent: Decimal
    is_anomalous: bool
    # True when the baseline was zero and percent detection was skipped
    used_absolute_fallback: bool = False

    def message(self) -> str:
        if self.used_absolute_fallback:
            text = f"Statement balance moved by {self.variance_amount} from a zero baseline"
        else:
            text = (
                f"Bank balance has changed by {self.variance_percent:.1f}% since last reconciliation "
                f"(last: {self.last_reconciled_balance}, current: {self.new_statement_balance})"
            )
        if self.is_anomalous:
            text += "; verify the bank statement balance"
        return text


def detect_variance(
    last_reconciled_balance,
    new_statement_balance,
    threshold_percent=DEFAULT_THRESHOLD_PERCENT,
    absolute_threshold: Optional[Decimal] = None,
) -> VarianceResult:
    """
    Flag a statement balance that jumped too far from the last reconciled one.

    When the baseline is zero the percentage is reported as 0 and only the
    optional ``absolute_threshold`` can flag the variance.
    """
    last = Decimal(str(last_reconciled_balance or 0))
    new = Decimal(str(new_statement_balance or 0))
    threshold = Decimal(str(threshold_percent))

    amount = abs(new - last)
    if last != 0:
        percent = amount / abs(last) * 100
        return VarianceResult(
            last_reconciled_balance=last,
            new_statement_balance=new,
            variance_amount=amount,
            variance_percent=percent,
            threshold_percent=threshold,
            is_anomalous=percent > threshold,
        )

    anomalous = absolute_threshold is not None and amount > Decimal(str(absolute_threshold))
    return VarianceResult(
        last_reconciled_balance=last,
        new_statement_balance=new,
        variance_amount=amount,
        variance_percent=Decimal("0"),
        threshold_percent=threshold,
        is_anomalous=anomalous,
        used_absolute_fallback=True,
    )
