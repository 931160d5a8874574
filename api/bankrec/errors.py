"""Error taxonomy for the reconciliation core.

Every error carries a ``kind`` that callers (and the HTTP layer) use to tell
failures apart without string matching.
"""

from decimal import Decimal
from typing import Any, Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    kind = "ReconciliationError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class NotFoundError(ReconciliationError):
    """Account, transaction or reconciliation id is unknown."""

    kind = "NotFound"


class ConflictError(ReconciliationError):
    """An active reconciliation already exists for the account."""

    kind = "Conflict"


class UnbalancedError(ReconciliationError):
    """Terminal transition attempted while the difference exceeds the tolerance."""

    kind = "Unbalanced"

    def __init__(self, difference: Decimal, tolerance: Optional[Decimal] = None):
        super().__init__(f"Reconciliation is not balanced: difference {difference}")
        self.difference = difference
        self.tolerance = tolerance

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["difference"] = str(self.difference)
        return data


class InvalidTransitionError(ReconciliationError):
    """Transition not legal from the current status, or a segregation-of-duties breach."""

    kind = "InvalidTransition"

    def __init__(self, message: str, current_status: Optional[str] = None, attempted: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status
        self.attempted = attempted

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current_status
        data["attempted"] = self.attempted
        return data


class ValidationError(ReconciliationError):
    """Missing or malformed input."""

    kind = "ValidationError"


class UnacknowledgedVarianceError(ValidationError):
    """Anomalous statement variance was not acknowledged before a terminal transition."""

    def __init__(self, variance):
        super().__init__(
            f"Statement balance changed by {variance.variance_percent:.2f}% "
            f"({variance.variance_amount}) since the last reconciliation; acknowledge the variance to proceed"
        )
        self.variance = variance

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["variance_amount"] = str(self.variance.variance_amount)
        data["variance_percent"] = str(self.variance.variance_percent)
        return data
