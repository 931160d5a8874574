from .base import Base
from .organization import Organization
from .account import LedgerAccount, BankAccount
from .transaction import LedgerTransaction
from .reconciliation import (
    Reconciliation,
    ReconciliationClearedTransaction,
    ReconciliationStatus,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
)
from .audit import ReconciliationEvent

__all__ = [
    "Base",
    "Organization",
    "LedgerAccount",
    "BankAccount",
    "LedgerTransaction",
    "Reconciliation",
    "ReconciliationClearedTransaction",
    "ReconciliationStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "ReconciliationEvent",
]
