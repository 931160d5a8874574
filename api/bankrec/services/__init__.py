"""Reconciliation core: ledger reader, calculators, store and workflow."""

from .balance import BalanceResult, compute
from .variance import VarianceResult, detect_variance
from .ledger_reader import LedgerReader
from .store import ReconciliationStore
from .workflow import DraftInput, DraftOutcome, ReconciliationWorkflow, TransitionOutcome

__all__ = [
    "BalanceResult",
    "compute",
    "VarianceResult",
    "detect_variance",
    "LedgerReader",
    "ReconciliationStore",
    "DraftInput",
    "DraftOutcome",
    "ReconciliationWorkflow",
    "TransitionOutcome",
]
