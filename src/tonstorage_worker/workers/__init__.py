"""One-shot queue workers."""

from tonstorage_worker.workers.contract_status import (
    ContractStatusSummary,
    ContractStatusWorker,
    closure_event_for,
)
from tonstorage_worker.workers.reconcile import (
    ReconciliationOutcome,
    ReconciliationStatus,
    ReconciliationWorker,
    plan_torrent_removals,
)

__all__ = [
    "ContractStatusSummary",
    "ContractStatusWorker",
    "ReconciliationOutcome",
    "ReconciliationStatus",
    "ReconciliationWorker",
    "closure_event_for",
    "plan_torrent_removals",
]
