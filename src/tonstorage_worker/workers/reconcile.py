"""Remove daemon torrents that have no active provider contract."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import Enum

from tonstorage_worker.broker.amqp import BrokerSession
from tonstorage_worker.broker.events import QueueEvent, remove_torrent
from tonstorage_worker.daemon.client import StorageDaemonClient
from tonstorage_worker.daemon.records import Contract, Torrent

logger = logging.getLogger(__name__)


class ReconciliationStatus(str, Enum):
    """How a reconciliation run ended."""

    PUBLISHED = "published"
    NOTHING_TO_DO = "nothing_to_do"
    FAILED = "failed"


@dataclass(slots=True)
class ReconciliationOutcome:
    """Result of one reconciliation run."""

    status: ReconciliationStatus
    events: list[QueueEvent] = field(default_factory=list)
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.status is ReconciliationStatus.FAILED else 0


def plan_torrent_removals(
    torrents: Iterable[Torrent],
    contracts: Iterable[Contract],
) -> list[QueueEvent]:
    """Decide which torrents to remove given the provider's contracts.

    A completed torrent without any contract is an orphan. A torrent whose
    contract left the active state is removed together with that contract.
    """

    by_torrent: dict[str, Contract] = {}
    for contract in contracts:
        by_torrent.setdefault(contract.torrent, contract)

    events: list[QueueEvent] = []
    for torrent in torrents:
        contract = by_torrent.get(torrent.hash)
        if contract is None:
            if torrent.completed:
                events.append(remove_torrent(torrent.raw))
            continue
        if not contract.is_active:
            events.append(remove_torrent(torrent.raw, contract.raw))
    return events


class ReconciliationWorker:
    """Lists torrents and contracts once and publishes removal events."""

    def __init__(
        self,
        *,
        daemon: StorageDaemonClient,
        open_session: Callable[[], AbstractContextManager[BrokerSession]],
        queue: str,
    ) -> None:
        self.daemon = daemon
        self.open_session = open_session
        self.queue = queue

    def run(self) -> ReconciliationOutcome:
        torrents_response = self.daemon.list()
        if not torrents_response.ok or torrents_response.result is None:
            logger.error("Listing daemon torrents failed: %s", torrents_response.error)
            return ReconciliationOutcome(
                status=ReconciliationStatus.FAILED,
                error=torrents_response.error,
            )

        torrents = torrents_response.result.torrents
        if not torrents:
            logger.info("Daemon has no torrents; nothing to reconcile")
            return ReconciliationOutcome(status=ReconciliationStatus.NOTHING_TO_DO)

        provider_response = self.daemon.get_provider_info(contracts=True, balances=False)
        if not provider_response.ok or provider_response.result is None:
            logger.error("Fetching provider contracts failed: %s", provider_response.error)
            return ReconciliationOutcome(
                status=ReconciliationStatus.FAILED,
                error=provider_response.error,
            )

        events = plan_torrent_removals(torrents, provider_response.result.contracts)
        with self.open_session() as session:
            session.declare(self.queue)
            for event in events:
                session.publish(self.queue, event)

        logger.info(
            "Reconciled %d torrents against %d contracts; queued %d removals",
            len(torrents),
            len(provider_response.result.contracts),
            len(events),
        )
        return ReconciliationOutcome(status=ReconciliationStatus.PUBLISHED, events=events)
