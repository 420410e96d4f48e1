"""Controllers mapping worker runs and daemon queries to CLI output and exit codes."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from functools import partial
from typing import Any

from tonstorage_worker.broker.amqp import BrokerSession, open_broker
from tonstorage_worker.chain.client import ToncenterClient
from tonstorage_worker.config import Settings
from tonstorage_worker.daemon.client import StorageDaemonClient
from tonstorage_worker.daemon.models import DaemonResponse
from tonstorage_worker.workers.contract_status import ContractStatusWorker
from tonstorage_worker.workers.reconcile import ReconciliationWorker

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CommandResult:
    """Lines to print plus the process exit code for the scheduler."""

    lines: list[str]
    exit_code: int = 0


@dataclass(slots=True)
class DaemonQueryCommand:
    """CLI input for a read-only daemon query."""

    query: str
    index: str | None = None
    contracts: bool = True
    balances: bool = True
    provider_address: str | None = None


class WorkerCliController:
    """Builds workers from settings and turns their outcome into exit codes."""

    def __init__(
        self,
        *,
        settings_factory: Callable[[], Settings] = Settings.from_env,
        session_factory: Callable[[str], AbstractContextManager[BrokerSession]] = open_broker,
    ) -> None:
        self.settings_factory = settings_factory
        self.session_factory = session_factory

    def reconcile(self) -> CommandResult:
        settings = self._settings()
        worker = ReconciliationWorker(
            daemon=StorageDaemonClient.from_settings(settings.daemon),
            open_session=partial(self.session_factory, settings.broker.url),
            queue=settings.broker.torrents_queue,
        )
        try:
            outcome = worker.run()
        except Exception:  # noqa: BLE001
            logger.exception("Reconciliation run aborted")
            return CommandResult(lines=["Reconciliation failed."], exit_code=1)

        if outcome.error is not None:
            return CommandResult(
                lines=[f"Reconciliation failed: {outcome.error}"],
                exit_code=outcome.exit_code,
            )
        return CommandResult(
            lines=[
                f"Reconciliation: status={outcome.status.value} "
                f"removals={len(outcome.events)} queue={settings.broker.torrents_queue}",
            ],
            exit_code=outcome.exit_code,
        )

    def contract_status(self) -> CommandResult:
        settings = self._settings()
        try:
            with ToncenterClient.from_settings(settings.chain) as chain:
                worker = ContractStatusWorker(
                    chain=chain,
                    open_session=partial(self.session_factory, settings.broker.url),
                    source_queue=settings.broker.contracts_queue,
                    target_queue=settings.broker.files_queue,
                )
                summary = worker.run()
        except Exception:  # noqa: BLE001
            logger.exception("Contract status run aborted")
            return CommandResult(lines=["Contract status check failed."], exit_code=1)

        return CommandResult(
            lines=[
                "Contract status: "
                f"snapshot={summary.snapshot} processed={summary.processed} "
                f"closed={summary.closed} active={summary.still_active} "
                f"malformed={summary.malformed}",
            ],
        )

    def daemon_query(self, command: DaemonQueryCommand) -> CommandResult:
        settings = self._settings()
        client = StorageDaemonClient.from_settings(settings.daemon)
        response = _run_query(client, command)
        return CommandResult(
            lines=[json.dumps(response.to_dict(), indent=2, default=_raw_json)],
            exit_code=0 if response.ok else 1,
        )

    def _settings(self) -> Settings:
        settings = self.settings_factory()
        settings.validate()
        return settings


def _run_query(client: StorageDaemonClient, command: DaemonQueryCommand) -> DaemonResponse[Any]:
    if command.query == "list":
        return client.list()
    if command.query == "get":
        return client.get(_require_index(command))
    if command.query == "peers":
        return client.get_peers(_require_index(command))
    if command.query == "provider-info":
        return client.get_provider_info(contracts=command.contracts, balances=command.balances)
    if command.query == "provider-params":
        return client.get_provider_params(command.provider_address)
    raise ValueError(f"Unsupported daemon query: {command.query!r}")


def _require_index(command: DaemonQueryCommand) -> str:
    if not command.index:
        raise ValueError(f"Daemon query {command.query!r} requires a torrent index or hash.")
    return command.index


def _raw_json(value: object) -> Any:
    raw = getattr(value, "raw", None)
    if raw is None:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return raw
