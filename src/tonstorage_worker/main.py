"""CLI entrypoint for tonstorage-worker."""

import logging
import sys
from collections.abc import Callable

import rich_click as click

from tonstorage_worker import __version__
from tonstorage_worker.workers.controllers import (
    CommandResult,
    DaemonQueryCommand,
    WorkerCliController,
)

click.rich_click.USE_MARKDOWN = True
WORKER_CONTROLLER = WorkerCliController()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="tonstorage-worker")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging level for worker diagnostics (written to stderr).",
)
def tonstorage_worker(log_level: str) -> None:
    """TON storage daemon workers."""

    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT, stream=sys.stderr)
    for noisy_logger in ("pika", "httpx", "httpcore"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


@tonstorage_worker.command("reconcile")
def reconcile() -> None:
    """Queue removal of torrents that have no active provider contract."""

    _finish(_guard(WORKER_CONTROLLER.reconcile))


@tonstorage_worker.command("contract-status")
def contract_status() -> None:
    """Check queued contracts on-chain and forward closures of inactive ones."""

    _finish(_guard(WORKER_CONTROLLER.contract_status))


@tonstorage_worker.group()
def daemon() -> None:
    """Read-only storage daemon queries (JSON envelope output)."""


@daemon.command("list")
def daemon_list() -> None:
    """List torrents known to the daemon."""

    _finish(_guard(lambda: WORKER_CONTROLLER.daemon_query(DaemonQueryCommand(query="list"))))


@daemon.command("get")
@click.argument("index")
def daemon_get(index: str) -> None:
    """Show one torrent by index or hash."""

    _finish(
        _guard(
            lambda: WORKER_CONTROLLER.daemon_query(DaemonQueryCommand(query="get", index=index)),
        ),
    )


@daemon.command("peers")
@click.argument("index")
def daemon_peers(index: str) -> None:
    """Show peers of one torrent."""

    _finish(
        _guard(
            lambda: WORKER_CONTROLLER.daemon_query(
                DaemonQueryCommand(query="peers", index=index),
            ),
        ),
    )


@daemon.command("provider-info")
@click.option(
    "--contracts/--no-contracts",
    default=True,
    show_default=True,
    help="Include provider contracts.",
)
@click.option(
    "--balances/--no-balances",
    default=True,
    show_default=True,
    help="Include contract and client balances.",
)
def daemon_provider_info(contracts: bool, balances: bool) -> None:
    """Show storage provider info."""

    _finish(
        _guard(
            lambda: WORKER_CONTROLLER.daemon_query(
                DaemonQueryCommand(query="provider-info", contracts=contracts, balances=balances),
            ),
        ),
    )


@daemon.command("provider-params")
@click.argument("provider_address", required=False)
def daemon_provider_params(provider_address: str | None) -> None:
    """Show storage provider parameters (own provider when ADDRESS is omitted)."""

    _finish(
        _guard(
            lambda: WORKER_CONTROLLER.daemon_query(
                DaemonQueryCommand(query="provider-params", provider_address=provider_address),
            ),
        ),
    )


def _guard(action: Callable[[], CommandResult]) -> CommandResult:
    try:
        return action()
    except ValueError as error:
        raise click.ClickException(str(error)) from error


def _finish(result: CommandResult) -> None:
    for line in result.lines:
        click.echo(line)
    if result.exit_code:
        sys.exit(result.exit_code)


if __name__ == "__main__":  # pragma: no cover
    tonstorage_worker()
