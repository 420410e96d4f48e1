"""Storage daemon CLI integration."""

from tonstorage_worker.daemon.client import StorageDaemonClient
from tonstorage_worker.daemon.models import DaemonResponse, ErrorKind, RunOutput
from tonstorage_worker.daemon.records import (
    Contract,
    ContractState,
    ProviderInfo,
    Torrent,
    TorrentList,
)
from tonstorage_worker.daemon.runner import CommandRunner

__all__ = [
    "CommandRunner",
    "Contract",
    "ContractState",
    "DaemonResponse",
    "ErrorKind",
    "ProviderInfo",
    "RunOutput",
    "StorageDaemonClient",
    "Torrent",
    "TorrentList",
]
