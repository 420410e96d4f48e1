"""Typed snapshots of daemon JSON records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ContractState(IntEnum):
    """Storage provider contract states reported by the daemon."""

    DOWNLOADED = 1
    ACTIVE = 2


@dataclass(slots=True, frozen=True)
class Torrent:
    """One torrent tracked by the daemon."""

    hash: str
    completed: bool
    flags: int = 0
    total_size: str = "0"
    description: str = ""
    files_count: str = "0"
    included_size: int = 0
    dir_name: str = ""
    root_dir: str = ""
    active_download: bool = False
    active_upload: bool = False
    download_speed: float = 0
    upload_speed: float = 0
    fatal_error: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Torrent:
        return cls(
            hash=str(payload["hash"]),
            completed=bool(payload.get("completed", False)),
            flags=int(payload.get("flags", 0)),
            total_size=str(payload.get("total_size", "0")),
            description=str(payload.get("description", "")),
            files_count=str(payload.get("files_count", "0")),
            included_size=int(payload.get("included_size", 0)),
            dir_name=str(payload.get("dir_name", "")),
            root_dir=str(payload.get("root_dir", "")),
            active_download=bool(payload.get("active_download", False)),
            active_upload=bool(payload.get("active_upload", False)),
            download_speed=payload.get("download_speed", 0),
            upload_speed=payload.get("upload_speed", 0),
            fatal_error=str(payload.get("fatal_error", "")),
            raw=dict(payload),
        )


@dataclass(slots=True, frozen=True)
class Contract:
    """One storage provider contract known to the daemon."""

    address: str
    state: ContractState | int
    torrent: str
    created_time: int = 0
    file_size: str = "0"
    downloaded_size: str = "0"
    rate: str = "0"
    max_span: int = 0
    client_balance: str | None = None
    contract_balance: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_active(self) -> bool:
        return self.state == ContractState.ACTIVE

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> Contract:
        return cls(
            address=str(payload["address"]),
            state=_contract_state(payload.get("state")),
            torrent=str(payload["torrent"]),
            created_time=int(payload.get("created_time", 0)),
            file_size=str(payload.get("file_size", "0")),
            downloaded_size=str(payload.get("downloaded_size", "0")),
            rate=str(payload.get("rate", "0")),
            max_span=int(payload.get("max_span", 0)),
            client_balance=_optional_str(payload.get("client_balance")),
            contract_balance=_optional_str(payload.get("contract_balance")),
            raw=dict(payload),
        )


@dataclass(slots=True, frozen=True)
class TorrentList:
    """Result of `list --json`."""

    torrents: list[Torrent]
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_json(cls, payload: Any) -> TorrentList:
        if not isinstance(payload, dict):
            raise TypeError("Expected JSON object from `list --json`")
        return cls(
            torrents=[Torrent.from_json(item) for item in payload.get("torrents") or []],
            raw=payload,
        )


@dataclass(slots=True, frozen=True)
class ProviderInfo:
    """Result of `get-provider-info --json`."""

    contracts: list[Contract]
    balance: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_json(cls, payload: Any) -> ProviderInfo:
        if not isinstance(payload, dict):
            raise TypeError("Expected JSON object from `get-provider-info --json`")
        return cls(
            contracts=[Contract.from_json(item) for item in payload.get("contracts") or []],
            balance=_optional_str(payload.get("balance")),
            raw=payload,
        )


def _contract_state(value: Any) -> ContractState | int:
    state = int(value) if value is not None else 0
    try:
        return ContractState(state)
    except ValueError:
        return state


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
