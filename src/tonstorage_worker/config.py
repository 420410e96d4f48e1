"""Runtime configuration for daemon access, broker topology and chain reads."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

TONCENTER_ENDPOINTS: dict[str, str] = {
    "mainnet": "https://toncenter.com/api/v2",
    "testnet": "https://testnet.toncenter.com/api/v2",
}

# Commands that sign and send messages on-chain wait for the daemon longer.
SLOW_COMMAND_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True)
class DaemonSettings:
    """Storage daemon CLI settings."""

    bin_path: Path = Path("/usr/local/bin/storage-daemon-cli")
    host: str = "127.0.0.1:5555"
    private_key: str = ""
    public_key: str = ""
    timeout_seconds: float = 5.0


@dataclass(slots=True)
class BrokerSettings:
    """Message broker URL and queue names."""

    url: str = "amqp://localhost:5672"
    torrents_queue: str = "torrents-steams"
    files_queue: str = "files-steams"
    contracts_queue: str = "contract-queue"


@dataclass(slots=True)
class ChainSettings:
    """Blockchain read access settings."""

    network: str = "mainnet"
    api_key: str | None = None
    timeout_seconds: float = 10.0

    @property
    def endpoint(self) -> str:
        return TONCENTER_ENDPOINTS[self.network]


@dataclass(slots=True)
class Settings:
    """Application settings grouped by external system."""

    daemon: DaemonSettings = field(default_factory=DaemonSettings)
    broker: BrokerSettings = field(default_factory=BrokerSettings)
    chain: ChainSettings = field(default_factory=ChainSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults matching a local daemon."""

        return cls(
            daemon=DaemonSettings(
                bin_path=Path(
                    os.getenv("TONSTORAGE_BIN", "/usr/local/bin/storage-daemon-cli"),
                ),
                host=os.getenv("TONSTORAGE_HOST", "127.0.0.1:5555"),
                private_key=os.getenv("TONSTORAGE_PRIVATE_KEY", ""),
                public_key=os.getenv("TONSTORAGE_PUBLIC_KEY", ""),
                timeout_seconds=_env_milliseconds("TONSTORAGE_TIMEOUT", default=5000),
            ),
            broker=BrokerSettings(
                url=os.getenv("RABBIT_MQ_URL", "amqp://localhost:5672"),
                torrents_queue=os.getenv("TONSTORAGE_TORRENTS_QUEUE", "torrents-steams"),
                files_queue=os.getenv("TONSTORAGE_FILES_QUEUE", "files-steams"),
                contracts_queue=os.getenv("TONSTORAGE_CONTRACTS_QUEUE", "contract-queue"),
            ),
            chain=ChainSettings(
                network=os.getenv("TON_NETWORK", "mainnet").strip().lower(),
                api_key=os.getenv("TONCENTER_API_KEY") or None,
                timeout_seconds=float(os.getenv("TONCENTER_TIMEOUT_SECONDS", "10")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the workers cannot run with."""

        if self.daemon.timeout_seconds <= 0:
            raise ValueError("TONSTORAGE_TIMEOUT must be > 0.")
        if not self.daemon.host.strip():
            raise ValueError("TONSTORAGE_HOST must not be empty.")
        if self.chain.network not in TONCENTER_ENDPOINTS:
            raise ValueError(
                f"Unsupported TON_NETWORK: {self.chain.network!r}. "
                f"Expected one of: {', '.join(sorted(TONCENTER_ENDPOINTS))}.",
            )
        if self.chain.timeout_seconds <= 0:
            raise ValueError("TONCENTER_TIMEOUT_SECONDS must be > 0.")
        for name, value in (
            ("TONSTORAGE_TORRENTS_QUEUE", self.broker.torrents_queue),
            ("TONSTORAGE_FILES_QUEUE", self.broker.files_queue),
            ("TONSTORAGE_CONTRACTS_QUEUE", self.broker.contracts_queue),
        ):
            if not value.strip():
                raise ValueError(f"{name} must not be empty.")


def _env_milliseconds(name: str, default: int) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default / 1000
    try:
        milliseconds = int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error
    return milliseconds / 1000
