"""Shared test fixtures."""

from __future__ import annotations

import os
import stat
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest

from tonstorage_worker.broker.amqp import QueueMessage
from tonstorage_worker.broker.events import QueueEvent
from tonstorage_worker.config import DaemonSettings
from tonstorage_worker.daemon.models import RunOutput

FIXTURES_DIR = Path(__file__).parent / "fixtures"

_FAKE_DAEMON_SCRIPT = r'''
import json
import shlex
import sys
import time
from pathlib import Path

args = sys.argv[1:]
command = args[args.index("--cmd") + 1]
words = shlex.split(command)
name = words[0] if words else ""

if name == "echo-args":
    print(json.dumps(args))
elif name == "list":
    print(json.dumps({"@type": "storage.daemon.torrentList", "torrents": [
        {"@type": "storage.daemon.torrent", "hash": "AB" * 32, "completed": True, "flags": 3},
    ]}))
elif name == "get-meta":
    Path(words[2]).write_bytes(b"meta!")
    print("Saved meta (5 B)")
elif name == "new-contract-message":
    Path(words[2]).write_bytes(b"\x00\x01\x02")
    print("Rate (nanoTON per MB*day): 1000000")
    print("Max span: 86400")
elif name == "remove":
    print("Success")
elif name == "fail":
    print("Error: unknown torrent")
    print("second line", file=sys.stderr)
    sys.exit(1)
elif name == "binary-list":
    sys.stdout.buffer.write(b'{"torrents": [{"hash": "A", "description": "\xff\xfe"}]}\n')
elif name == "silent-fail":
    sys.exit(3)
elif name == "sleep":
    time.sleep(10)
else:
    print("Invalid command: " + name)
    sys.exit(2)
'''


def write_fake_daemon(bin_dir: Path) -> Path:
    """Write an executable storage-daemon-cli stand-in and return its path."""

    bin_dir.mkdir(parents=True, exist_ok=True)
    implementation = bin_dir / "fake_daemon_impl.py"
    implementation.write_text(_FAKE_DAEMON_SCRIPT.strip() + "\n", "utf-8")
    launcher = bin_dir / "storage-daemon-cli"
    launcher.write_text(
        f'#!/usr/bin/env sh\nexec "{sys.executable}" "{implementation}" "$@"\n',
        "utf-8",
    )
    launcher.chmod(launcher.stat().st_mode | stat.S_IXUSR)
    return launcher


@pytest.fixture()
def fake_daemon(tmp_path: Path) -> DaemonSettings:
    if os.name == "nt":
        pytest.skip("fake daemon launcher is a POSIX shell script")
    return DaemonSettings(
        bin_path=write_fake_daemon(tmp_path / "bin"),
        host="127.0.0.1:5555",
        private_key="client.key",
        public_key="server.pub",
        timeout_seconds=5.0,
    )


class ScriptedRunner:
    """CommandRunner stand-in returning queued outputs and recording calls."""

    def __init__(self, *outputs: RunOutput, on_run=None) -> None:
        self.outputs = list(outputs)
        self.calls: list[tuple[str, float | None]] = []
        self.on_run = on_run

    def run(self, command: str, *, timeout_seconds: float | None = None) -> RunOutput:
        self.calls.append((command, timeout_seconds))
        if self.on_run is not None:
            self.on_run(command)
        return self.outputs.pop(0)


class FakeBroker:
    """In-memory BrokerSession with per-queue FIFO lists."""

    def __init__(self) -> None:
        self.queues: dict[str, list[bytes]] = {}
        self.unacked: dict[int, bytes] = {}
        self.acked: list[int] = []
        self.declared: list[str] = []
        self.opened = 0
        self.closed = 0
        self.on_get = None
        self._next_tag = 1

    def seed(self, queue: str, *events: QueueEvent | bytes) -> None:
        bodies = [event if isinstance(event, bytes) else event.encode() for event in events]
        self.queues.setdefault(queue, []).extend(bodies)

    def events(self, queue: str) -> list[QueueEvent]:
        return [QueueEvent.decode(body) for body in self.queues.get(queue, [])]

    @contextmanager
    def session(self) -> Iterator[FakeBroker]:
        self.opened += 1
        try:
            yield self
        finally:
            self.closed += 1

    def declare(self, queue: str) -> int:
        self.declared.append(queue)
        return len(self.queues.setdefault(queue, []))

    def publish(self, queue: str, event: QueueEvent) -> None:
        self.publish_body(queue, event.encode())

    def publish_body(self, queue: str, body: bytes) -> None:
        self.queues.setdefault(queue, []).append(body)

    def get(self, queue: str) -> QueueMessage | None:
        if self.on_get is not None:
            self.on_get(self)
        pending = self.queues.get(queue, [])
        if not pending:
            return None
        body = pending.pop(0)
        tag = self._next_tag
        self._next_tag += 1
        self.unacked[tag] = body
        return QueueMessage(delivery_tag=tag, body=body)

    def ack(self, message: QueueMessage) -> None:
        self.unacked.pop(message.delivery_tag)
        self.acked.append(message.delivery_tag)


@pytest.fixture()
def fake_broker() -> FakeBroker:
    return FakeBroker()
