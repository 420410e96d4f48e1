"""Queue event envelope shared by the workers and downstream consumers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

REMOVE_TORRENT = "RemoveTorrent"
CLOSE_CONTRACT = "CloseContract"


class EventDecodeError(ValueError):
    """Queue message body is not a usable event."""


@dataclass(slots=True, frozen=True)
class QueueEvent:
    """`{event_name, payload}` message as it travels over the broker."""

    event_name: str
    payload: dict[str, Any] = field(default_factory=dict)

    def encode(self) -> bytes:
        return json.dumps(
            {"event_name": self.event_name, "payload": self.payload},
            ensure_ascii=False,
        ).encode("utf-8")

    @classmethod
    def decode(cls, body: bytes | str) -> QueueEvent:
        try:
            document = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            raise EventDecodeError(f"Message body is not JSON: {error}") from error
        if not isinstance(document, dict):
            raise EventDecodeError("Message body must be a JSON object")
        payload = document.get("payload")
        if not isinstance(payload, dict):
            raise EventDecodeError("Message payload must be a JSON object")
        return cls(event_name=str(document.get("event_name") or ""), payload=payload)


def remove_torrent(
    torrent: dict[str, Any],
    contract: dict[str, Any] | None = None,
) -> QueueEvent:
    payload: dict[str, Any] = {"torrent": torrent}
    if contract is not None:
        payload["contract"] = contract
    return QueueEvent(event_name=REMOVE_TORRENT, payload=payload)


def close_contract(address: str) -> QueueEvent:
    return QueueEvent(event_name=CLOSE_CONTRACT, payload={"address": address})


def contract_address(event: QueueEvent) -> str:
    """Contract address carried by a contract-queue message."""

    address = event.payload.get("address")
    if not isinstance(address, str) or not address.strip():
        raise EventDecodeError("Message payload has no contract address")
    return address.strip()
