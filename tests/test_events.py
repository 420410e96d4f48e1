from __future__ import annotations

import json

import allure
import pytest

from tonstorage_worker.broker.events import (
    EventDecodeError,
    QueueEvent,
    close_contract,
    contract_address,
    remove_torrent,
)

pytestmark = [
    allure.epic("Workers"),
    allure.feature("Queue Events"),
]


def test_encoded_event_uses_event_name_and_payload_keys() -> None:
    body = close_contract("EQ1").encode()

    assert json.loads(body) == {"event_name": "CloseContract", "payload": {"address": "EQ1"}}


def test_remove_torrent_omits_contract_when_absent() -> None:
    torrent = {"hash": "h3", "completed": True}

    assert remove_torrent(torrent).payload == {"torrent": torrent}
    assert remove_torrent(torrent, {"address": "0:01"}).payload == {
        "torrent": torrent,
        "contract": {"address": "0:01"},
    }


def test_decode_keeps_non_ascii_payload() -> None:
    body = QueueEvent(event_name="RemoveTorrent", payload={"name": "файл"}).encode()

    assert QueueEvent.decode(body).payload == {"name": "файл"}


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"\xff\xfe",
        b"[1, 2]",
        b'{"event_name": "CreateContract", "payload": "EQ1"}',
    ],
)
def test_decode_rejects_unusable_bodies(body: bytes) -> None:
    with pytest.raises(EventDecodeError):
        QueueEvent.decode(body)


def test_contract_address_is_stripped_and_required() -> None:
    assert contract_address(QueueEvent("CreateContract", {"address": " EQ1 "})) == "EQ1"

    with pytest.raises(EventDecodeError, match="no contract address"):
        contract_address(QueueEvent("CreateContract", {"address": ""}))
