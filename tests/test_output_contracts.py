from __future__ import annotations

from pathlib import Path

import allure
import pytest

from tonstorage_worker.daemon.output_contracts import OUTPUT_CONTRACTS, contract_for

pytestmark = [
    allure.epic("Storage Daemon"),
    allure.feature("Output Contracts"),
]

CORPUS_DIR = Path(__file__).parent / "fixtures" / "daemon_outputs"
RAW_ADDRESS = "0:" + "A1" * 32


def _corpus(command: str) -> str:
    return (CORPUS_DIR / f"{command}.txt").read_text("utf-8")


def test_every_registered_contract_has_a_corpus_sample() -> None:
    samples = {path.stem for path in CORPUS_DIR.glob("*.txt")}
    assert samples == set(OUTPUT_CONTRACTS)


@pytest.mark.parametrize("command", sorted(OUTPUT_CONTRACTS))
def test_contract_accepts_recorded_daemon_output(command: str) -> None:
    assert contract_for(command).matches(_corpus(command))


@pytest.mark.parametrize(
    "command",
    sorted(name for name, contract in OUTPUT_CONTRACTS.items() if contract.success is not None),
)
def test_contract_rejects_unrelated_output(command: str) -> None:
    assert not contract_for(command).matches("Torrent not found\n")


def test_success_phrases_are_case_insensitive() -> None:
    assert contract_for("withdraw").matches("BOUNTY WAS WITHDRAWN")
    assert contract_for("priority-idx").matches("priority was set")


def test_get_meta_extracts_size() -> None:
    assert contract_for("get-meta").extract(_corpus("get-meta")) == {"size": "1532 B"}


def test_get_meta_size_is_none_without_size_suffix() -> None:
    contract = contract_for("get-meta")
    assert contract.matches("Saved meta")
    assert contract.extract("Saved meta") == {"size": None}


def test_deploy_provider_extracts_both_addresses() -> None:
    fields = contract_for("deploy-provider").extract(_corpus("deploy-provider"))

    assert fields == {
        "address": RAW_ADDRESS,
        "non_bounceable_address": "UQDPQcYytoMmCIHdA6UiaQEeNhmYX-4BcioUflqqyoIdB-7j",
    }


def test_deploy_provider_accepts_masterchain_address() -> None:
    stdout = "Address: -1:" + "0F" * 32
    contract = contract_for("deploy-provider")

    assert contract.matches(stdout)
    assert contract.extract(stdout)["address"] == "-1:" + "0F" * 32
    assert contract.extract(stdout)["non_bounceable_address"] is None


def test_new_contract_message_extracts_integers() -> None:
    fields = contract_for("new-contract-message").extract(_corpus("new-contract-message"))

    assert fields == {"rate": 1_000_000, "max_span": 86_400}


def test_unknown_command_has_no_contract() -> None:
    with pytest.raises(KeyError, match="get-peers"):
        contract_for("get-peers")
