"""Typed methods over the storage daemon CLI command set."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from tonstorage_worker.config import SLOW_COMMAND_TIMEOUT_SECONDS, DaemonSettings
from tonstorage_worker.daemon.models import DaemonResponse, ErrorKind
from tonstorage_worker.daemon.output_contracts import contract_for
from tonstorage_worker.daemon.payload import payload_file, read_base64
from tonstorage_worker.daemon.records import ProviderInfo, TorrentList
from tonstorage_worker.daemon.runner import CommandRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUCCESS_RESULT = {"message": "success"}


class StorageDaemonClient:
    """Builds daemon command lines and normalizes their output into envelopes."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    @classmethod
    def from_settings(cls, settings: DaemonSettings) -> StorageDaemonClient:
        return cls(CommandRunner(settings))

    # Normalizer

    def response(
        self,
        command: str,
        *,
        decode: Callable[[Any], T] | None = None,
        timeout_seconds: float | None = None,
    ) -> DaemonResponse[Any]:
        """Run a JSON-emitting command and wrap the decoded payload."""

        output = self.runner.run(command, timeout_seconds=timeout_seconds)
        if output.failed:
            return DaemonResponse.from_run(output)

        try:
            payload = json.loads(output.stdout)
        except json.JSONDecodeError as error:
            return DaemonResponse.failure(f"error: {error}", kind=ErrorKind.DECODE_FAILURE)

        if decode is None:
            return DaemonResponse.success(payload)
        try:
            return DaemonResponse.success(decode(payload))
        except (KeyError, TypeError, ValueError) as error:
            logger.warning("Unexpected JSON shape from %r: %s", command, error)
            return DaemonResponse.failure(
                f"error: unexpected JSON shape: {error}",
                kind=ErrorKind.DECODE_FAILURE,
            )

    def action(
        self,
        command: str,
        *,
        timeout_seconds: float | None = None,
    ) -> DaemonResponse[dict[str, Any]]:
        """Run a command whose success is confirmed by a phrase on stdout."""

        output = self.runner.run(command, timeout_seconds=timeout_seconds)
        if output.failed:
            return DaemonResponse.from_run(output)
        if not contract_for(_command_name(command)).matches(output.stdout):
            return DaemonResponse.unexpected_output()
        return DaemonResponse.success(dict(SUCCESS_RESULT))

    # Torrents

    def list(self) -> DaemonResponse[TorrentList]:
        return self.response("list --json", decode=TorrentList.from_json)

    def get(self, index: str) -> DaemonResponse[Any]:
        return self.response(f"get {index} --json")

    def get_peers(self, index: str) -> DaemonResponse[Any]:
        return self.response(f"get-peers {index} --json")

    def create(
        self,
        path: str,
        *,
        upload: bool = True,
        copy: bool = False,
        description: str | None = None,
    ) -> DaemonResponse[Any]:
        parts = [f"create '{path}' --json"]
        if not upload:
            parts.append("--no-upload")
        if copy:
            parts.append("--copy")
        if description:
            parts.append(f"-d '{description}'")
        return self.response(" ".join(parts))

    def add_by_hash(  # noqa: PLR0913
        self,
        torrent_hash: str,
        *,
        download: bool = False,
        upload: bool = True,
        root_dir: str | None = None,
        partial_files: Sequence[str] = (),
    ) -> DaemonResponse[Any]:
        return self.response(
            _add_command(
                f"add-by-hash --json {torrent_hash}",
                download=download,
                upload=upload,
                root_dir=root_dir,
                partial_files=partial_files,
            ),
        )

    def add_by_meta(  # noqa: PLR0913
        self,
        path: str,
        *,
        download: bool = False,
        upload: bool = True,
        root_dir: str | None = None,
        partial_files: Sequence[str] = (),
    ) -> DaemonResponse[Any]:
        return self.response(
            _add_command(
                f"add-by-meta --json '{path}'",
                download=download,
                upload=upload,
                root_dir=root_dir,
                partial_files=partial_files,
            ),
        )

    def get_meta(self, index: str) -> DaemonResponse[dict[str, Any]]:
        """Export torrent meta as base64 together with the size the daemon reports."""

        contract = contract_for("get-meta")
        with payload_file() as path:
            output = self.runner.run(f"get-meta {index} '{path}'")
            if output.failed:
                return DaemonResponse.from_run(output)
            if not contract.matches(output.stdout):
                return DaemonResponse.unexpected_output()
            try:
                payload = read_base64(path)
            except OSError as error:
                return DaemonResponse.failure(f"error: {error}", kind=ErrorKind.IO_FAILURE)

        return DaemonResponse.success(
            {
                "payload": payload,
                "message": "success",
                **contract.extract(output.stdout),
            },
        )

    def remove(self, index: str, *, remove_files: bool = False) -> DaemonResponse[dict[str, Any]]:
        suffix = " --remove-files" if remove_files else ""
        return self.action(f"remove {index}{suffix}")

    def download_pause(self, index: str) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"download-pause {index}")

    def download_resume(self, index: str) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"download-resume {index}")

    def upload_pause(self, index: str) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"upload-pause {index}")

    def upload_resume(self, index: str) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"upload-resume {index}")

    def priority_all(self, index: str, priority: str | int) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"priority-all {index} {priority}")

    def priority_name(
        self,
        index: str,
        name: str,
        priority: str | int,
    ) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"priority-name {index} '{name}' {priority}")

    def priority_idx(
        self,
        index: str,
        file_id: str | int,
        priority: str | int,
    ) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"priority-idx {index} {file_id} {priority}")

    # Provider

    def deploy_provider(self) -> DaemonResponse[dict[str, Any]]:
        """Deploy a provider contract and return its raw and user-friendly addresses."""

        contract = contract_for("deploy-provider")
        output = self.runner.run("deploy-provider")
        if output.failed:
            return DaemonResponse.from_run(output)
        if not contract.matches(output.stdout):
            return DaemonResponse.unexpected_output()
        return DaemonResponse.success(contract.extract(output.stdout))

    def get_provider_info(
        self,
        *,
        contracts: bool = True,
        balances: bool = True,
    ) -> DaemonResponse[ProviderInfo]:
        parts = ["get-provider-info --json"]
        if contracts:
            parts.append("--contracts")
        if balances:
            parts.append("--balances")
        return self.response(" ".join(parts), decode=ProviderInfo.from_json)

    def set_provider_config(
        self,
        max_contracts: str | int,
        max_total_size: str | int,
    ) -> DaemonResponse[dict[str, Any]]:
        return self.action(
            f"set-provider-config --max-contracts {max_contracts} --max-total-size {max_total_size}",
        )

    def get_provider_params(self, provider_address: str | None = None) -> DaemonResponse[Any]:
        command = "get-provider-params --json"
        if provider_address:
            command = f"{command} {provider_address}"
        return self.response(command)

    def set_provider_params(  # noqa: PLR0913
        self,
        accept: str | int,
        rate: str | int,
        max_span: str | int,
        min_file_size: str | int,
        max_file_size: str | int,
    ) -> DaemonResponse[dict[str, Any]]:
        return self.action(
            f"set-provider-params --accept {accept} --rate {rate} --max-span {max_span} "
            f"--min-file-size {min_file_size} --max-file-size {max_file_size}",
            timeout_seconds=SLOW_COMMAND_TIMEOUT_SECONDS,
        )

    def new_contract_message(
        self,
        torrent: str,
        query_id: str | int,
        provider_address: str,
    ) -> DaemonResponse[dict[str, Any]]:
        """Build a signed new-contract message body for a provider, as base64."""

        contract = contract_for("new-contract-message")
        with payload_file() as path:
            output = self.runner.run(
                f"new-contract-message {torrent} '{path}' "
                f"--query-id {query_id} --provider {provider_address}",
                timeout_seconds=SLOW_COMMAND_TIMEOUT_SECONDS,
            )
            if output.failed:
                return DaemonResponse.from_run(output)
            try:
                payload = read_base64(path)
            except OSError as error:
                return DaemonResponse.failure(f"error: {error}", kind=ErrorKind.IO_FAILURE)

        return DaemonResponse.success({"payload": payload, **contract.extract(output.stdout)})

    def close_contract(self, address: str) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"close-contract {address}", timeout_seconds=SLOW_COMMAND_TIMEOUT_SECONDS)

    def withdraw(self, address: str) -> DaemonResponse[dict[str, Any]]:
        return self.action(f"withdraw {address}", timeout_seconds=SLOW_COMMAND_TIMEOUT_SECONDS)

    def withdraw_all(self) -> DaemonResponse[dict[str, Any]]:
        return self.action("withdraw-all", timeout_seconds=SLOW_COMMAND_TIMEOUT_SECONDS)

    def send_coins(
        self,
        address: str,
        amount: str | int,
        *,
        message: str | None = None,
    ) -> DaemonResponse[dict[str, Any]]:
        command = f"send-coins {address} {amount}"
        if message:
            command = f"{command} --message '{message}'"
        return self.action(command, timeout_seconds=SLOW_COMMAND_TIMEOUT_SECONDS)


def _command_name(command: str) -> str:
    return command.split(maxsplit=1)[0]


def _add_command(
    head: str,
    *,
    download: bool,
    upload: bool,
    root_dir: str | None,
    partial_files: Sequence[str],
) -> str:
    parts = [head]
    if not upload:
        parts.append("--no-upload")
    if not download:
        parts.append("--paused")
    if root_dir:
        parts.append(f"-d '{root_dir}'")
    if partial_files:
        parts.append("--partial " + " ".join(f"'{name}'" for name in partial_files))
    return " ".join(parts)
