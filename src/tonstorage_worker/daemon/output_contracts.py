"""Per-command parsing contracts for the daemon's human-readable output.

Most daemon commands print a plain English confirmation instead of JSON.
Each contract names the phrase that confirms success and the fields that
can be extracted from the same text, so the client never embeds patterns
at call sites. Fixtures under ``tests/fixtures/daemon_outputs`` pin them
against real daemon output.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

_FLAGS = re.IGNORECASE


@dataclass(slots=True, frozen=True)
class FieldPattern:
    """Regex with one named group plus an optional value converter."""

    pattern: re.Pattern[str]
    group: str
    convert: Callable[[str], Any] = str

    def search(self, text: str) -> Any:
        match = self.pattern.search(text)
        if match is None:
            return None
        value = match.group(self.group)
        if value is None:
            return None
        return self.convert(value)


@dataclass(slots=True, frozen=True)
class OutputContract:
    """Expected output shape of one daemon command."""

    command: str
    success: re.Pattern[str] | None
    fields: dict[str, FieldPattern] = field(default_factory=dict)

    def matches(self, stdout: str) -> bool:
        """Return True when stdout confirms the command succeeded."""

        if self.success is None:
            return True
        return self.success.search(stdout) is not None

    def extract(self, stdout: str) -> dict[str, Any]:
        """Extract every declared field; missing fields are None."""

        return {name: pattern.search(stdout) for name, pattern in self.fields.items()}


def _field(regex: str, group: str, convert: Callable[[str], Any] = str) -> FieldPattern:
    return FieldPattern(pattern=re.compile(regex, _FLAGS), group=group, convert=convert)


def _phrase(command: str, regex: str, **fields: FieldPattern) -> OutputContract:
    return OutputContract(command=command, success=re.compile(regex, _FLAGS), fields=fields)


_SUCCESS = r"success"
_PRIORITY_SET = r"priority\swas\sset"
_BOUNTY_WITHDRAWN = r"bounty\swas\swithdrawn"
_RAW_ADDRESS = r"(?:-1|0):[0-9A-F]{64}"

OUTPUT_CONTRACTS: dict[str, OutputContract] = {
    contract.command: contract
    for contract in (
        _phrase("remove", _SUCCESS),
        _phrase("download-pause", _SUCCESS),
        _phrase("download-resume", _SUCCESS),
        _phrase("upload-pause", _SUCCESS),
        _phrase("upload-resume", _SUCCESS),
        _phrase("priority-all", _PRIORITY_SET),
        _phrase("priority-name", _PRIORITY_SET),
        _phrase("priority-idx", _PRIORITY_SET),
        _phrase(
            "get-meta",
            r"saved\smeta",
            size=_field(r"saved\smeta\s\((?P<size>[0-9]+\s\w+)\)", "size"),
        ),
        _phrase(
            "deploy-provider",
            rf"address:\s{_RAW_ADDRESS}",
            address=_field(rf"address:\s(?P<address>{_RAW_ADDRESS})", "address"),
            non_bounceable_address=_field(
                r"non-bounceable\saddress:\s(?P<address>[A-Z0-9/+_-]{48})",
                "address",
            ),
        ),
        _phrase("set-provider-config", r"storage\sprovider\sconfig\swas\supdated"),
        _phrase("set-provider-params", r"storage\sprovider\sparameters\swere\supdated"),
        OutputContract(
            command="new-contract-message",
            success=None,
            fields={
                "rate": _field(
                    r"rate\s\(nanoton\sper\smb\*day\):\s(?P<rate>[0-9]+)",
                    "rate",
                    int,
                ),
                "max_span": _field(r"max\sspan:\s(?P<max_span>[0-9]+)", "max_span", int),
            },
        ),
        _phrase("close-contract", r"closing\sstorage\scontract"),
        _phrase("withdraw", _BOUNTY_WITHDRAWN),
        _phrase("withdraw-all", _BOUNTY_WITHDRAWN),
        _phrase("send-coins", r"internal\smessage\swas\ssent"),
    )
}


def contract_for(command: str) -> OutputContract:
    """Look up the output contract registered for a daemon command name."""

    try:
        return OUTPUT_CONTRACTS[command]
    except KeyError as error:
        raise KeyError(f"No output contract registered for daemon command {command!r}") from error
