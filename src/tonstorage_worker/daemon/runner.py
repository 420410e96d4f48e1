"""Subprocess runner for the storage daemon CLI."""

from __future__ import annotations

import logging
import re
import subprocess

from tonstorage_worker.config import DaemonSettings
from tonstorage_worker.daemon.models import ErrorKind, RunOutput

logger = logging.getLogger(__name__)

TIMEOUT_ERROR = "error: timeout"

_FAILURE_LINE_RE = re.compile(r"invalid|error|unknown|failed", re.IGNORECASE)


class CommandRunner:
    """Run one `--cmd` invocation of the daemon CLI per call."""

    def __init__(self, settings: DaemonSettings) -> None:
        self.settings = settings

    def build_args(self, command: str) -> list[str]:
        return [
            str(self.settings.bin_path),
            "-v",
            "0",
            "-I",
            self.settings.host,
            "-k",
            self.settings.private_key,
            "-p",
            self.settings.public_key,
            "--cmd",
            command,
        ]

    def run(self, command: str, *, timeout_seconds: float | None = None) -> RunOutput:
        timeout = timeout_seconds if timeout_seconds is not None else self.settings.timeout_seconds
        command_name = command.split(maxsplit=1)[0] if command.strip() else command
        logger.debug("Running daemon command %s (timeout=%.1fs)", command_name, timeout)

        try:
            completed = subprocess.run(  # noqa: S603
                self.build_args(command),
                check=False,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as error:
            stderr = _normalize_failure(
                timed_out=True,
                stdout=_decode(error.stdout),
                stderr=_decode(error.stderr),
                returncode=None,
            )
            logger.warning("Daemon command %s timed out after %.1fs", command_name, timeout)
            return RunOutput(stdout="", stderr=stderr, failure=ErrorKind.TIMEOUT)
        except OSError as error:
            logger.warning("Daemon CLI failed to start: %s", error)
            return RunOutput(stdout="", stderr=f"error: {error}", failure=ErrorKind.PROCESS_FAILURE)

        if completed.returncode == 0:
            return RunOutput(stdout=completed.stdout)

        stderr = _normalize_failure(
            timed_out=False,
            stdout=completed.stdout,
            stderr=completed.stderr,
            returncode=completed.returncode,
        )
        logger.warning(
            "Daemon command %s exited with code %s: %s",
            command_name,
            completed.returncode,
            stderr,
        )
        return RunOutput(stdout="", stderr=stderr, failure=ErrorKind.PROCESS_FAILURE)


def _normalize_failure(
    *,
    timed_out: bool,
    stdout: str,
    stderr: str,
    returncode: int | None,
) -> str:
    parts: list[str] = []
    if timed_out:
        parts.append(TIMEOUT_ERROR)

    first_line = stdout.split("\n", 1)[0]
    if _FAILURE_LINE_RE.search(first_line):
        parts.append(first_line)

    parts.append(stderr)
    message = " ".join(" ".join(parts).split())
    if not message:
        return f"error: exit code {returncode}"
    return message


def _decode(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
