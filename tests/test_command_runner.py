from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import allure

from tonstorage_worker.config import DaemonSettings
from tonstorage_worker.daemon.models import ErrorKind
from tonstorage_worker.daemon.runner import TIMEOUT_ERROR, CommandRunner

pytestmark = [
    allure.epic("Storage Daemon"),
    allure.feature("Command Runner"),
]


def test_runner_passes_auth_flags_and_command_as_single_argument(
    fake_daemon: DaemonSettings,
) -> None:
    output = CommandRunner(fake_daemon).run("echo-args 'my file.txt' --json")

    assert not output.failed
    assert output.stderr == ""
    assert json.loads(output.stdout) == [
        "-v",
        "0",
        "-I",
        "127.0.0.1:5555",
        "-k",
        "client.key",
        "-p",
        "server.pub",
        "--cmd",
        "echo-args 'my file.txt' --json",
    ]


def test_runner_collects_error_first_line_and_stderr(fake_daemon: DaemonSettings) -> None:
    output = CommandRunner(fake_daemon).run("fail")

    assert output.failure is ErrorKind.PROCESS_FAILURE
    assert output.stdout == ""
    assert output.stderr == "Error: unknown torrent second line"


def test_runner_reports_exit_code_when_process_fails_silently(
    fake_daemon: DaemonSettings,
) -> None:
    output = CommandRunner(fake_daemon).run("silent-fail")

    assert output.failure is ErrorKind.PROCESS_FAILURE
    assert output.stderr == "error: exit code 3"


def test_runner_marks_timeout(fake_daemon: DaemonSettings) -> None:
    runner = CommandRunner(replace(fake_daemon, timeout_seconds=30.0))

    output = runner.run("sleep", timeout_seconds=0.5)

    assert output.failure is ErrorKind.TIMEOUT
    assert output.stderr.startswith(TIMEOUT_ERROR)


def test_runner_reports_missing_binary(tmp_path: Path) -> None:
    settings = DaemonSettings(bin_path=tmp_path / "missing-cli")

    output = CommandRunner(settings).run("list --json")

    assert output.failure is ErrorKind.PROCESS_FAILURE
    assert output.stderr.startswith("error: ")


def test_runner_replaces_undecodable_output_bytes(fake_daemon: DaemonSettings) -> None:
    output = CommandRunner(fake_daemon).run("binary-list --json")

    assert not output.failed
    assert json.loads(output.stdout)["torrents"][0]["description"] == "\ufffd\ufffd"
