"""Response envelope and failure kinds for storage daemon commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

CODE_OK = 0
CODE_FAILED = 400
CODE_UNEXPECTED_OUTPUT = 401

UNKNOWN_ERROR = "error: unknown error"


class ErrorKind(str, Enum):
    """Structured cause of a failed daemon command."""

    TIMEOUT = "timeout"
    PROCESS_FAILURE = "process_failure"
    DECODE_FAILURE = "decode_failure"
    UNEXPECTED_OUTPUT = "unexpected_output"
    IO_FAILURE = "io_failure"


@dataclass(slots=True, frozen=True)
class RunOutput:
    """Raw outcome of one daemon CLI process."""

    stdout: str
    stderr: str = ""
    failure: ErrorKind | None = None

    @property
    def failed(self) -> bool:
        return self.failure is not None


@dataclass(slots=True, frozen=True)
class DaemonResponse(Generic[T]):
    """Uniform `{ok, result|error, code}` envelope.

    ``code`` keeps the daemon wrapper's historical values (0, 400, 401);
    ``error_kind`` is what callers should branch on. 401 means the command
    ran but its output did not match the expected phrase. It is not an
    authentication status.
    """

    ok: bool
    code: int
    result: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def success(cls, result: T) -> DaemonResponse[T]:
        return cls(ok=True, code=CODE_OK, result=result)

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        kind: ErrorKind,
        code: int = CODE_FAILED,
    ) -> DaemonResponse[T]:
        return cls(ok=False, code=code, error=error, error_kind=kind)

    @classmethod
    def from_run(cls, output: RunOutput) -> DaemonResponse[T]:
        """Failure envelope for a run the runner already classified."""

        if output.failure is None:
            raise ValueError("Run output did not fail.")
        return cls.failure(output.stderr, kind=output.failure)

    @classmethod
    def unexpected_output(cls) -> DaemonResponse[T]:
        return cls.failure(
            UNKNOWN_ERROR,
            kind=ErrorKind.UNEXPECTED_OUTPUT,
            code=CODE_UNEXPECTED_OUTPUT,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for CLI output; omits whichever side is empty."""

        payload: dict[str, Any] = {"ok": self.ok, "code": self.code}
        if self.ok:
            payload["result"] = self.result
        else:
            payload["error"] = self.error
            payload["error_kind"] = self.error_kind.value if self.error_kind else None
        return payload
