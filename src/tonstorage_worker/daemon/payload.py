"""Out-of-band binary exchange with the daemon through a private temp file."""

from __future__ import annotations

import base64
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from tempfile import TemporaryDirectory

PAYLOAD_FILE_NAME = "payload.bin"


@contextmanager
def payload_file(prefix: str = "tonstorage-") -> Iterator[Path]:
    """Yield a path the daemon can write to; removed on every exit path.

    The directory is created atomically with a unique name and mode 0700,
    so concurrent invocations on one host never share a file.
    """

    with TemporaryDirectory(prefix=prefix) as temp_dir:
        yield Path(temp_dir) / PAYLOAD_FILE_NAME


def read_base64(path: Path) -> str:
    """Read a binary file and return it as base64 text."""

    return base64.b64encode(path.read_bytes()).decode("ascii")
