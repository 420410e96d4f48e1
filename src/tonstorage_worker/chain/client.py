"""Read-only access to storage contract state through toncenter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from tonstorage_worker.config import ChainSettings

logger = logging.getLogger(__name__)

IS_ACTIVE_METHOD = "is_active"


@dataclass(slots=True, frozen=True)
class ChainCallResult:
    """Outcome of one get-method call."""

    ok: bool
    exit_code: int | None = None
    active: bool = False
    error: str | None = None

    @property
    def confirms_active(self) -> bool:
        return self.ok and self.exit_code == 0 and self.active


class ContractStatusReader(Protocol):
    """Port used by the contract-status worker."""

    def is_active(self, address: str) -> ChainCallResult:
        """Call the contract's `is_active` get-method."""
        raise NotImplementedError


class ToncenterClient:
    """toncenter HTTP API v2 client limited to `runGetMethod`."""

    def __init__(
        self,
        *,
        endpoint: str,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self._client = httpx.Client(
            base_url=endpoint.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds, connect=5.0),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: ChainSettings) -> ToncenterClient:
        return cls(
            endpoint=settings.endpoint,
            api_key=settings.api_key,
            timeout_seconds=settings.timeout_seconds,
        )

    def is_active(self, address: str) -> ChainCallResult:
        return self.run_get_method(address, IS_ACTIVE_METHOD)

    def run_get_method(self, address: str, method: str) -> ChainCallResult:
        try:
            response = self._client.post(
                "/runGetMethod",
                json={"address": address, "method": method, "stack": []},
            )
            document = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Get-method %s on %s failed: %s", method, address, exc)
            return ChainCallResult(ok=False, error=str(exc))
        except ValueError as exc:
            logger.warning("Get-method %s on %s returned non-JSON body", method, address)
            return ChainCallResult(ok=False, error=f"invalid JSON: {exc}")

        if not response.is_success or not isinstance(document, dict) or not document.get("ok"):
            error = document.get("error") if isinstance(document, dict) else None
            message = str(error or f"HTTP {response.status_code}")
            logger.warning("Get-method %s on %s rejected: %s", method, address, message)
            return ChainCallResult(ok=False, error=message)

        result = document.get("result")
        try:
            if not isinstance(result, dict):
                raise TypeError(f"result is {type(result).__name__}, not an object")
            exit_code = int(result["exit_code"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "Get-method %s on %s returned unexpected result: %s",
                method,
                address,
                exc,
            )
            return ChainCallResult(ok=False, error=f"unexpected result: {exc}")

        return ChainCallResult(
            ok=True,
            exit_code=exit_code,
            active=exit_code == 0 and _first_stack_truthy(result.get("stack")),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ToncenterClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _first_stack_truthy(stack: Any) -> bool:
    if not isinstance(stack, list) or not stack:
        return False
    entry = stack[0]
    if not isinstance(entry, list) or len(entry) < 2:  # noqa: PLR2004
        return False
    kind, value = entry[0], entry[1]
    if kind != "num":
        return False
    try:
        return int(str(value), 0) != 0
    except ValueError:
        return False
