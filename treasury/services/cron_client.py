"""HTTP client for the scheduled auto-transfer endpoint."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

AUTO_TRANSFER_PATH = "/api/cron/auto-transfer-reserve-fund"


class AutoTransferTriggerError(RuntimeError):
    """Raised when the endpoint rejects the call or reports a failure."""


@dataclass(slots=True, frozen=True)
class AutoTransferTrigger:
    """Body returned by a successful trigger."""

    message: str
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [item["tenant_id"] for item in self.results if item.get("success")]

    @property
    def refused(self) -> list[str]:
        return [item["tenant_id"] for item in self.results if not item.get("success")]


class AutoTransferClient:
    """Synchronous wrapper that calls the cron endpoint with the bearer secret."""

    def __init__(
        self,
        base_url: str,
        *,
        secret: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._secret = secret
        self._client = client or httpx.Client()
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "AutoTransferClient":
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def trigger(
        self,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = 30.0,
    ) -> AutoTransferTrigger:
        request_headers = dict(headers or {})
        if self._secret:
            request_headers["Authorization"] = f"Bearer {self._secret}"

        try:
            response = self._client.get(
                f"{self._base_url}{AUTO_TRANSFER_PATH}",
                headers=request_headers,
                timeout=timeout,
            )
        except httpx.HTTPError as exc:
            raise AutoTransferTriggerError(f"auto-transfer endpoint unreachable: {exc}") from exc

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AutoTransferTriggerError("auto-transfer endpoint rejected the cron secret")
        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if response.is_error or not data.get("success"):
            raise AutoTransferTriggerError(data.get("error") or f"HTTP {response.status_code}")
        return AutoTransferTrigger(message=data.get("message", ""), results=list(data.get("results", [])))


__all__ = [
    "AUTO_TRANSFER_PATH",
    "AutoTransferClient",
    "AutoTransferTrigger",
    "AutoTransferTriggerError",
]
