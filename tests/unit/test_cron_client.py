from __future__ import annotations

import httpx
import pytest

from treasury.services.cron_client import AUTO_TRANSFER_PATH, AutoTransferClient, AutoTransferTriggerError


def _client(handler, *, secret: str | None = "s3cr3t") -> AutoTransferClient:
    transport = httpx.MockTransport(handler)
    return AutoTransferClient("http://treasury.test/", secret=secret, client=httpx.Client(transport=transport))


def test_trigger_sends_bearer_secret_and_parses_results() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "message": "Transferência automática executada",
                "results": [
                    {"tenant_id": "igreja-a", "success": True, "amount": "600.00"},
                    {"tenant_id": "igreja-b", "success": False, "error": "Não há saldo em caixa para transferir"},
                ],
            },
        )

    outcome = _client(handler).trigger(headers={"traceparent": "00-abc-def-01"})

    assert seen[0].method == "GET"
    assert seen[0].url.path == AUTO_TRANSFER_PATH
    assert seen[0].headers["Authorization"] == "Bearer s3cr3t"
    assert seen[0].headers["traceparent"] == "00-abc-def-01"
    assert outcome.succeeded == ["igreja-a"]
    assert outcome.refused == ["igreja-b"]


def test_trigger_without_secret_sends_no_authorization() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"success": True, "message": "ok", "results": []})

    with _client(handler, secret=None) as client:
        assert client.trigger().results == []


def test_unauthorized_response_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Unauthorized"})

    with pytest.raises(AutoTransferTriggerError, match="cron secret"):
        _client(handler).trigger()


def test_server_error_surfaces_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "database unavailable", "success": False})

    with pytest.raises(AutoTransferTriggerError, match="database unavailable"):
        _client(handler).trigger()


def test_non_json_error_falls_back_to_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(AutoTransferTriggerError, match="HTTP 502"):
        _client(handler).trigger()


def test_transport_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AutoTransferTriggerError, match="unreachable"):
        _client(handler).trigger()
