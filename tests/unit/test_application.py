from __future__ import annotations

from fastapi.testclient import TestClient

from treasury.core.config import Settings
from treasury.main import create_application, run
from treasury.services.errors import InsufficientFundsError, NotFoundError, PersistenceError


def _build_app():
    application = create_application(Settings(enable_tracing=False, enable_metrics=False))

    @application.get("/boom/{kind}")
    def boom(kind: str) -> dict:
        if kind == "missing":
            raise NotFoundError("Fundo de reserva não encontrado")
        if kind == "funds":
            raise InsufficientFundsError("Saldo insuficiente")
        raise PersistenceError("database unavailable")

    return application


def test_unhandled_service_errors_are_mapped_to_status_codes() -> None:
    with TestClient(_build_app()) as client:
        missing = client.get("/boom/missing")
        funds = client.get("/boom/funds")
        store = client.get("/boom/store")

    assert missing.status_code == 404
    assert missing.json() == {"detail": "Fundo de reserva não encontrado"}
    assert funds.status_code == 409
    assert store.status_code == 500
    assert store.json() == {"detail": "database unavailable"}


def test_routers_are_mounted_without_metrics() -> None:
    with TestClient(_build_app()) as client:
        paths = {route.path for route in client.app.routes}

    assert "/api/reserve-fund" in paths
    assert "/api/cron/auto-transfer-reserve-fund" in paths
    assert "/metrics" not in paths


def test_run_serves_the_app_with_uvicorn(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("treasury.main.uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

    run()

    assert calls == [("treasury.main:app", {"host": "0.0.0.0", "port": 8000, "log_config": None})]
