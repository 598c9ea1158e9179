from __future__ import annotations

import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENABLE_TRACING", "false")
os.environ.setdefault("AUDIT_LOG_SAMPLE_RATE", "0")


@pytest.fixture(autouse=True)
def _discard_audit_records(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("treasury.obs.audit.S3AuditSink.write", lambda self, record: None)
