"""Request audit trail shipped to S3 as daily JSON-lines objects."""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import-untyped]
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from treasury.core.config import Settings

# Member contact details, church documents and credentials.
SENSITIVE_KEYS = frozenset(
    {
        "email",
        "username",
        "password",
        "phone",
        "cpf",
        "cnpj",
        "pix_key",
        "refresh_token",
        "access_token",
        "authorization",
    }
)
SECRET_KEYS = frozenset({"password", "refresh_token", "access_token", "authorization"})


def mask_value(value: Any) -> Any:
    """Recursively hide e-mail addresses and long digit strings."""

    if isinstance(value, dict):
        return mask_mapping(value)
    if isinstance(value, list):
        return [mask_value(item) for item in value]
    if isinstance(value, str):
        local, at, domain = value.partition("@")
        if at:
            return f"{local[:1]}***@{domain or '***'}"
        if value.isdigit() and len(value) > 4:
            return f"***{value[-4:]}"
    return value


def mask_mapping(mapping: dict[str, Any]) -> dict[str, Any]:
    masked: dict[str, Any] = {}
    for key, value in mapping.items():
        lowered = key.lower()
        if lowered not in SENSITIVE_KEYS:
            masked[key] = mask_value(value)
        elif lowered not in SECRET_KEYS and isinstance(value, str) and len(value) > 4:
            masked[key] = f"***{value[-4:]}"
        else:
            masked[key] = "***"
    return masked


@dataclass(slots=True)
class AuditLogRecord:
    timestamp: str
    request_id: str
    method: str
    path: str
    status: int
    duration_ms: float
    actor: str | None
    tenant_id: str | None
    ip_address: str | None
    query: dict[str, Any]
    body: Any

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str, ensure_ascii=False)


class S3AuditSink:
    """Appends audit records to ``<prefix>/YYYY/MM/DD/audit.log`` in a bucket."""

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: Callable[[], Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or self._boto_client
        self._client: Any | None = None
        self._bucket_checked = False
        self._logger = logger or logging.getLogger("audit")

    def write(self, record: AuditLogRecord) -> None:
        rate = self._settings.audit_log_sample_rate
        if rate <= 0 or (rate < 1 and random.random() > rate):
            return
        try:
            client = self._get_client()
            self._ensure_bucket(client)
            key = self.key_for(datetime.now(timezone.utc))
            existing = self._read(client, key)
            client.put_object(
                Bucket=self._settings.audit_log_bucket,
                Key=key,
                Body=existing + record.to_json().encode("utf-8") + b"\n",
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:
            self._logger.error("failed to persist audit record", extra={"error": str(exc)})

    def reset(self) -> None:
        """Forget the cached client so the next write builds a new one."""
        self._client = None
        self._bucket_checked = False

    def key_for(self, moment: datetime) -> str:
        prefix = self._settings.audit_log_prefix.rstrip("/")
        return f"{prefix}/{moment:%Y/%m/%d}/audit.log"

    def _boto_client(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _ensure_bucket(self, client: Any) -> None:
        if self._bucket_checked:
            return
        bucket = self._settings.audit_log_bucket
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            params: dict[str, Any] = {"Bucket": bucket}
            if self._settings.aws_region != "us-east-1" and self._settings.s3_endpoint_url is None:
                params["CreateBucketConfiguration"] = {"LocationConstraint": self._settings.aws_region}
            client.create_bucket(**params)
        self._bucket_checked = True

    def _read(self, client: Any, key: str) -> bytes:
        try:
            return client.get_object(Bucket=self._settings.audit_log_bucket, Key=key)["Body"].read()
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in {"404", "NoSuchKey"}:
                return b""
            raise


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs every request with masked inputs and forwards it to the audit sink."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(app)
        self._logger = logger or logging.getLogger("audit")
        self.sink = S3AuditSink(settings, client_factory=s3_client_factory, logger=self._logger)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        body = await request.body()
        _replay_body(request, body)

        response = await call_next(request)

        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
            actor=getattr(request.state, "actor", None),
            tenant_id=getattr(request.state, "tenant_id", None),
            ip_address=request.client.host if request.client else None,
            query=mask_mapping(dict(request.query_params.multi_items())),
            body=_masked_body(body),
        )
        self._logger.info(record.to_json())
        self.sink.write(record)

        response.headers["X-Request-ID"] = request_id
        return response


def _masked_body(body: bytes) -> Any:
    if not body:
        return None
    try:
        return mask_value(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "<binary>"


def _replay_body(request: Request, body: bytes) -> None:
    # Downstream handlers read the body again, so hand it back once.
    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.request", "body": b"", "more_body": False}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    request._receive = receive  # type: ignore[attr-defined]


__all__ = ["AuditLogRecord", "AuditMiddleware", "S3AuditSink", "mask_mapping", "mask_value"]
