from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal
from io import BytesIO
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENABLE_TRACING", "false")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from treasury.api.deps import get_db_session, get_today_provider
from treasury.api.security import refresh_token_store
from treasury.core.tenancy import TenantContext
from treasury.main import app
from treasury.models import Base, Expense, PaymentMethod, Revenue, Tenant, TenantStatus
from treasury.obs import AuditMiddleware
from treasury.services.view_cache import ViewCache, view_cache

TENANT_ID = "igreja-demo"
TODAY = date(2025, 3, 10)


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the audit middleware during tests."""

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, BytesIO]:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "NoSuchBucket"}}, "GetObject")
        bucket = self._buckets[Bucket]
        if Key not in bucket:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": BytesIO(bucket[Key])}

    def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str | None = None,
        **_: object,
    ) -> dict[str, str]:
        bucket = self._buckets.setdefault(Bucket, {})
        bucket[Key] = Body.encode("utf-8") if isinstance(Body, str) else Body
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


DATABASE_URL = "sqlite+pysqlite:///:memory:"


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def audit_s3_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[InMemoryS3Client]:
    client = InMemoryS3Client()

    def _client_factory(*args: object, **kwargs: object) -> InMemoryS3Client:
        return client

    monkeypatch.setattr("treasury.obs.audit.boto3.client", _client_factory)
    stack = getattr(app, "middleware_stack", None)
    middleware = getattr(stack, "app", None)
    while middleware is not None and hasattr(middleware, "app"):
        if isinstance(middleware, AuditMiddleware):
            middleware.sink.reset()
        middleware = getattr(middleware, "app", None)
    yield client


@pytest.fixture(autouse=True)
def _reset_shared_state() -> Iterator[None]:
    view_cache.clear()
    refresh_token_store.reset()
    yield
    view_cache.clear()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    session.add(Tenant(id=TENANT_ID, name="Igreja Demo", status=TenantStatus.ACTIVE))
    session.commit()

    yield session
    session.close()


@pytest.fixture()
def tenant_context() -> TenantContext:
    return TenantContext(tenant_id=TENANT_ID, actor="tesoureiro@igreja.org")


@pytest.fixture()
def cache() -> ViewCache:
    return ViewCache(ttl_seconds=60)


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def add_revenue(db_session: Session) -> Callable[..., Revenue]:
    def _add(
        amount: str,
        *,
        on: date = TODAY,
        tenant_id: str = TENANT_ID,
        description: str | None = None,
        category_id: str | None = None,
        is_reserve_fund: bool = False,
    ) -> Revenue:
        revenue = Revenue(
            tenant_id=tenant_id,
            amount=Decimal(amount),
            transaction_date=on,
            description=description,
            category_id=category_id,
            payment_method=PaymentMethod.PIX,
            is_reserve_fund=is_reserve_fund,
        )
        db_session.add(revenue)
        db_session.commit()
        return revenue

    return _add


@pytest.fixture()
def add_expense(db_session: Session) -> Callable[..., Expense]:
    def _add(
        amount: str,
        *,
        on: date = TODAY,
        tenant_id: str = TENANT_ID,
        description: str | None = None,
        category_id: str | None = None,
        is_reserve_fund: bool = False,
    ) -> Expense:
        expense = Expense(
            tenant_id=tenant_id,
            amount=Decimal(amount),
            transaction_date=on,
            description=description,
            category_id=category_id,
            payment_method=PaymentMethod.CASH,
            is_reserve_fund=is_reserve_fund,
        )
        db_session.add(expense)
        db_session.commit()
        return expense

    return _add


@pytest.fixture()
def client(db_session: Session, audit_s3_client: InMemoryS3Client) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_today_provider] = lambda: (lambda: TODAY)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)
    app.dependency_overrides.pop(get_today_provider, None)


@pytest.fixture()
def login_as(client: TestClient) -> Callable[..., dict[str, str]]:
    def _login(role: str | None = None, *, email: str = "tesoureiro@igreja.org") -> dict[str, str]:
        payload: dict[str, str] = {"email": email, "password": "changeme"}
        if role is not None:
            payload["role"] = role
        response = client.post("/api/auth/login", json=payload)
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture()
def auth_headers(login_as: Callable[..., dict[str, str]]) -> dict[str, str]:
    return login_as()
