"""Configuration management for the church treasury service."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = Field(default="Church Treasury")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")
    logging_config_path: str | None = Field(default=None)

    database_url: str = Field(default="postgresql+psycopg://treasury:treasury@db:5432/treasury")

    # Calendar used for "today" in transfers and the monthly idempotency guard.
    timezone: str = Field(default="America/Sao_Paulo")
    reserve_fund_history_limit: int = Field(default=50)
    view_cache_ttl_seconds: float = Field(default=60.0)

    # Bearer secret the monthly scheduler presents to the cron endpoint.
    cron_secret: str | None = Field(default=None)
    api_base_url: str = Field(default="http://localhost:8000")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    scheduler_timeout_seconds: float = Field(default=30.0)

    # Request audit records are shipped to S3-compatible storage.
    aws_region: str = Field(default="us-east-1")
    s3_endpoint_url: str | None = Field(default=None)
    audit_log_bucket: str = Field(default="treasury-audit-logs")
    audit_log_prefix: str = Field(default="audit/records")
    audit_log_sample_rate: float = Field(default=1.0)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    # Single bootstrap treasurer account until user management lands.
    jwt_algorithm: str = Field(default="HS256")
    jwt_secret_key: str = Field(default="dev-only-treasury-signing-key")
    access_token_expire_minutes: int = Field(default=15)
    refresh_token_expire_days: int = Field(default=7)
    default_tenant_id: str = Field(default="igreja-demo")
    default_role: str = Field(default="OWNER")
    default_user_hashed_password: str = Field(
        default="$2b$12$oyI2qhzyapMI2vlA38nS4uK91tQ8gjVjTgQExlbDGQLHw6/oEFzOG"
    )  # password: changeme
    default_user_password: str = Field(default="changeme")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
