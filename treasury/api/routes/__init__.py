"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from treasury.api.routes import auth, categories, cron, health, ledger, reports, reserve_fund


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(reserve_fund.router, tags=["reserve-fund"])
    api_router.include_router(cron.router, tags=["cron"])
    api_router.include_router(ledger.router, tags=["ledger"])
    api_router.include_router(categories.router, tags=["categories"])
    api_router.include_router(reports.router, tags=["reports"])

    application.include_router(api_router)


__all__ = ["register_routes"]
