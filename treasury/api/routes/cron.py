"""Endpoint the monthly scheduler calls to run the auto-transfer."""
from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from treasury.api.deps import get_db_session, get_today_provider
from treasury.core.clock import TodayProvider
from treasury.core.config import get_settings
from treasury.services.reserve_fund import auto_transfer_all_tenants

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/cron")


def _authorized(authorization: str | None) -> bool:
    secret = get_settings().cron_secret
    if not secret:
        return True
    return authorization is not None and secrets.compare_digest(authorization, f"Bearer {secret}")


@router.get("/auto-transfer-reserve-fund", summary="Run the monthly auto-transfer for every church")
def run_auto_transfer(
    authorization: str | None = Header(default=None),
    session: Session = Depends(get_db_session),
    today_fn: TodayProvider = Depends(get_today_provider),
) -> JSONResponse:
    if not _authorized(authorization):
        LOGGER.warning("cron call rejected: bad or missing secret")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        run = auto_transfer_all_tenants(session, today_fn=today_fn)
    except Exception as exc:
        LOGGER.exception("auto transfer run failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "success": False})

    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "message": "Transferência automática executada",
            "results": [item.to_dict() for item in run.results],
        },
    )


__all__ = ["router"]
