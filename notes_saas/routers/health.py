from __future__ import annotations

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from notes_saas.core import database
from notes_saas.core.config import APP_VERSION, ENV_NORMALIZED
from notes_saas.core.responses import error_body, ok
from notes_saas.core.startup_checks import check_database_ready

router = APIRouter(tags=["health"])

PROCESS_STARTED_AT = time.monotonic()


@router.get("/health")
def health():
    return {"status": "healthy"}


@router.get("/health/ready")
def readiness():
    details = {
        "uptime_seconds": round(time.monotonic() - PROCESS_STARTED_AT, 2),
        "version": APP_VERSION,
        "environment": ENV_NORMALIZED,
    }
    if not check_database_ready(database.engine):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("Service unavailable", code="NOT_READY", data={"status": "unavailable", **details}),
        )
    return ok("Service ready", {"status": "ready", **details})
