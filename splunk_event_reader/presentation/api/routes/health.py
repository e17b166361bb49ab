"""Health, good-to-go and build-info endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from .... import __version__
from ....domain import HealthStatus
from ....services import EventReaderService
from .transactions import get_reader

router = APIRouter(tags=["health"])

_NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}

SPLUNK_CHECK = {
    "id": "splunk-healthcheck",
    "name": "Splunk healthcheck",
    "severity": 2,
    "businessImpact": "Monitoring of publishing events is hindered. SLA compliance cannot be tracked",
    "technicalSummary": (
        "Splunk is not able to return results, therefore publishing transactions can not be "
        "processed. Check Splunk REST API availability."
    ),
    "panicGuide": "https://dewey.ft.com/splunk-event-reader.html",
}


def _check_output(status: HealthStatus) -> dict[str, Any]:
    return {
        **SPLUNK_CHECK,
        "ok": status.ok,
        "checkOutput": status.message if status.ok else f"{status.message}: {status.error}",
        "lastUpdated": status.observed_at.isoformat() if status.observed_at else None,
    }


@router.get("/__health")
async def health(request: Request, reader: EventReaderService = Depends(get_reader)) -> dict[str, Any]:
    settings = request.app.state.settings
    status = await reader.is_healthy()
    return {
        "schemaVersion": 1,
        "systemCode": settings.app_system_code,
        "name": settings.app_name,
        "description": request.app.description,
        "checks": [_check_output(status)],
        "ok": status.ok,
    }


@router.get("/__gtg")
async def good_to_go(reader: EventReaderService = Depends(get_reader)) -> PlainTextResponse:
    status = await reader.is_healthy()
    if status.ok:
        return PlainTextResponse("OK", headers=_NO_CACHE)
    return PlainTextResponse(str(status.error), status_code=503, headers=_NO_CACHE)


@router.get("/__build-info")
async def build_info(request: Request) -> dict[str, Any]:
    settings = request.app.state.settings
    return {
        "version": __version__,
        "systemCode": settings.app_system_code,
        "name": settings.app_name,
    }
