"""Health and readiness endpoints.

  /health (liveness):
    "Is this process alive?"  Also reports which outbound integrations
    have their secrets configured (true/false only, never the values),
    so a half-configured deploy is visible without reading env vars.

  /ready (readiness):
    "Can this instance take claims?"  A claim cannot succeed without
    the trusted origin and the badge issuer credentials, so their
    absence is 503.  Email and spreadsheet are best-effort and do not
    affect readiness.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from app.core.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Annotated[Settings, Depends(get_settings)]) -> dict:
    integrations = settings.integrations
    return {
        "status": "ok" if all(integrations.values()) else "degraded",
        "checks": {
            name: "configured" if ok else "not_configured"
            for name, ok in integrations.items()
        },
    }


@router.get("/ready")
async def ready(settings: Annotated[Settings, Depends(get_settings)]) -> Response:
    if not settings.trusted_origin or not settings.integrations["badgr"]:
        return Response(status_code=503)
    return Response(status_code=200)
