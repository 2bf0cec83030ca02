"""Badge claim endpoint.

- POST /claim-badge: form post from the course-completion page

The route is registered for every common verb so the gatekeeper, not
FastAPI's router, produces the 405: the origin check has to run first
regardless of method.  Bodies are read raw rather than through Form()
so a missing or odd Content-Type still reaches the validator.

Responses are plain text; the browser page shows the body verbatim.
"""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from app.api.dependencies import get_http_client
from app.core.config import Settings, get_settings
from app.core.errors import ClaimError
from app.core.registry import BadgeRegistry, get_registry
from app.services.claim_service import process_claim

router = APIRouter(tags=["badges"])

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


@router.api_route("/claim-badge", methods=_ALL_METHODS, response_class=PlainTextResponse)
async def claim_badge(
    request: Request,
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    settings: Annotated[Settings, Depends(get_settings)],
    registry: Annotated[BadgeRegistry, Depends(get_registry)],
) -> PlainTextResponse:
    try:
        message = await process_claim(
            method=request.method,
            origin=request.headers.get("origin"),
            referer=request.headers.get("referer"),
            body=await request.body(),
            client=client,
            settings=settings,
            registry=registry,
        )
    except ClaimError as e:
        return PlainTextResponse(e.public_message, status_code=e.status_code)
    return PlainTextResponse(message, status_code=200)
