from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.claim import router as claim_router
from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.core.registry import REGISTRY
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


# only app setup + router registration

app = FastAPI(
    title="badge-claim-service",
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

if SETTINGS.trusted_origin:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[SETTINGS.cors_origin],
        allow_methods=["POST"],
        allow_headers=["Content-Type"],
    )

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(claim_router)
app.include_router(health_router)

logger.info(
    "badge-claim-service started  env=%s log_level=%s port=%d "
    "access_code_required=%s badge_classes=%d",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.require_access_code,
    len(REGISTRY.courses),
)
if not SETTINGS.trusted_origin:
    logger.warning("TRUSTED_ORIGIN is not set; every claim will be refused")
