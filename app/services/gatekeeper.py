"""Transport-level preconditions checked before any form field is read.

Order matters: origin first, then method, then body.  A request from an
untrusted page is refused as 403 even if it also used the wrong verb.

The origin check is a prefix match on the Origin header, falling back to
Referer (some browsers omit Origin on same-origin form posts).
"""

from __future__ import annotations

import logging

from app.core.errors import ClaimError, ConfigurationError

logger = logging.getLogger(__name__)


def check_request(
    *,
    method: str,
    origin: str | None,
    referer: str | None,
    body: bytes,
    trusted_origin: str,
) -> None:
    """Raise ClaimError unless the request may proceed to validation."""
    if not trusted_origin:
        # An empty prefix would match everything
        logger.error("TRUSTED_ORIGIN is not configured; refusing request")
        raise ConfigurationError()

    source = origin or referer
    if not source or not source.startswith(trusted_origin):
        logger.warning("Forbidden origin  origin=%r referer=%r", origin, referer)
        raise ClaimError(403, "Forbidden")

    if method.upper() != "POST":
        logger.warning("Method not allowed  method=%s", method)
        raise ClaimError(405, "Method Not Allowed")

    if not body or not body.strip():
        logger.warning("Missing request body  content_length=%d", len(body or b""))
        raise ClaimError(400, "Missing request body")
