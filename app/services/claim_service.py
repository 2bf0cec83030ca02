"""Badge claim pipeline: gatekeeper → validator → issuer → fan-out.

Stages 1-3 short-circuit by raising ClaimError; the API layer renders
the error as plain text.  Stage 4 never raises: the email and the
spreadsheet row are attempted concurrently, each failure is logged and
counted on its own, and the claim still counts as issued.

Nothing is retried or queued.  A lost email or sheet row is only
visible in the logs and in badge_side_effect_failures_total.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from app.core.config import Settings
from app.core.errors import ClaimError, NotificationError, SheetLogError
from app.core.metrics import BADGE_CLAIMS, SIDE_EFFECT_FAILURES
from app.core.registry import BadgeRegistry
from app.models.assertion import BadgeAssertion
from app.models.submission import ValidatedClaim
from app.services import badge_issuer, email_sender, sheet_logger
from app.services.claim_validator import normalize_submission, validate_submission
from app.services.gatekeeper import check_request

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Success! Check your email for your badge."


async def _send_email(
    client: httpx.AsyncClient,
    settings: Settings,
    claim: ValidatedClaim,
    assertion: BadgeAssertion,
) -> None:
    try:
        await email_sender.send_badge_email(
            client,
            settings,
            recipient=claim.submission.email,
            full_name=claim.submission.full_name,
            course_id=claim.course_id,
            assertion=assertion,
        )
    except NotificationError as e:
        SIDE_EFFECT_FAILURES.labels(task="email").inc()
        logger.error("Badge email not sent  to=%s: %s", claim.submission.email, e)
    except Exception:
        SIDE_EFFECT_FAILURES.labels(task="email").inc()
        logger.exception("Badge email not sent  to=%s", claim.submission.email)


async def _log_to_sheet(
    client: httpx.AsyncClient,
    settings: Settings,
    claim: ValidatedClaim,
    assertion: BadgeAssertion,
) -> None:
    try:
        await sheet_logger.append_claim_row(
            client,
            settings,
            full_name=claim.submission.full_name,
            email=claim.submission.email,
            assertion=assertion,
        )
    except SheetLogError as e:
        SIDE_EFFECT_FAILURES.labels(task="sheet").inc()
        logger.error("Claim not logged to sheet  email=%s: %s", claim.submission.email, e)
    except Exception:
        SIDE_EFFECT_FAILURES.labels(task="sheet").inc()
        logger.exception("Claim not logged to sheet  email=%s", claim.submission.email)


async def notify_and_log(
    client: httpx.AsyncClient,
    settings: Settings,
    claim: ValidatedClaim,
    assertion: BadgeAssertion,
) -> None:
    await asyncio.gather(
        _send_email(client, settings, claim, assertion),
        _log_to_sheet(client, settings, claim, assertion),
        return_exceptions=True,
    )


async def process_claim(
    *,
    method: str,
    origin: str | None,
    referer: str | None,
    body: bytes,
    client: httpx.AsyncClient,
    settings: Settings,
    registry: BadgeRegistry,
) -> str:
    """Run one claim end to end.  Returns the success message.

    Raises ClaimError for every outcome other than success.
    """
    try:
        check_request(
            method=method,
            origin=origin,
            referer=referer,
            body=body,
            trusted_origin=settings.trusted_origin,
        )
        claim = validate_submission(
            normalize_submission(body),
            registry,
            require_access_code=settings.require_access_code,
        )
        assertion = await badge_issuer.issue_badge(
            client,
            settings,
            badge_class_id=claim.submission.badge_class_id,
            email=claim.submission.email,
        )
    except ClaimError as e:
        BADGE_CLAIMS.labels(outcome="rejected" if e.status_code < 500 else "failed").inc()
        raise

    await notify_and_log(client, settings, claim, assertion)
    BADGE_CLAIMS.labels(outcome="issued").inc()
    return SUCCESS_MESSAGE
