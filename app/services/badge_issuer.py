"""Badge issuer client: password-grant token, then assertion creation.

Both calls must succeed for a claim to succeed; every failure here is
raised as BadgeIssuanceError (500) and aborts the request before any
email or spreadsheet work.

RECIPIENT HASHING
------------------
The recipient is never sent in clear.  Open Badges identifies a hashed
recipient as ``sha256$`` + hex(sha256(email + salt)) together with the
salt, so anyone holding the email can verify the badge while the
assertion itself does not disclose it.

The access token lives only for the duration of one claim.  It is not
cached between requests.
"""

from __future__ import annotations

import hashlib
import logging

import httpx

from app.core.config import Settings
from app.core.errors import BadgeIssuanceError, ConfigurationError
from app.models.assertion import BadgeAssertion

logger = logging.getLogger(__name__)


def hash_recipient(email: str, salt: str) -> str:
    digest = hashlib.sha256((email + salt).encode("utf-8")).hexdigest()
    return f"sha256${digest}"


def _status_text(resp: httpx.Response) -> str:
    return f"{resp.status_code} {resp.reason_phrase}".strip()


async def fetch_access_token(client: httpx.AsyncClient, settings: Settings) -> str:
    """Exchange the stored username/password for a bearer token."""
    if not settings.badgr_username or not settings.badgr_password:
        logger.error("Badge issuer credentials are not configured")
        raise ConfigurationError()

    try:
        resp = await client.post(
            settings.badgr_token_url,
            data={
                "username": settings.badgr_username,
                "password": settings.badgr_password,
            },
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error("Token request failed: %s", e)
        raise BadgeIssuanceError("Failed to obtain access token") from None

    if not resp.is_success:
        logger.error(
            "Token request rejected  status=%d body=%s", resp.status_code, resp.text
        )
        raise BadgeIssuanceError(
            f"Failed to obtain access token: {_status_text(resp)}"
        )

    try:
        token = resp.json().get("access_token")
    except (ValueError, AttributeError):
        token = None
    if not token:
        logger.error("Token response has no access_token  body=%s", resp.text)
        raise BadgeIssuanceError("Failed to obtain access token")

    return token


async def create_assertion(
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    token: str,
    badge_class_id: str,
    email: str,
) -> BadgeAssertion:
    """Ask the issuer to award *badge_class_id* to *email*."""
    url = f"{settings.badgr_api_base}/badgeclasses/{badge_class_id}/assertions"
    payload = {
        "recipient": {
            "identity": hash_recipient(email, settings.recipient_salt),
            "hashed": True,
            "type": "email",
            "salt": settings.recipient_salt,
        }
    }

    try:
        resp = await client.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error("Assertion request failed: %s", e)
        raise BadgeIssuanceError("Failed to create badge") from None

    if not resp.is_success:
        logger.error(
            "Assertion request rejected  badge_class_id=%s status=%d body=%s",
            badge_class_id,
            resp.status_code,
            resp.text,
        )
        raise BadgeIssuanceError(f"Failed to create badge: {_status_text(resp)}")

    try:
        results = resp.json().get("result")
    except (ValueError, AttributeError):
        results = None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        logger.error("Unexpected assertion response format  body=%s", resp.text)
        raise BadgeIssuanceError("Failed to create badge")

    open_badge_id = results[0].get("openBadgeId")
    if not open_badge_id:
        logger.error("Assertion response missing openBadgeId  body=%s", resp.text)
        raise BadgeIssuanceError("Failed to create badge")

    return BadgeAssertion(
        open_badge_id=open_badge_id,
        badge_class_id=badge_class_id,
        recipient_email=email,
    )


async def issue_badge(
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    badge_class_id: str,
    email: str,
) -> BadgeAssertion:
    token = await fetch_access_token(client, settings)
    assertion = await create_assertion(
        client, settings, token=token, badge_class_id=badge_class_id, email=email
    )
    logger.info(
        "Badge issued  badge_class_id=%s email=%s open_badge_id=%s",
        badge_class_id,
        email,
        assertion.open_badge_id,
    )
    return assertion
