"""Transactional email via the Postmark HTTP API.

Best-effort: callers catch NotificationError and move on.  The badge is
already issued by the time this runs, and the issuer's own
notification (plus the badge URL shown in logs) is the fallback.
"""

from __future__ import annotations

import html
import logging

import httpx

from app.core.config import Settings
from app.core.errors import NotificationError
from app.models.assertion import BadgeAssertion

logger = logging.getLogger(__name__)


def build_message(
    settings: Settings,
    *,
    recipient: str,
    full_name: str,
    course_id: str,
    assertion: BadgeAssertion,
) -> dict[str, str]:
    greeting = f"Hi {full_name}," if full_name else "Hi,"
    url = assertion.open_badge_id
    text_body = (
        f"{greeting}\n\n"
        f"Congratulations on completing {course_id}! Your badge is ready:\n"
        f"{url}\n\n"
        "You can add it to your backpack or share the link anywhere."
    )
    html_body = (
        f"<p>{html.escape(greeting)}</p>"
        f"<p>Congratulations on completing {html.escape(course_id)}! "
        "Your badge is ready:</p>"
        f'<p><a href="{html.escape(url, quote=True)}">{html.escape(url)}</a></p>'
        "<p>You can add it to your backpack or share the link anywhere.</p>"
    )
    return {
        "From": settings.email_sender,
        "To": recipient,
        "Subject": f"Your {course_id} badge",
        "TextBody": text_body,
        "HtmlBody": html_body,
        "MessageStream": "outbound",
    }


async def send_badge_email(
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    recipient: str,
    full_name: str,
    course_id: str,
    assertion: BadgeAssertion,
) -> None:
    """Send the badge link to *recipient*.  Raises NotificationError."""
    if not settings.postmark_server_token:
        raise NotificationError("POSTMARK_SERVER_TOKEN is not configured")

    message = build_message(
        settings,
        recipient=recipient,
        full_name=full_name,
        course_id=course_id,
        assertion=assertion,
    )
    try:
        resp = await client.post(
            settings.postmark_api_url,
            json=message,
            headers={
                "Accept": "application/json",
                "X-Postmark-Server-Token": settings.postmark_server_token,
            },
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise NotificationError(f"email request failed: {e}") from e

    if not resp.is_success:
        raise NotificationError(
            f"email provider returned {resp.status_code}: {resp.text}"
        )

    logger.info("Badge email sent  to=%s", recipient)
