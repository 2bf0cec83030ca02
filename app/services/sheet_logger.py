"""Append claim records to a Google Sheet using a service account.

SERVICE ACCOUNT TOKEN EXCHANGE
-------------------------------
Google's server-to-server flow has no client secret.  Instead we sign a
short-lived JWT with the service account's RSA private key and trade it
for an OAuth access token:

  1. Build claims: iss = client_email, scope = spreadsheets,
     aud = token_uri, iat = now, exp = now + 1h
  2. Sign with RS256 (PyJWT + cryptography)
  3. POST grant_type=urn:ietf:params:oauth:grant-type:jwt-bearer
     and assertion=<jwt> to token_uri
  4. Use the returned access_token as a Bearer token on the Sheets API

Same PyJWT encode call the session and access tokens use, just a
different algorithm and a key we did not generate.

Everything here is best-effort.  Any failure is raised as SheetLogError
and the fan-out reduces it to a log line.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta
from urllib.parse import quote

import httpx
import jwt

from app.core.config import Settings
from app.core.errors import SheetLogError
from app.models.assertion import BadgeAssertion

logger = logging.getLogger(__name__)

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_TTL = timedelta(hours=1)


def parse_service_account(raw: str) -> dict[str, str]:
    """Decode the GOOGLE_SERVICE_ACCOUNT_JSON blob and check required keys."""
    if not raw:
        raise SheetLogError("GOOGLE_SERVICE_ACCOUNT_JSON is not configured")
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SheetLogError(f"service account JSON is invalid: {e.msg}") from None
    if not isinstance(info, dict):
        raise SheetLogError("service account JSON must be an object")
    for key in ("client_email", "private_key"):
        if not info.get(key):
            raise SheetLogError(f"service account JSON is missing {key}")
        if not isinstance(info[key], str):
            raise SheetLogError(f"service account {key} must be a string")
    token_uri = info.get("token_uri")
    if token_uri is not None and not isinstance(token_uri, str):
        raise SheetLogError("service account token_uri must be a string")
    return info


def build_assertion(info: dict[str, str], *, now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    claims = {
        "iss": info["client_email"],
        "scope": SHEETS_SCOPE,
        "aud": info.get("token_uri") or DEFAULT_TOKEN_URI,
        "iat": now,
        "exp": now + ASSERTION_TTL,
    }
    headers = {"kid": info["private_key_id"]} if info.get("private_key_id") else None
    try:
        return jwt.encode(claims, info["private_key"], algorithm="RS256", headers=headers)
    except (ValueError, TypeError, jwt.PyJWTError) as e:
        # cryptography raises ValueError for an unparseable PEM
        raise SheetLogError(f"cannot sign service account assertion: {e}") from None


async def fetch_sheets_token(client: httpx.AsyncClient, info: dict[str, str]) -> str:
    token_uri = info.get("token_uri") or DEFAULT_TOKEN_URI
    try:
        resp = await client.post(
            token_uri,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": build_assertion(info)},
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise SheetLogError(f"token exchange failed: {e}") from e

    if not resp.is_success:
        raise SheetLogError(
            f"token exchange returned {resp.status_code}: {resp.text}"
        )
    try:
        token = resp.json().get("access_token")
    except (ValueError, AttributeError):
        token = None
    if not token:
        raise SheetLogError("token exchange response has no access_token")
    return token


def build_row(
    *, full_name: str, email: str, assertion: BadgeAssertion, timestamp: str
) -> list[str]:
    return [full_name, email, assertion.open_badge_id, timestamp]


async def append_claim_row(
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    full_name: str,
    email: str,
    assertion: BadgeAssertion,
) -> None:
    """Append one row to the configured sheet.  Raises SheetLogError."""
    if not settings.google_sheet_id:
        raise SheetLogError("GOOGLE_SHEET_ID is not configured")
    info = parse_service_account(settings.google_service_account_json)
    token = await fetch_sheets_token(client, info)

    row = build_row(
        full_name=full_name,
        email=email,
        assertion=assertion,
        timestamp=datetime.now(UTC).isoformat(),
    )
    url = (
        f"{SHEETS_API_BASE}/{settings.google_sheet_id}"
        f"/values/{quote(settings.google_sheet_range, safe='')}:append"
    )
    try:
        resp = await client.post(
            url,
            params={"valueInputOption": "RAW"},
            json={"values": [row]},
            headers={"Authorization": f"Bearer {token}"},
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise SheetLogError(f"append request failed: {e}") from e

    if not resp.is_success:
        raise SheetLogError(f"append returned {resp.status_code}: {resp.text}")

    logger.info("Claim logged to sheet  email=%s", email)
