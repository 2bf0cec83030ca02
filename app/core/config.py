from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlsplit

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off")

DEFAULT_RECIPIENT_SALT = "deterministic-badge-salt"
DEFAULT_EMAIL_SENDER = "badges@example.org"


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it's easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getbool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    trusted_origin: str
    require_access_code: bool
    badgr_username: str
    badgr_password: str
    badgr_token_url: str
    badgr_api_base: str
    recipient_salt: str
    postmark_server_token: str
    postmark_api_url: str
    email_sender: str
    google_service_account_json: str
    google_sheet_id: str
    google_sheet_range: str

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def cors_origin(self) -> str:
        """Scheme and host of trusted_origin; browsers send Origin without a path."""
        parts = urlsplit(self.trusted_origin)
        if not parts.scheme or not parts.netloc:
            return self.trusted_origin
        return f"{parts.scheme}://{parts.netloc}"

    @property
    def integrations(self) -> dict[str, bool]:
        """Which outbound integrations have their secrets configured."""
        return {
            "badgr": bool(self.badgr_username and self.badgr_password),
            "postmark": bool(self.postmark_server_token),
            "sheets": bool(self.google_sheet_id and self.google_service_account_json),
        }


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getbool("LOG_JSON", False),
        port=port,
        trusted_origin=_getenv("TRUSTED_ORIGIN", ""),
        require_access_code=_getbool("REQUIRE_ACCESS_CODE", True),
        badgr_username=_getenv("BADGR_USERNAME", ""),
        badgr_password=_getenv("BADGR_PASSWORD", ""),
        badgr_token_url=_getenv("BADGR_TOKEN_URL", "https://api.badgr.io/o/token"),
        badgr_api_base=_getenv("BADGR_API_BASE", "https://api.badgr.io/v2").rstrip("/"),
        recipient_salt=_getenv("BADGE_RECIPIENT_SALT", DEFAULT_RECIPIENT_SALT),
        postmark_server_token=_getenv("POSTMARK_SERVER_TOKEN", ""),
        postmark_api_url=_getenv(
            "POSTMARK_API_URL", "https://api.postmarkapp.com/email"
        ),
        email_sender=_getenv("EMAIL_SENDER", DEFAULT_EMAIL_SENDER),
        google_service_account_json=_getenv("GOOGLE_SERVICE_ACCOUNT_JSON", ""),
        google_sheet_id=_getenv("GOOGLE_SHEET_ID", ""),
        google_sheet_range=_getenv("GOOGLE_SHEET_RANGE", "Sheet1!A:D"),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()


def get_settings() -> Settings:
    """FastAPI dependency; tests override it with their own Settings."""
    return SETTINGS
