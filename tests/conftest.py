from __future__ import annotations

import json
import sys
from collections.abc import AsyncGenerator, Iterator
from dataclasses import replace
from pathlib import Path
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.api.dependencies import get_http_client  # noqa: E402
from app.core.config import Settings, get_settings  # noqa: E402
from app.core.registry import BadgeRegistry, get_registry  # noqa: E402
from app.main import app  # noqa: E402

TRUSTED_ORIGIN = "https://courses.example.org"
BADGE_CLASS_ID = "g_AMm-vOSC6q4_oB2EMwKw"
ACCESS_CODE = "PYSJ_415_GH"
OPEN_BADGE_ID = "https://api.badgr.io/public/assertions/abc123XYZ"

ISSUER_PASSWORD = "issuer-pa55word!"
POSTMARK_TOKEN = "postmark-server-token-0000"

VALID_FORM = {
    "email": "a@b.com",
    "full_name": "Jane Doe",
    "badge_class_id": BADGE_CLASS_ID,
    "access_code": ACCESS_CODE,
}

# One RSA key for the whole session; generating it per test is slow.
_SA_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
SA_PRIVATE_PEM = _SA_KEY.private_bytes(
    encoding=serialization.Encoding.PEM,
    format=serialization.PrivateFormat.PKCS8,
    encryption_algorithm=serialization.NoEncryption(),
).decode("ascii")

SERVICE_ACCOUNT = {
    "type": "service_account",
    "client_email": "badge-logger@example-project.iam.gserviceaccount.com",
    "private_key_id": "key-1",
    "private_key": SA_PRIVATE_PEM,
    "token_uri": "https://oauth2.googleapis.com/token",
}


def make_settings(**overrides: Any) -> Settings:
    base = Settings(
        app_env="test",
        log_level="info",
        log_json=False,
        port=8000,
        trusted_origin=TRUSTED_ORIGIN,
        require_access_code=True,
        badgr_username="issuer@example.org",
        badgr_password=ISSUER_PASSWORD,
        badgr_token_url="https://api.badgr.io/o/token",
        badgr_api_base="https://api.badgr.io/v2",
        recipient_salt="test-salt",
        postmark_server_token=POSTMARK_TOKEN,
        postmark_api_url="https://api.postmarkapp.com/email",
        email_sender="badges@example.org",
        google_service_account_json=json.dumps(SERVICE_ACCOUNT),
        google_sheet_id="sheet-123",
        google_sheet_range="Sheet1!A:D",
    )
    return replace(base, **overrides)


class FakeUpstreams:
    """httpx.MockTransport handler standing in for all five remote endpoints.

    ``responses`` maps an upstream name to (status, json_body) or to an
    exception instance to raise.  Every request is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, httpx.Request]] = []
        self.responses: dict[str, tuple[int, Any] | Exception] = {
            "badgr_token": (200, {"access_token": "issuer-bearer-token"}),
            "assertion": (201, {"result": [{"openBadgeId": OPEN_BADGE_ID}]}),
            "postmark": (200, {"ErrorCode": 0, "Message": "OK"}),
            "google_token": (200, {"access_token": "sheets-bearer-token"}),
            "sheets_append": (200, {"updates": {"updatedRows": 1}}),
        }

    @staticmethod
    def route(request: httpx.Request) -> str:
        host = request.url.host
        if host == "api.badgr.io":
            if request.url.path.endswith("/assertions"):
                return "assertion"
            return "badgr_token"
        if host == "api.postmarkapp.com":
            return "postmark"
        if host == "oauth2.googleapis.com":
            return "google_token"
        if host == "sheets.googleapis.com":
            return "sheets_append"
        raise AssertionError(f"unexpected upstream call: {request.url}")

    def handle(self, request: httpx.Request) -> httpx.Response:
        name = self.route(request)
        self.calls.append((name, request))
        result = self.responses[name]
        if isinstance(result, Exception):
            raise result
        status, body = result
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def count(self, name: str | None = None) -> int:
        return sum(1 for n, _ in self.calls if name is None or n == name)

    def requests(self, name: str) -> list[httpx.Request]:
        return [r for n, r in self.calls if n == name]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture(autouse=True)
def reset_dependency_overrides() -> Iterator[None]:
    yield
    app.dependency_overrides.clear()


def override(
    upstreams: FakeUpstreams,
    settings: Settings,
    registry: BadgeRegistry | None = None,
) -> None:
    async def _client() -> AsyncGenerator[httpx.AsyncClient, None]:
        async with upstreams.client() as c:
            yield c

    app.dependency_overrides[get_http_client] = _client
    app.dependency_overrides[get_settings] = lambda: settings
    if registry is not None:
        app.dependency_overrides[get_registry] = lambda: registry


@pytest.fixture
def client(upstreams: FakeUpstreams, settings: Settings) -> TestClient:
    override(upstreams, settings)
    return TestClient(app)


def post_claim(
    client: TestClient,
    form: dict[str, str] | None = None,
    *,
    origin: str | None = TRUSTED_ORIGIN,
    referer: str | None = None,
) -> httpx.Response:
    headers = {}
    if origin is not None:
        headers["Origin"] = origin
    if referer is not None:
        headers["Referer"] = referer
    return client.post(
        "/claim-badge", data=form if form is not None else VALID_FORM, headers=headers
    )
