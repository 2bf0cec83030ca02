"""Assert that credentials and bearer tokens never appear in log output
or in response bodies, on both the success and the failure paths."""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from tests.conftest import (
    ISSUER_PASSWORD,
    POSTMARK_TOKEN,
    FakeUpstreams,
    post_claim,
)

_SECRETS = (
    ISSUER_PASSWORD,
    POSTMARK_TOKEN,
    "issuer-bearer-token",
    "sheets-bearer-token",
    "BEGIN PRIVATE KEY",
)


def _assert_clean(text: str) -> None:
    for secret in _SECRETS:
        assert secret not in text


def test_successful_claim_logs_no_secrets(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG):
        resp = post_claim(client)
    assert resp.status_code == 200
    _assert_clean(caplog.text)


def test_failed_side_effects_log_no_secrets(
    client: TestClient,
    upstreams: FakeUpstreams,
    caplog: pytest.LogCaptureFixture,
) -> None:
    upstreams.responses["postmark"] = (401, {"ErrorCode": 10, "Message": "Bad token"})
    upstreams.responses["sheets_append"] = (403, {"error": "denied"})
    with caplog.at_level(logging.DEBUG):
        resp = post_claim(client)
    assert resp.status_code == 200
    assert "Badge email not sent" in caplog.text
    assert "Claim not logged to sheet" in caplog.text
    _assert_clean(caplog.text)


def test_issuer_failure_response_hides_upstream_body(
    client: TestClient,
    upstreams: FakeUpstreams,
    caplog: pytest.LogCaptureFixture,
) -> None:
    upstreams.responses["badgr_token"] = (401, {"error": "invalid_grant"})
    with caplog.at_level(logging.DEBUG):
        resp = post_claim(client)
    assert resp.status_code == 500
    assert "invalid_grant" not in resp.text
    # The log keeps the upstream body for diagnosis
    assert "invalid_grant" in caplog.text
    _assert_clean(caplog.text)
    _assert_clean(resp.text)
