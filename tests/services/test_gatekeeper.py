from __future__ import annotations

import logging

import pytest

from app.core.errors import ClaimError, ConfigurationError
from app.services.gatekeeper import check_request

TRUSTED = "https://courses.example.org"


def _check(**overrides: object) -> None:
    kwargs: dict[str, object] = {
        "method": "POST",
        "origin": TRUSTED,
        "referer": None,
        "body": b"email=a%40b.com",
        "trusted_origin": TRUSTED,
    }
    kwargs.update(overrides)
    check_request(**kwargs)  # type: ignore[arg-type]


def test_trusted_post_with_body_passes() -> None:
    _check()


def test_origin_prefix_match_allows_paths() -> None:
    _check(origin=None, referer=f"{TRUSTED}/courses/415/claim.html")


def test_lookalike_domain_is_still_a_prefix_match() -> None:
    # Prefix semantics: configure the origin with no trailing slash and
    # accept that https://courses.example.org.evil.com would also match.
    _check(origin=f"{TRUSTED}.evil.com")


@pytest.mark.parametrize("origin", [None, "", "http://courses.example.org"])
def test_untrusted_origin_is_403(origin: str | None) -> None:
    with pytest.raises(ClaimError) as exc:
        _check(origin=origin)
    assert exc.value.status_code == 403
    assert exc.value.public_message == "Forbidden"


def test_origin_is_checked_before_method() -> None:
    with pytest.raises(ClaimError) as exc:
        _check(origin="https://evil.example.com", method="GET")
    assert exc.value.status_code == 403


@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "OPTIONS"])
def test_non_post_is_405(method: str) -> None:
    with pytest.raises(ClaimError) as exc:
        _check(method=method)
    assert exc.value.status_code == 405


@pytest.mark.parametrize("body", [b"", b"  \n"])
def test_empty_body_is_400(body: bytes) -> None:
    with pytest.raises(ClaimError) as exc:
        _check(body=body)
    assert exc.value.status_code == 400
    assert exc.value.public_message == "Missing request body"


def test_unconfigured_trusted_origin_fails_closed() -> None:
    with pytest.raises(ConfigurationError):
        _check(trusted_origin="")


def test_rejection_logs_offending_origin(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING), pytest.raises(ClaimError):
        _check(origin="https://evil.example.com")
    assert "https://evil.example.com" in caplog.text
