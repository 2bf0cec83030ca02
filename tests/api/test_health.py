from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app
from tests.conftest import FakeUpstreams, make_settings, override


def test_health_ok_when_fully_configured(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {
            "badgr": "configured",
            "postmark": "configured",
            "sheets": "configured",
        },
    }


def test_health_degraded_never_leaks_values(upstreams: FakeUpstreams) -> None:
    override(upstreams, make_settings(postmark_server_token=""))
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["checks"]["postmark"] == "not_configured"
    assert "issuer-pa55word!" not in resp.text


def test_ready_when_issuer_configured(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_not_ready_without_trusted_origin(upstreams: FakeUpstreams) -> None:
    override(upstreams, make_settings(trusted_origin=""))
    assert TestClient(app).get("/ready").status_code == 503


def test_ready_ignores_best_effort_integrations(upstreams: FakeUpstreams) -> None:
    override(upstreams, make_settings(postmark_server_token="", google_sheet_id=""))
    assert TestClient(app).get("/ready").status_code == 200
