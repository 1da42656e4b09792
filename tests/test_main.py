from __future__ import annotations

from fastapi.testclient import TestClient

from tracker.main import app


def test_all_routers_mounted() -> None:
    paths = {route.path for route in app.routes}
    for expected in (
        "/health",
        "/ready",
        "/metrics",
        "/v1/curricula",
        "/v1/curricula/{curriculum_id}/projects",
        "/v1/projects/{project_id}/progress",
        "/v1/projects/{project_id}/time-entries",
        "/v1/notes/{note_id}",
        "/v1/analytics",
    ):
        assert expected in paths


def test_error_envelope_shape(client: TestClient, headers: dict) -> None:
    resp = client.get(
        "/v1/projects/00000000-0000-0000-0000-000000000000", headers=headers
    )
    assert resp.status_code == 404
    error = resp.json()["error"]
    assert set(error) >= {"code", "message", "retryable"}
    assert error["code"] == "project_not_found"


def test_malformed_id_is_rejected_before_the_service(
    client: TestClient, headers: dict
) -> None:
    resp = client.get("/v1/projects/not-a-uuid", headers=headers)
    assert resp.status_code == 422
