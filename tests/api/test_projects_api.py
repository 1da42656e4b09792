from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from tests.conftest import auth_headers


def _curriculum(client: TestClient, headers: dict, name: str = "Path") -> str:
    resp = client.post("/v1/curricula", json={"name": name}, headers=headers)
    assert resp.status_code == 201
    return resp.json()["id"]


def _project(
    client: TestClient,
    headers: dict,
    curriculum_id: str,
    project_type: str,
    order: int,
    prerequisites: list[str] | None = None,
):
    return client.post(
        f"/v1/curricula/{curriculum_id}/projects",
        json={
            "project_type": project_type,
            "position_order": order,
            "name": f"{project_type} {order}",
            "prerequisites": prerequisites or [],
        },
        headers=headers,
    )


def test_create_projects_and_list(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    r1 = _project(client, headers, cid, "root", 1)
    r2 = _project(client, headers, cid, "root", 2, ["R1"])
    assert r1.status_code == 201
    assert r1.json()["identifier"] == "R1"
    assert r2.json()["identifier"] == "R2"
    assert r2.json()["prerequisites"] == ["R1"]

    listed = client.get(f"/v1/curricula/{cid}/projects", headers=headers)
    assert [p["identifier"] for p in listed.json()] == ["R1", "R2"]


def test_duplicate_singleton_is_409(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    assert _project(client, headers, cid, "rootTest", 1).json()["identifier"] == "RT"

    resp = _project(client, headers, cid, "rootTest", 2)
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "duplicate_singleton"
    assert error["retryable"] is False
    assert error["identifier"] == "RT"


def test_invalid_type_is_422(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    resp = _project(client, headers, cid, "trunk", 1)
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "invalid_project_type"


def test_out_of_order_prerequisite(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    _project(client, headers, cid, "root", 1)

    # Same position as the prerequisite is not "earlier"
    resp = _project(client, headers, cid, "base", 1, ["R1"])
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "out_of_order_prerequisite"


def test_unknown_prerequisite(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    resp = _project(client, headers, cid, "root", 1, ["Z9"])
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "unknown_prerequisite"


def test_validate_prerequisites_endpoint(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    _project(client, headers, cid, "root", 1)
    url = f"/v1/curricula/{cid}/projects/validate-prerequisites"

    ok = client.post(
        url, json={"prerequisites": ["R1"], "position_order": 2}, headers=headers
    )
    assert ok.status_code == 200
    assert ok.json() == {"valid": True}

    bad = client.post(
        url, json={"prerequisites": ["R1"], "position_order": 1}, headers=headers
    )
    assert bad.status_code == 422
    assert bad.json()["error"]["code"] == "out_of_order_prerequisite"


def test_delete_with_dependents_is_409(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    r1 = _project(client, headers, cid, "root", 1).json()
    r2 = _project(client, headers, cid, "root", 2, ["R1"]).json()

    resp = client.delete(f"/v1/projects/{r1['id']}", headers=headers)
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "has_dependents"
    assert error["dependent_count"] == 1

    client.patch(f"/v1/projects/{r2['id']}", json={"prerequisites": []}, headers=headers)
    assert client.delete(f"/v1/projects/{r1['id']}", headers=headers).status_code == 204
    assert client.get(f"/v1/projects/{r1['id']}", headers=headers).status_code == 404


def test_reorder_endpoint(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    r1 = _project(client, headers, cid, "root", 1).json()
    b1 = _project(client, headers, cid, "base", 2).json()

    resp = client.put(
        f"/v1/curricula/{cid}/projects/order",
        json={"project_ids": [b1["id"], r1["id"]]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert [(p["identifier"], p["position_order"]) for p in resp.json()] == [
        ("B1", 1),
        ("R1", 2),
    ]


def test_can_start_endpoint(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    r1 = _project(client, headers, cid, "root", 1).json()
    r2 = _project(client, headers, cid, "root", 2, ["R1"]).json()

    resp = client.get(f"/v1/projects/{r2['id']}/can-start", headers=headers)
    assert resp.json() == {"can_start": False, "missing_prerequisites": ["R1"]}

    client.put(
        f"/v1/projects/{r1['id']}/progress", json={"status": "completed"}, headers=headers
    )
    resp = client.get(f"/v1/projects/{r2['id']}/can-start", headers=headers)
    assert resp.json() == {"can_start": True, "missing_prerequisites": []}


def test_other_learner_sees_404(client: TestClient, headers: dict) -> None:
    cid = _curriculum(client, headers)
    r1 = _project(client, headers, cid, "root", 1).json()
    stranger = auth_headers(uuid.uuid4())

    resp = client.get(f"/v1/curricula/{cid}", headers=stranger)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "curriculum_not_found"

    resp = client.get(f"/v1/projects/{r1['id']}", headers=stranger)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "project_not_found"

    resp = _project(client, stranger, cid, "root", 2)
    assert resp.status_code == 404
