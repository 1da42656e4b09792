from __future__ import annotations

from fastapi.testclient import TestClient


def test_empty_account_gets_zeroed_stats(client: TestClient, headers: dict) -> None:
    resp = client.get("/v1/analytics", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_curricula"] == 0
    assert body["completion_rate"] == 0.0
    assert body["weekly_time_spent"] == [0] * 8
    assert body["recent_activity"] == []
    assert body["projects_by_type"]["flowerMilestone"] == 0
    assert len(body["projects_by_type"]) == 8


def test_overall_analytics(client: TestClient, headers: dict) -> None:
    cid = client.post("/v1/curricula", json={"name": "Path"}, headers=headers).json()["id"]
    ids = [
        client.post(
            f"/v1/curricula/{cid}/projects",
            json={"project_type": t, "position_order": i, "name": t},
            headers=headers,
        ).json()["id"]
        for i, t in enumerate(["root", "root", "base"], start=1)
    ]
    client.put(f"/v1/projects/{ids[0]}/progress", json={"status": "completed"}, headers=headers)
    client.post(f"/v1/projects/{ids[2]}/time-entries", json={"minutes": 90}, headers=headers)
    client.post(f"/v1/projects/{ids[2]}/notes", json={"content": "hm"}, headers=headers)

    body = client.get("/v1/analytics", headers=headers).json()
    assert body["total_projects"] == 3
    assert body["completed_projects"] == 1
    assert body["total_time_minutes"] == 90
    assert body["total_time_hours"] == 1.5
    assert body["total_notes"] == 1
    assert body["completion_rate"] == 33.33
    assert body["projects_by_type"]["root"] == 2
    assert body["completion_by_type"]["root"] == 50.0
    assert body["weekly_time_spent"][-1] == 90
    assert [e["minutes"] for e in body["recent_activity"]] == [90]


def test_curriculum_analytics(client: TestClient, headers: dict) -> None:
    cid = client.post("/v1/curricula", json={"name": "Path"}, headers=headers).json()["id"]
    pid = client.post(
        f"/v1/curricula/{cid}/projects",
        json={"project_type": "root", "position_order": 1, "name": "Types"},
        headers=headers,
    ).json()["id"]
    for minutes in (30, 45, 20):
        client.post(
            f"/v1/projects/{pid}/time-entries", json={"minutes": minutes}, headers=headers
        )

    resp = client.get(f"/v1/curricula/{cid}/analytics", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert {k: body[k] for k in body if not k.endswith(("_breakdown", "_average"))} == {
        "curriculum_id": cid,
        "total_projects": 1,
        "completed_projects": 0,
        "total_time_spent": 95,
        "completion_rate": 0.0,
    }
    assert body["project_breakdown"] == {"R1": 95}
    # all three were logged "now", so they share one UTC day
    assert list(body["daily_breakdown"].values()) == [95]
    assert body["weekly_average"] == 95.0


def test_curriculum_analytics_empty(client: TestClient, headers: dict) -> None:
    cid = client.post("/v1/curricula", json={"name": "Path"}, headers=headers).json()["id"]
    body = client.get(f"/v1/curricula/{cid}/analytics", headers=headers).json()
    assert body["total_time_spent"] == 0
    assert body["daily_breakdown"] == {}
    assert body["project_breakdown"] == {}
    assert body["weekly_average"] == 0.0
