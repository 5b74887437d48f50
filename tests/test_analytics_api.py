from __future__ import annotations

import csv
import io
import uuid
from datetime import date, timedelta

from fastapi.testclient import TestClient
from openpyxl import load_workbook


def _seed(client: TestClient) -> dict[str, str]:
    """Two developers and a tester across two projects; Apollo has one developer requirement."""

    developer = client.post("/api/v1/role-types", json={"name": "Developer"}).json()["id"]
    tester = client.post("/api/v1/role-types", json={"name": "Tester"}).json()["id"]
    alice = client.post("/api/v1/people", json={"name": "Alice", "role_type_id": developer}).json()["id"]
    bob = client.post("/api/v1/people", json={"name": "Bob", "role_type_id": developer}).json()["id"]
    carol = client.post("/api/v1/people", json={"name": "Carol", "role_type_id": tester}).json()["id"]

    apollo = client.post(
        "/api/v1/projects",
        json={"name": "Apollo", "start_date": "2026-01-01", "end_date": "2026-06-30"},
    ).json()["id"]
    gemini = client.post(
        "/api/v1/projects",
        json={"name": "Gemini", "start_date": "2026-01-01", "end_date": "2026-12-31"},
    ).json()["id"]

    requirement = client.post(
        f"/api/v1/projects/{apollo}/requirements",
        json={
            "role_type_id": developer,
            "required_count": 2,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    ).json()["id"]

    def allocate(project_id: str, person_id: str, role_type_id: str, pct: int, start: str, end: str, **extra):
        response = client.post(
            f"/api/v1/projects/{project_id}/allocations",
            json={
                "person_id": person_id,
                "role_type_id": role_type_id,
                "allocation_percentage": pct,
                "start_date": start,
                "end_date": end,
                **extra,
            },
        )
        assert response.status_code == 201
        return response.json()["id"]

    allocate(apollo, alice, developer, 80, "2026-01-01", "2026-03-31", requirement_id=requirement)
    allocate(gemini, alice, developer, 40, "2026-03-01", "2026-04-30")
    allocate(apollo, bob, developer, 50, "2026-02-01", "2026-02-28")

    return {
        "developer": developer,
        "tester": tester,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "apollo": apollo,
        "gemini": gemini,
        "requirement": requirement,
    }


def test_project_gaps(client: TestClient) -> None:
    ids = _seed(client)

    response = client.get(f"/api/v1/projects/{ids['apollo']}/gaps")
    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["requirement_id"] == ids["requirement"]
    assert items[0]["role_type_name"] == "Developer"
    assert items[0]["allocated_count"] == "1.30"
    assert items[0]["gap_count"] == "0.70"

    assert client.get(f"/api/v1/projects/{uuid.uuid4()}/gaps").status_code == 404


def test_over_allocations(client: TestClient) -> None:
    ids = _seed(client)

    response = client.get("/api/v1/analytics/over-allocations")
    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["person_id"] == ids["alice"]
    assert items[0]["person_name"] == "Alice"
    assert items[0]["total_allocation"] == 120
    assert {row["project_name"] for row in items[0]["conflicting_allocations"]} == {"Apollo", "Gemini"}


def test_person_utilization_window(client: TestClient) -> None:
    ids = _seed(client)

    march = client.get(
        f"/api/v1/people/{ids['alice']}/utilization",
        params={"start_date": "2026-03-15", "end_date": "2026-03-15"},
    )
    assert march.status_code == 200
    assert march.json()["utilization_percentage"] == 100

    april = client.get(
        f"/api/v1/people/{ids['alice']}/utilization",
        params={"start_date": "2026-04-15", "end_date": "2026-04-20"},
    )
    assert april.json()["utilization_percentage"] == 40

    reversed_window = client.get(
        f"/api/v1/people/{ids['alice']}/utilization",
        params={"start_date": "2026-04-20", "end_date": "2026-04-15"},
    )
    assert reversed_window.status_code == 422


def test_utilization_report(client: TestClient) -> None:
    _seed(client)

    response = client.get(
        "/api/v1/analytics/utilization",
        params={"start_date": "2026-02-10", "end_date": "2026-02-10"},
    )
    assert response.status_code == 200
    body = response.json()
    assert [(row["person_name"], row["utilization_percentage"]) for row in body["items"]] == [
        ("Alice", 80),
        ("Bob", 50),
        ("Carol", 0),
    ]
    assert body["average_utilization"] == "43.33"


def test_allocation_candidates(client: TestClient) -> None:
    ids = _seed(client)

    response = client.get(
        f"/api/v1/projects/{ids['apollo']}/allocation-candidates",
        params={"role_type_id": ids["developer"], "start_date": "2026-03-10", "end_date": "2026-03-10"},
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert [(row["name"], row["match_label"], row["current_utilization"]) for row in items] == [
        ("Bob", "Perfect Match", 0),
        ("Carol", "Available", 0),
        ("Alice", "Busy - Same Role", 100),
    ]


def test_project_timeline(client: TestClient) -> None:
    ids = _seed(client)

    response = client.get(f"/api/v1/projects/{ids['apollo']}/timeline")
    assert response.status_code == 200
    body = response.json()
    assert body["config"] == {"start_date": "2026-01-01", "end_date": "2026-06-30", "granularity": "month"}
    assert len(body["columns"]) == 6
    assert body["timeline_width"] == 6 * 133
    assert len(body["requirements"]) == 1

    block = body["requirements"][0]
    assert block["height"] == 80
    assert body["total_height"] == 80 + 32
    assert block["slots"][0]["allocation"]["person_name"] == "Alice"
    assert block["slots"][1]["allocation"] is None


def test_person_timeline(client: TestClient) -> None:
    ids = _seed(client)

    response = client.get(
        f"/api/v1/people/{ids['alice']}/timeline",
        params={"start_date": "2026-01-01", "end_date": "2026-06-30", "granularity": "week"},
    )
    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [[item["title"] for item in row] for row in rows] == [["Apollo"], ["Gemini"]]
    assert rows[0][0]["band"] == "healthy"
    assert rows[1][0]["band"] == "under_allocated"


def test_timeline_columns_navigation(client: TestClient) -> None:
    response = client.get(
        "/api/v1/timeline/columns",
        params={"start_date": "2026-01-01", "end_date": "2026-01-31", "shift": "next"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["config"]["start_date"] == "2026-01-31"
    assert body["config"]["end_date"] == "2026-03-02"
    assert [column["label"] for column in body["columns"]] == ["Jan 2026", "Feb 2026", "Mar 2026"]

    default_window = client.get("/api/v1/timeline/columns")
    assert default_window.status_code == 200
    assert len(default_window.json()["columns"]) == 6

    invalid = client.get("/api/v1/timeline/columns", params={"start_date": "2026-02-01", "end_date": "2026-01-01"})
    assert invalid.status_code == 422


def test_dashboard(client: TestClient) -> None:
    today = date.today()
    developer = client.post("/api/v1/role-types", json={"name": "Developer"}).json()["id"]
    client.post("/api/v1/role-types", json={"name": "Tester"})
    worker = client.post("/api/v1/people", json={"name": "Worker", "role_type_id": developer}).json()["id"]
    client.post("/api/v1/people", json={"name": "Idle", "role_type_id": developer})

    current = client.post(
        "/api/v1/projects",
        json={
            "name": "Current",
            "start_date": (today - timedelta(days=5)).isoformat(),
            "end_date": (today + timedelta(days=5)).isoformat(),
        },
    ).json()["id"]
    client.post(
        "/api/v1/projects",
        json={
            "name": "Later",
            "start_date": (today + timedelta(days=50)).isoformat(),
            "end_date": (today + timedelta(days=90)).isoformat(),
        },
    )
    client.post(
        f"/api/v1/projects/{current}/allocations",
        json={
            "person_id": worker,
            "role_type_id": developer,
            "allocation_percentage": 75,
            "start_date": today.isoformat(),
            "end_date": (today + timedelta(days=5)).isoformat(),
        },
    )

    response = client.get("/api/v1/dashboard")
    assert response.status_code == 200
    body = response.json()
    assert body["active_projects"] == 1
    assert body["total_people"] == 2
    assert body["role_types"] == 2
    assert body["overall_utilization"] == "37.50"
    assert {row["name"] for row in body["recent_projects"]} == {"Current", "Later"}


def test_export_utilization_csv(client: TestClient) -> None:
    _seed(client)

    response = client.get(
        "/api/v1/exports/utilization",
        params={"format": "csv", "start_date": "2026-02-10", "end_date": "2026-02-10"},
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="utilization.csv"' in response.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [(row["person_name"], row["utilization_percentage"]) for row in rows] == [
        ("Alice", "80"),
        ("Bob", "50"),
        ("Carol", "0"),
    ]


def test_export_gaps_xlsx(client: TestClient) -> None:
    ids = _seed(client)

    response = client.get("/api/v1/exports/gaps", params={"format": "xlsx", "project_id": ids["apollo"]})
    assert response.status_code == 200

    workbook = load_workbook(io.BytesIO(response.content))
    sheet = workbook["report"]
    header = [cell.value for cell in sheet[1]]
    assert "gap_count" in header
    assert sheet.max_row == 2


def test_export_rejections(client: TestClient) -> None:
    assert client.get("/api/v1/exports/gaps", params={"format": "csv"}).status_code == 422
    assert client.get("/api/v1/exports/utilization", params={"format": "pdf"}).status_code == 422
    assert client.get("/api/v1/exports/unknown", params={"format": "csv"}).status_code == 404
