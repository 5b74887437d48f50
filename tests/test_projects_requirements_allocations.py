from __future__ import annotations

import uuid
from datetime import date, timedelta

from fastapi.testclient import TestClient


def _setup_people(client: TestClient) -> dict[str, str]:
    developer = client.post("/api/v1/role-types", json={"name": "Developer"})
    tester = client.post("/api/v1/role-types", json={"name": "Tester"})
    assert developer.status_code == 201
    assert tester.status_code == 201

    alice = client.post(
        "/api/v1/people",
        json={"name": "Alice", "role_type_id": developer.json()["id"]},
    )
    bob = client.post(
        "/api/v1/people",
        json={"name": "Bob", "role_type_id": tester.json()["id"]},
    )
    assert alice.status_code == 201
    assert bob.status_code == 201
    return {
        "developer": developer.json()["id"],
        "tester": tester.json()["id"],
        "alice": alice.json()["id"],
        "bob": bob.json()["id"],
    }


def _create_project(client: TestClient, *, name: str = "Apollo", start: str = "2026-01-01", end: str = "2026-06-30"):
    response = client.post("/api/v1/projects", json={"name": name, "start_date": start, "end_date": end})
    assert response.status_code == 201
    return response.json()


def test_project_crud_and_status(client: TestClient) -> None:
    today = date.today()
    active = _create_project(
        client,
        name="Current",
        start=(today - timedelta(days=10)).isoformat(),
        end=(today + timedelta(days=10)).isoformat(),
    )
    future = _create_project(
        client,
        name="Future",
        start=(today + timedelta(days=30)).isoformat(),
        end=(today + timedelta(days=60)).isoformat(),
    )
    past = _create_project(
        client,
        name="Past",
        start=(today - timedelta(days=60)).isoformat(),
        end=(today - timedelta(days=30)).isoformat(),
    )
    assert active["status"] == "active"
    assert future["status"] == "not_started"
    assert past["status"] == "completed"

    listed = client.get("/api/v1/projects").json()["items"]
    assert [row["name"] for row in listed] == ["Current", "Future", "Past"]

    updated = client.patch(f"/api/v1/projects/{future['id']}", json={"description": "Next quarter"})
    assert updated.status_code == 200
    assert updated.json()["description"] == "Next quarter"
    assert updated.json()["start_date"] == future["start_date"]

    assert client.delete(f"/api/v1/projects/{past['id']}").status_code == 204
    assert client.get(f"/api/v1/projects/{past['id']}").status_code == 404


def test_project_end_must_be_after_start(client: TestClient) -> None:
    same_day = client.post(
        "/api/v1/projects",
        json={"name": "Blink", "start_date": "2026-03-01", "end_date": "2026-03-01"},
    )
    assert same_day.status_code == 422
    assert same_day.json()["detail"] == "End date must be after start date."

    project = _create_project(client)
    reversed_update = client.patch(f"/api/v1/projects/{project['id']}", json={"end_date": "2025-12-01"})
    assert reversed_update.status_code == 422


def test_requirement_crud_flow(client: TestClient) -> None:
    ids = _setup_people(client)
    project = _create_project(client)

    created = client.post(
        f"/api/v1/projects/{project['id']}/requirements",
        json={
            "role_type_id": ids["developer"],
            "required_count": 2,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    )
    assert created.status_code == 201
    body = created.json()
    assert body["role_type_name"] == "Developer"
    assert body["project_name"] == "Apollo"
    assert body["required_count"] == 2

    listed = client.get(f"/api/v1/projects/{project['id']}/requirements")
    assert listed.status_code == 200
    assert len(listed.json()["items"]) == 1

    updated = client.patch(f"/api/v1/requirements/{body['id']}", json={"required_count": 3})
    assert updated.status_code == 200
    assert updated.json()["required_count"] == 3

    assert client.delete(f"/api/v1/requirements/{body['id']}").status_code == 204
    assert client.get(f"/api/v1/requirements/{body['id']}").status_code == 404


def test_requirement_validation(client: TestClient) -> None:
    ids = _setup_people(client)
    project = _create_project(client)
    url = f"/api/v1/projects/{project['id']}/requirements"

    zero_count = client.post(
        url,
        json={
            "role_type_id": ids["developer"],
            "required_count": 0,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    )
    assert zero_count.status_code == 422

    reversed_range = client.post(
        url,
        json={
            "role_type_id": ids["developer"],
            "required_count": 1,
            "start_date": "2026-03-31",
            "end_date": "2026-01-01",
        },
    )
    assert reversed_range.status_code == 422

    unknown_project = client.post(
        f"/api/v1/projects/{uuid.uuid4()}/requirements",
        json={
            "role_type_id": ids["developer"],
            "required_count": 1,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    )
    assert unknown_project.status_code == 404


def test_allocation_crud_flow(client: TestClient) -> None:
    ids = _setup_people(client)
    project = _create_project(client)
    requirement = client.post(
        f"/api/v1/projects/{project['id']}/requirements",
        json={
            "role_type_id": ids["developer"],
            "required_count": 1,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    ).json()

    created = client.post(
        f"/api/v1/projects/{project['id']}/allocations",
        json={
            "person_id": ids["alice"],
            "role_type_id": ids["developer"],
            "requirement_id": requirement["id"],
            "allocation_percentage": 60,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    )
    assert created.status_code == 201
    allocation = created.json()
    assert allocation["person_name"] == "Alice"
    assert allocation["project_name"] == "Apollo"
    assert allocation["requirement_id"] == requirement["id"]

    by_project = client.get(f"/api/v1/projects/{project['id']}/allocations").json()["items"]
    by_person = client.get(f"/api/v1/people/{ids['alice']}/allocations").json()["items"]
    everything = client.get("/api/v1/allocations").json()["items"]
    assert [row["id"] for row in by_project] == [allocation["id"]]
    assert [row["id"] for row in by_person] == [allocation["id"]]
    assert [row["id"] for row in everything] == [allocation["id"]]

    updated = client.patch(f"/api/v1/allocations/{allocation['id']}", json={"allocation_percentage": 80})
    assert updated.status_code == 200
    assert updated.json()["allocation_percentage"] == 80

    blocked_requirement = client.delete(f"/api/v1/requirements/{requirement['id']}")
    assert blocked_requirement.status_code == 409

    blocked_project = client.delete(f"/api/v1/projects/{project['id']}")
    assert blocked_project.status_code == 409
    assert blocked_project.json()["detail"] == (
        "Cannot delete project with active allocations or resource requirements"
    )

    assert client.delete(f"/api/v1/allocations/{allocation['id']}").status_code == 204
    assert client.get(f"/api/v1/allocations/{allocation['id']}").status_code == 404


def test_allocation_percentage_bounds(client: TestClient) -> None:
    ids = _setup_people(client)
    project = _create_project(client)
    url = f"/api/v1/projects/{project['id']}/allocations"
    payload = {
        "person_id": ids["bob"],
        "role_type_id": ids["tester"],
        "start_date": "2026-01-01",
        "end_date": "2026-01-31",
    }

    assert client.post(url, json={**payload, "allocation_percentage": 0}).status_code == 422
    assert client.post(url, json={**payload, "allocation_percentage": 101}).status_code == 422
    assert client.post(url, json={**payload, "allocation_percentage": 1}).status_code == 201
    assert client.post(url, json={**payload, "allocation_percentage": 100}).status_code == 201


def test_allocation_requirement_must_belong_to_project(client: TestClient) -> None:
    ids = _setup_people(client)
    apollo = _create_project(client, name="Apollo")
    gemini = _create_project(client, name="Gemini")
    foreign_requirement = client.post(
        f"/api/v1/projects/{gemini['id']}/requirements",
        json={
            "role_type_id": ids["developer"],
            "required_count": 1,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    ).json()

    response = client.post(
        f"/api/v1/projects/{apollo['id']}/allocations",
        json={
            "person_id": ids["alice"],
            "role_type_id": ids["developer"],
            "requirement_id": foreign_requirement["id"],
            "allocation_percentage": 50,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    )
    assert response.status_code == 422


def test_allocation_requires_existing_person(client: TestClient) -> None:
    ids = _setup_people(client)
    project = _create_project(client)

    response = client.post(
        f"/api/v1/projects/{project['id']}/allocations",
        json={
            "person_id": str(uuid.uuid4()),
            "role_type_id": ids["developer"],
            "allocation_percentage": 50,
            "start_date": "2026-01-01",
            "end_date": "2026-03-31",
        },
    )
    assert response.status_code == 422
