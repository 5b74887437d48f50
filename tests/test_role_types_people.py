from __future__ import annotations

import uuid

from fastapi.testclient import TestClient


def _create_role_type(client: TestClient, name: str) -> str:
    response = client.post("/api/v1/role-types", json={"name": name, "description": f"{name} role"})
    assert response.status_code == 201
    return response.json()["id"]


def _create_person(client: TestClient, *, name: str, role_type_id: str, email: str | None = None) -> str:
    response = client.post(
        "/api/v1/people",
        json={"name": name, "email": email, "role_type_id": role_type_id},
    )
    assert response.status_code == 201
    return response.json()["id"]


def test_role_type_crud_flow(client: TestClient) -> None:
    role_type_id = _create_role_type(client, "Developer")
    _create_role_type(client, "Analyst")

    listed = client.get("/api/v1/role-types")
    assert listed.status_code == 200
    assert [row["name"] for row in listed.json()["items"]] == ["Analyst", "Developer"]

    updated = client.patch(f"/api/v1/role-types/{role_type_id}", json={"description": "Writes code"})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Developer"
    assert updated.json()["description"] == "Writes code"

    fetched = client.get(f"/api/v1/role-types/{role_type_id}")
    assert fetched.status_code == 200
    assert fetched.json()["description"] == "Writes code"

    deleted = client.delete(f"/api/v1/role-types/{role_type_id}")
    assert deleted.status_code == 204
    assert client.get(f"/api/v1/role-types/{role_type_id}").status_code == 404


def test_role_type_name_must_be_unique(client: TestClient) -> None:
    _create_role_type(client, "Developer")

    duplicate = client.post("/api/v1/role-types", json={"name": "Developer"})
    assert duplicate.status_code == 409

    # The session stays usable after the rejected insert.
    assert client.get("/api/v1/role-types").json()["items"][0]["name"] == "Developer"


def test_role_type_in_use_cannot_be_deleted(client: TestClient) -> None:
    role_type_id = _create_role_type(client, "Designer")
    _create_person(client, name="Dana", role_type_id=role_type_id)

    response = client.delete(f"/api/v1/role-types/{role_type_id}")
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete role type that is currently in use"


def test_role_type_used_only_by_allocation_cannot_be_deleted(client: TestClient) -> None:
    developer = _create_role_type(client, "Developer")
    qa = _create_role_type(client, "QA")
    person_id = _create_person(client, name="Dev", role_type_id=developer)
    project = client.post(
        "/api/v1/projects",
        json={"name": "Apollo", "start_date": "2026-01-01", "end_date": "2026-03-31"},
    )
    assert project.status_code == 201
    allocation = client.post(
        f"/api/v1/projects/{project.json()['id']}/allocations",
        json={
            "person_id": person_id,
            "role_type_id": qa,
            "allocation_percentage": 40,
            "start_date": "2026-01-01",
            "end_date": "2026-01-31",
        },
    )
    assert allocation.status_code == 201

    response = client.delete(f"/api/v1/role-types/{qa}")
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete role type that is currently in use"
    assert client.get(f"/api/v1/role-types/{qa}").status_code == 200


def test_role_type_payload_validation(client: TestClient) -> None:
    assert client.post("/api/v1/role-types", json={"name": ""}).status_code == 422
    assert client.post("/api/v1/role-types", json={"name": "x" * 101}).status_code == 422


def test_blank_names_are_rejected_after_trimming(client: TestClient) -> None:
    blank_role = client.post("/api/v1/role-types", json={"name": "   "})
    assert blank_role.status_code == 422
    assert blank_role.json()["detail"] == "name must not be blank."

    role_type_id = _create_role_type(client, "Developer")
    assert client.patch(f"/api/v1/role-types/{role_type_id}", json={"name": "  "}).status_code == 422
    assert client.get(f"/api/v1/role-types/{role_type_id}").json()["name"] == "Developer"

    blank_person = client.post("/api/v1/people", json={"name": " \t ", "role_type_id": role_type_id})
    assert blank_person.status_code == 422
    person_id = _create_person(client, name="Robin", role_type_id=role_type_id)
    assert client.patch(f"/api/v1/people/{person_id}", json={"name": "   "}).status_code == 422
    assert client.get(f"/api/v1/people/{person_id}").json()["name"] == "Robin"

    blank_project = client.post(
        "/api/v1/projects",
        json={"name": "   ", "start_date": "2026-01-01", "end_date": "2026-03-31"},
    )
    assert blank_project.status_code == 422

    blank_leave = client.post(
        "/api/v1/leave-periods",
        json={"person_id": person_id, "start_date": "2026-04-01", "end_date": "2026-04-02", "leave_type": "  "},
    )
    assert blank_leave.status_code == 422
    assert client.get("/api/v1/people").json()["items"][0]["name"] == "Robin"


def test_people_listing_includes_role_names(client: TestClient) -> None:
    developer = _create_role_type(client, "Developer")
    analyst = _create_role_type(client, "Analyst")
    _create_person(client, name="Zoe", role_type_id=developer, email="Zoe@Example.com")
    _create_person(client, name="Adam", role_type_id=analyst)

    response = client.get("/api/v1/people")
    assert response.status_code == 200
    items = response.json()["items"]
    assert [(row["name"], row["role_type_name"]) for row in items] == [("Adam", "Analyst"), ("Zoe", "Developer")]
    assert items[1]["email"] == "zoe@example.com"


def test_person_update_and_lookup(client: TestClient) -> None:
    developer = _create_role_type(client, "Developer")
    analyst = _create_role_type(client, "Analyst")
    person_id = _create_person(client, name="Sam", role_type_id=developer)

    updated = client.patch(f"/api/v1/people/{person_id}", json={"role_type_id": analyst, "name": "Samantha"})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Samantha"
    assert updated.json()["role_type_name"] == "Analyst"

    assert client.get(f"/api/v1/people/{uuid.uuid4()}").status_code == 404


def test_person_requires_existing_role_type(client: TestClient) -> None:
    response = client.post(
        "/api/v1/people",
        json={"name": "Ghost", "role_type_id": str(uuid.uuid4())},
    )
    assert response.status_code == 422


def test_person_with_allocations_cannot_be_deleted(client: TestClient) -> None:
    role_type_id = _create_role_type(client, "Developer")
    person_id = _create_person(client, name="Riley", role_type_id=role_type_id)
    project = client.post(
        "/api/v1/projects",
        json={"name": "Apollo", "start_date": "2026-01-01", "end_date": "2026-03-31"},
    )
    assert project.status_code == 201
    allocation = client.post(
        f"/api/v1/projects/{project.json()['id']}/allocations",
        json={
            "person_id": person_id,
            "role_type_id": role_type_id,
            "allocation_percentage": 50,
            "start_date": "2026-01-01",
            "end_date": "2026-02-28",
        },
    )
    assert allocation.status_code == 201

    blocked = client.delete(f"/api/v1/people/{person_id}")
    assert blocked.status_code == 409
    assert blocked.json()["detail"] == "Cannot delete person with active project allocations"

    assert client.delete(f"/api/v1/allocations/{allocation.json()['id']}").status_code == 204
    assert client.delete(f"/api/v1/people/{person_id}").status_code == 204


def test_person_delete_removes_leave(client: TestClient) -> None:
    role_type_id = _create_role_type(client, "Developer")
    person_id = _create_person(client, name="Kim", role_type_id=role_type_id)
    leave = client.post(
        "/api/v1/leave-periods",
        json={"person_id": person_id, "start_date": "2026-04-01", "end_date": "2026-04-05"},
    )
    assert leave.status_code == 201

    assert client.delete(f"/api/v1/people/{person_id}").status_code == 204
    assert client.get("/api/v1/leave-periods").json()["items"] == []
