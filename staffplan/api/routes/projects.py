"""Project, resource requirement and allocation endpoints."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.analytics_service import AnalyticsService
from staffplan.services.planning_service import (
    AllocationCreateData,
    AllocationUpdateData,
    PlanningService,
    ProjectCreateData,
    ProjectUpdateData,
    RequirementCreateData,
    RequirementUpdateData,
)
from staffplan.services.timeline_layout import Granularity

router = APIRouter(tags=["projects"])


class ProjectCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    start_date: date
    end_date: date


class ProjectUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    start_date: date | None = None
    end_date: date | None = None


class RequirementCreatePayload(BaseModel):
    role_type_id: UUID
    required_count: int = Field(ge=1)
    start_date: date
    end_date: date


class RequirementUpdatePayload(BaseModel):
    role_type_id: UUID | None = None
    required_count: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None


class AllocationCreatePayload(BaseModel):
    person_id: UUID
    role_type_id: UUID
    requirement_id: UUID | None = None
    allocation_percentage: int = Field(ge=1, le=100)
    start_date: date
    end_date: date


class AllocationUpdatePayload(BaseModel):
    person_id: UUID | None = None
    role_type_id: UUID | None = None
    requirement_id: UUID | None = None
    allocation_percentage: int | None = Field(default=None, ge=1, le=100)
    start_date: date | None = None
    end_date: date | None = None


def _planning_service(db: Session) -> PlanningService:
    return PlanningService(db)


# ---------- Projects ----------
@router.get("/projects")
def list_projects(db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    return {"items": [service.serialize_project(project) for project in service.list_projects()]}


@router.post("/projects", status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreatePayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    project = service.create_project(
        ProjectCreateData(
            name=payload.name,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    )
    return service.serialize_project(project)


@router.get("/projects/{project_id}")
def get_project(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    return service.serialize_project(service.get_project(project_id))


@router.patch("/projects/{project_id}")
def update_project(
    project_id: UUID,
    payload: ProjectUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    project = service.update_project(
        project_id,
        ProjectUpdateData(
            name=payload.name,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ),
    )
    return service.serialize_project(project)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    service = _planning_service(db)
    service.delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Resource requirements ----------
@router.get("/projects/{project_id}/requirements")
def list_project_requirements(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    rows = service.list_requirements(project_id)
    return {"items": [service.serialize_requirement(requirement) for requirement in rows]}


@router.post("/projects/{project_id}/requirements", status_code=status.HTTP_201_CREATED)
def create_project_requirement(
    project_id: UUID,
    payload: RequirementCreatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    requirement = service.create_requirement(
        project_id,
        RequirementCreateData(
            role_type_id=payload.role_type_id,
            required_count=payload.required_count,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ),
    )
    return service.serialize_requirement(requirement)


@router.get("/requirements/{requirement_id}")
def get_requirement(requirement_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    return service.serialize_requirement(service.get_requirement(requirement_id))


@router.patch("/requirements/{requirement_id}")
def update_requirement(
    requirement_id: UUID,
    payload: RequirementUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    requirement = service.update_requirement(
        requirement_id,
        RequirementUpdateData(
            role_type_id=payload.role_type_id,
            required_count=payload.required_count,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ),
    )
    return service.serialize_requirement(requirement)


@router.delete("/requirements/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_requirement(requirement_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    service = _planning_service(db)
    service.delete_requirement(requirement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Allocations ----------
@router.get("/projects/{project_id}/allocations")
def list_project_allocations(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    rows = service.list_project_allocations(project_id)
    return {"items": [service.serialize_allocation(allocation) for allocation in rows]}


@router.post("/projects/{project_id}/allocations", status_code=status.HTTP_201_CREATED)
def create_project_allocation(
    project_id: UUID,
    payload: AllocationCreatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    allocation = service.create_allocation(
        project_id,
        AllocationCreateData(
            person_id=payload.person_id,
            role_type_id=payload.role_type_id,
            requirement_id=payload.requirement_id,
            allocation_percentage=payload.allocation_percentage,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ),
    )
    return service.serialize_allocation(allocation)


@router.get("/allocations")
def list_allocations(db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _planning_service(db)
    return {"items": [service.serialize_allocation(allocation) for allocation in service.list_all_allocations()]}


@router.get("/allocations/{allocation_id}")
def get_allocation(allocation_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _planning_service(db)
    return service.serialize_allocation(service.get_allocation(allocation_id))


@router.patch("/allocations/{allocation_id}")
def update_allocation(
    allocation_id: UUID,
    payload: AllocationUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _planning_service(db)
    allocation = service.update_allocation(
        allocation_id,
        AllocationUpdateData(
            person_id=payload.person_id,
            role_type_id=payload.role_type_id,
            requirement_id=payload.requirement_id,
            allocation_percentage=payload.allocation_percentage,
            start_date=payload.start_date,
            end_date=payload.end_date,
        ),
    )
    return service.serialize_allocation(allocation)


@router.delete("/allocations/{allocation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_allocation(allocation_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    service = _planning_service(db)
    service.delete_allocation(allocation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Coverage and layout ----------
@router.get("/projects/{project_id}/gaps")
def list_project_gaps(project_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = AnalyticsService(db)
    return {"items": [service.serialize_gap(gap) for gap in service.project_gaps(project_id=project_id)]}


@router.get("/projects/{project_id}/allocation-candidates")
def list_allocation_candidates(
    project_id: UUID,
    role_type_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = AnalyticsService(db)
    rows = service.allocation_candidates(
        project_id=project_id,
        role_type_id=role_type_id,
        start_date=start_date,
        end_date=end_date,
    )
    return {"items": [service.serialize_candidate(candidate) for candidate in rows]}


@router.get("/projects/{project_id}/timeline")
def get_project_timeline(
    project_id: UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    granularity: Granularity = Query(default=Granularity.MONTH),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = AnalyticsService(db)
    timeline = service.project_timeline(
        project_id=project_id,
        start_date=start_date,
        end_date=end_date,
        granularity=granularity,
    )
    return service.serialize_project_timeline(timeline)
