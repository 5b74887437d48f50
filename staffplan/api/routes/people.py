"""People endpoints, including per-person allocations, leave, utilization and timeline."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.analytics_service import AnalyticsService
from staffplan.services.planning_service import PersonCreateData, PersonUpdateData, PlanningService
from staffplan.services.timeline_layout import Granularity

router = APIRouter(prefix="/people", tags=["people"])


class PersonCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=320)
    role_type_id: UUID


class PersonUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=320)
    role_type_id: UUID | None = None


def _service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.get("")
def list_people(db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _service(db)
    return {"items": [service.serialize_person(person) for person in service.list_people()]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_person(payload: PersonCreatePayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _service(db)
    person = service.create_person(
        PersonCreateData(name=payload.name, email=payload.email, role_type_id=payload.role_type_id)
    )
    return service.serialize_person(person)


@router.get("/{person_id}")
def get_person(person_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _service(db)
    return service.serialize_person(service.get_person(person_id))


@router.patch("/{person_id}")
def update_person(
    person_id: UUID,
    payload: PersonUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    person = service.update_person(
        person_id,
        PersonUpdateData(name=payload.name, email=payload.email, role_type_id=payload.role_type_id),
    )
    return service.serialize_person(person)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_person(person_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    service = _service(db)
    service.delete_person(person_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{person_id}/allocations")
def list_person_allocations(person_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _service(db)
    rows = service.list_person_allocations(person_id)
    return {"items": [service.serialize_allocation(allocation) for allocation in rows]}


@router.get("/{person_id}/leave")
def list_person_leave(person_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _service(db)
    rows = service.list_leave(person_id=person_id)
    return {"items": [service.serialize_leave(leave) for leave in rows]}


@router.get("/{person_id}/utilization")
def get_person_utilization(
    person_id: UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return AnalyticsService(db).person_utilization(
        person_id=person_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/{person_id}/timeline")
def get_person_timeline(
    person_id: UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    granularity: Granularity = Query(default=Granularity.MONTH),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = AnalyticsService(db)
    timeline = service.person_timeline(
        person_id=person_id,
        start_date=start_date,
        end_date=end_date,
        granularity=granularity,
    )
    return service.serialize_person_timeline(timeline)
