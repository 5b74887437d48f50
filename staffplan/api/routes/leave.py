"""Leave period endpoints and the approval workflow."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.models.entities import LeaveStatus
from staffplan.services.planning_service import LeaveCreateData, LeaveUpdateData, PlanningService

router = APIRouter(prefix="/leave-periods", tags=["leave"])


class LeaveCreatePayload(BaseModel):
    person_id: UUID
    start_date: date
    end_date: date
    leave_type: str = Field(default="annual", min_length=1, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)
    status: LeaveStatus = LeaveStatus.PENDING


class LeaveUpdatePayload(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    leave_type: str | None = Field(default=None, min_length=1, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)
    status: LeaveStatus | None = None


class LeaveStatusPayload(BaseModel):
    status: LeaveStatus


def _service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.get("")
def list_leave_periods(
    person_id: UUID | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _service(db)
    return {"items": [service.serialize_leave(leave) for leave in service.list_leave(person_id=person_id)]}


@router.get("/pending")
def list_pending_leave_periods(db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _service(db)
    return {"items": [service.serialize_leave(leave) for leave in service.list_pending_leave()]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_leave_period(payload: LeaveCreatePayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _service(db)
    leave = service.create_leave(
        LeaveCreateData(
            person_id=payload.person_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            leave_type=payload.leave_type,
            notes=payload.notes,
            status=payload.status,
        )
    )
    return service.serialize_leave(leave)


@router.get("/{leave_id}")
def get_leave_period(leave_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _service(db)
    return service.serialize_leave(service.get_leave(leave_id))


@router.patch("/{leave_id}")
def update_leave_period(
    leave_id: UUID,
    payload: LeaveUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    leave = service.update_leave(
        leave_id,
        LeaveUpdateData(
            start_date=payload.start_date,
            end_date=payload.end_date,
            leave_type=payload.leave_type,
            notes=payload.notes,
            status=payload.status,
        ),
    )
    return service.serialize_leave(leave)


@router.put("/{leave_id}/status")
def set_leave_status(
    leave_id: UUID,
    payload: LeaveStatusPayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    return service.serialize_leave(service.update_leave_status(leave_id, payload.status))


@router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_leave_period(leave_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    service = _service(db)
    service.delete_leave(leave_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
