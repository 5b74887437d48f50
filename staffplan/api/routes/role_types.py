"""Role type catalogue endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.planning_service import PlanningService, RoleTypeCreateData, RoleTypeUpdateData

router = APIRouter(prefix="/role-types", tags=["role-types"])


class RoleTypeCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)


class RoleTypeUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)


def _service(db: Session) -> PlanningService:
    return PlanningService(db)


@router.get("")
def list_role_types(db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _service(db)
    return {"items": [service.serialize_role_type(role_type) for role_type in service.list_role_types()]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_role_type(
    payload: RoleTypeCreatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    role_type = service.create_role_type(
        RoleTypeCreateData(name=payload.name, description=payload.description)
    )
    return service.serialize_role_type(role_type)


@router.get("/{role_type_id}")
def get_role_type(role_type_id: UUID, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _service(db)
    return service.serialize_role_type(service.get_role_type(role_type_id))


@router.patch("/{role_type_id}")
def update_role_type(
    role_type_id: UUID,
    payload: RoleTypeUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    role_type = service.update_role_type(
        role_type_id,
        RoleTypeUpdateData(name=payload.name, description=payload.description),
    )
    return service.serialize_role_type(role_type)


@router.delete("/{role_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role_type(role_type_id: UUID, db: Session = Depends(get_db_session)) -> Response:
    service = _service(db)
    service.delete_role_type(role_type_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
