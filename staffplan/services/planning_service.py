"""Application service for role types, people, projects, requirements, allocations and leave."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffplan.models.entities import (
    LeavePeriod,
    LeaveStatus,
    Person,
    Project,
    ProjectAllocation,
    ProjectResourceRequirement,
    RoleType,
)
from staffplan.models.views import AllocationDetail, LeaveDetail, PersonWithRole, RequirementDetail
from staffplan.repositories.planning_repository import PlanningRepository
from staffplan.services.allocation_analytics import project_status

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RoleTypeCreateData:
    name: str
    description: str | None = None


@dataclass(slots=True)
class RoleTypeUpdateData:
    name: str | None = None
    description: str | None = None


@dataclass(slots=True)
class PersonCreateData:
    name: str
    role_type_id: UUID
    email: str | None = None


@dataclass(slots=True)
class PersonUpdateData:
    name: str | None = None
    role_type_id: UUID | None = None
    email: str | None = None


@dataclass(slots=True)
class ProjectCreateData:
    name: str
    start_date: date
    end_date: date
    description: str | None = None


@dataclass(slots=True)
class ProjectUpdateData:
    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class RequirementCreateData:
    role_type_id: UUID
    required_count: int
    start_date: date
    end_date: date


@dataclass(slots=True)
class RequirementUpdateData:
    role_type_id: UUID | None = None
    required_count: int | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class AllocationCreateData:
    person_id: UUID
    role_type_id: UUID
    allocation_percentage: int
    start_date: date
    end_date: date
    requirement_id: UUID | None = None


@dataclass(slots=True)
class AllocationUpdateData:
    person_id: UUID | None = None
    role_type_id: UUID | None = None
    requirement_id: UUID | None = None
    allocation_percentage: int | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class LeaveCreateData:
    person_id: UUID
    start_date: date
    end_date: date
    leave_type: str = "annual"
    notes: str | None = None
    status: LeaveStatus = LeaveStatus.PENDING


@dataclass(slots=True)
class LeaveUpdateData:
    start_date: date | None = None
    end_date: date | None = None
    leave_type: str | None = None
    notes: str | None = None
    status: LeaveStatus | None = None


def _ensure_range(start_date: date, end_date: date, *, label: str) -> None:
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{label} end_date must be greater than or equal to start_date.",
        )


def _ensure_project_range(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="End date must be after start date.",
        )


def _required_text(value: str, *, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{field} must not be blank.",
        )
    return cleaned


def _conflict(message: str) -> HTTPException:
    logger.warning("Rejected operation: %s", message)
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)


class PlanningService:
    """CRUD and referential checks for the workforce planning records."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PlanningRepository(db)

    # ---------- Serialization ----------
    @staticmethod
    def serialize_role_type(role_type: RoleType) -> dict[str, object]:
        return {
            "id": str(role_type.id),
            "name": role_type.name,
            "description": role_type.description,
            "created_at": role_type.created_at.isoformat(),
            "updated_at": role_type.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_person(person: PersonWithRole) -> dict[str, object]:
        return {
            "id": str(person.id),
            "name": person.name,
            "email": person.email,
            "role_type_id": str(person.role_type_id),
            "role_type_name": person.role_type_name,
            "created_at": person.created_at.isoformat() if person.created_at else None,
            "updated_at": person.updated_at.isoformat() if person.updated_at else None,
        }

    @staticmethod
    def serialize_project(project: Project, *, today: date | None = None) -> dict[str, object]:
        return {
            "id": str(project.id),
            "name": project.name,
            "description": project.description,
            "start_date": project.start_date.isoformat(),
            "end_date": project.end_date.isoformat(),
            "status": project_status(project.start_date, project.end_date, today or date.today()).value,
            "created_at": project.created_at.isoformat(),
            "updated_at": project.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_requirement(requirement: RequirementDetail) -> dict[str, object]:
        return {
            "id": str(requirement.id),
            "project_id": str(requirement.project_id),
            "project_name": requirement.project_name,
            "role_type_id": str(requirement.role_type_id) if requirement.role_type_id else None,
            "role_type_name": requirement.role_type_name,
            "required_count": requirement.required_count,
            "start_date": requirement.start_date.isoformat() if requirement.start_date else None,
            "end_date": requirement.end_date.isoformat() if requirement.end_date else None,
        }

    @staticmethod
    def serialize_allocation(allocation: AllocationDetail) -> dict[str, object]:
        return {
            "id": str(allocation.id),
            "project_id": str(allocation.project_id),
            "project_name": allocation.project_name,
            "person_id": str(allocation.person_id) if allocation.person_id else None,
            "person_name": allocation.person_name,
            "role_type_id": str(allocation.role_type_id) if allocation.role_type_id else None,
            "role_type_name": allocation.role_type_name,
            "requirement_id": str(allocation.requirement_id) if allocation.requirement_id else None,
            "allocation_percentage": allocation.allocation_percentage,
            "start_date": allocation.start_date.isoformat() if allocation.start_date else None,
            "end_date": allocation.end_date.isoformat() if allocation.end_date else None,
        }

    @staticmethod
    def serialize_leave(leave: LeaveDetail) -> dict[str, object]:
        return {
            "id": str(leave.id),
            "person_id": str(leave.person_id),
            "person_name": leave.person_name,
            "role_type_name": leave.role_type_name,
            "start_date": leave.start_date.isoformat(),
            "end_date": leave.end_date.isoformat(),
            "leave_type": leave.leave_type,
            "notes": leave.notes,
            "status": leave.status.value,
        }

    # ---------- Lookups ----------
    def _require_role_type(self, role_type_id: UUID) -> RoleType:
        role_type = self.repo.get_role_type(role_type_id)
        if role_type is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role type not found.")
        return role_type

    def _require_person(self, person_id: UUID) -> Person:
        person = self.repo.get_person(person_id)
        if person is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found.")
        return person

    def _require_project(self, project_id: UUID) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
        return project

    def _require_requirement(self, requirement_id: UUID) -> ProjectResourceRequirement:
        requirement = self.repo.get_requirement(requirement_id)
        if requirement is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource requirement not found.")
        return requirement

    def _require_allocation(self, allocation_id: UUID) -> ProjectAllocation:
        allocation = self.repo.get_allocation(allocation_id)
        if allocation is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found.")
        return allocation

    def _require_leave(self, leave_id: UUID) -> LeavePeriod:
        leave = self.repo.get_leave_period(leave_id)
        if leave is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave period not found.")
        return leave

    def _ensure_role_type_reference(self, role_type_id: UUID) -> None:
        if self.repo.get_role_type(role_type_id) is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="role_type_id must reference an existing role type.",
            )

    def _ensure_person_reference(self, person_id: UUID) -> None:
        if self.repo.get_person(person_id) is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="person_id must reference an existing person.",
            )

    def _commit_or_conflict(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise _conflict(message) from exc

    # ---------- Role types ----------
    def list_role_types(self) -> list[RoleType]:
        return self.repo.list_role_types()

    def get_role_type(self, role_type_id: UUID) -> RoleType:
        return self._require_role_type(role_type_id)

    def create_role_type(self, data: RoleTypeCreateData) -> RoleType:
        now = datetime.utcnow()
        role_type = RoleType(
            name=_required_text(data.name, field="name"),
            description=data.description.strip() if data.description else None,
            created_at=now,
            updated_at=now,
        )
        try:
            self.repo.add_role_type(role_type)
        except IntegrityError as exc:
            self.db.rollback()
            raise _conflict("Role type name already exists.") from exc
        self._commit_or_conflict("Role type name already exists.")
        self.db.refresh(role_type)
        logger.info("Created role type %s (%s)", role_type.id, role_type.name)
        return role_type

    def update_role_type(self, role_type_id: UUID, data: RoleTypeUpdateData) -> RoleType:
        role_type = self._require_role_type(role_type_id)
        if data.name is not None:
            role_type.name = _required_text(data.name, field="name")
        if data.description is not None:
            role_type.description = data.description.strip() if data.description else None
        role_type.updated_at = datetime.utcnow()

        self._commit_or_conflict("Role type name already exists.")
        self.db.refresh(role_type)
        logger.info("Updated role type %s", role_type.id)
        return role_type

    def delete_role_type(self, role_type_id: UUID) -> None:
        role_type = self._require_role_type(role_type_id)
        in_use = (
            self.repo.person_count_for_role_type(role_type.id)
            + self.repo.requirement_count_for_role_type(role_type.id)
            + self.repo.allocation_count_for_role_type(role_type.id)
        )
        if in_use > 0:
            raise _conflict("Cannot delete role type that is currently in use")

        try:
            self.repo.delete_role_type(role_type)
        except IntegrityError as exc:
            self.db.rollback()
            raise _conflict("Cannot delete role type that is currently in use") from exc
        self._commit_or_conflict("Cannot delete role type that is currently in use")
        logger.info("Deleted role type %s", role_type_id)

    # ---------- People ----------
    def list_people(self) -> list[PersonWithRole]:
        return self.repo.list_people_with_roles()

    def get_person(self, person_id: UUID) -> PersonWithRole:
        person = self.repo.get_person_with_role(person_id)
        if person is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found.")
        return person

    def create_person(self, data: PersonCreateData) -> PersonWithRole:
        self._ensure_role_type_reference(data.role_type_id)

        now = datetime.utcnow()
        person = Person(
            name=_required_text(data.name, field="name"),
            email=data.email.strip().lower() if data.email else None,
            role_type_id=data.role_type_id,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_person(person)
        self.db.commit()
        logger.info("Created person %s (%s)", person.id, person.name)
        return self.get_person(person.id)

    def update_person(self, person_id: UUID, data: PersonUpdateData) -> PersonWithRole:
        person = self._require_person(person_id)
        if data.role_type_id is not None:
            self._ensure_role_type_reference(data.role_type_id)
            person.role_type_id = data.role_type_id
        if data.name is not None:
            person.name = _required_text(data.name, field="name")
        if data.email is not None:
            person.email = data.email.strip().lower() if data.email else None
        person.updated_at = datetime.utcnow()

        self.db.commit()
        logger.info("Updated person %s", person.id)
        return self.get_person(person.id)

    def delete_person(self, person_id: UUID) -> None:
        person = self._require_person(person_id)
        if self.repo.allocation_count_for_person(person.id) > 0:
            raise _conflict("Cannot delete person with active project allocations")

        self.repo.delete_leave_for_person(person.id)
        self.repo.delete_person(person)
        self.db.commit()
        logger.info("Deleted person %s", person_id)

    # ---------- Projects ----------
    def list_projects(self) -> list[Project]:
        return self.repo.list_projects()

    def get_project(self, project_id: UUID) -> Project:
        return self._require_project(project_id)

    def create_project(self, data: ProjectCreateData) -> Project:
        _ensure_project_range(data.start_date, data.end_date)

        now = datetime.utcnow()
        project = Project(
            name=_required_text(data.name, field="name"),
            description=data.description.strip() if data.description else None,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_project(project)
        self.db.commit()
        self.db.refresh(project)
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    def update_project(self, project_id: UUID, data: ProjectUpdateData) -> Project:
        project = self._require_project(project_id)

        target_start = data.start_date if data.start_date is not None else project.start_date
        target_end = data.end_date if data.end_date is not None else project.end_date
        _ensure_project_range(target_start, target_end)

        if data.name is not None:
            project.name = _required_text(data.name, field="name")
        if data.description is not None:
            project.description = data.description.strip() if data.description else None
        project.start_date = target_start
        project.end_date = target_end
        project.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(project)
        logger.info("Updated project %s", project.id)
        return project

    def delete_project(self, project_id: UUID) -> None:
        project = self._require_project(project_id)
        if (
            self.repo.allocation_count_for_project(project.id) > 0
            or self.repo.requirement_count_for_project(project.id) > 0
        ):
            raise _conflict("Cannot delete project with active allocations or resource requirements")

        self.repo.delete_project(project)
        self.db.commit()
        logger.info("Deleted project %s", project_id)

    # ---------- Resource requirements ----------
    def list_requirements(self, project_id: UUID) -> list[RequirementDetail]:
        self._require_project(project_id)
        return self.repo.list_requirements_detailed(project_id)

    def get_requirement(self, requirement_id: UUID) -> RequirementDetail:
        requirement = self.repo.get_requirement_detailed(requirement_id)
        if requirement is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource requirement not found.")
        return requirement

    def create_requirement(self, project_id: UUID, data: RequirementCreateData) -> RequirementDetail:
        project = self._require_project(project_id)
        self._ensure_role_type_reference(data.role_type_id)
        _ensure_range(data.start_date, data.end_date, label="Requirement")

        now = datetime.utcnow()
        requirement = ProjectResourceRequirement(
            project_id=project.id,
            role_type_id=data.role_type_id,
            required_count=data.required_count,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_requirement(requirement)
        self.db.commit()
        logger.info(
            "Created requirement %s on project %s (%d needed)",
            requirement.id,
            project.id,
            requirement.required_count,
        )
        return self.get_requirement(requirement.id)

    def update_requirement(self, requirement_id: UUID, data: RequirementUpdateData) -> RequirementDetail:
        requirement = self._require_requirement(requirement_id)

        target_start = data.start_date if data.start_date is not None else requirement.start_date
        target_end = data.end_date if data.end_date is not None else requirement.end_date
        _ensure_range(target_start, target_end, label="Requirement")

        if data.role_type_id is not None:
            self._ensure_role_type_reference(data.role_type_id)
            requirement.role_type_id = data.role_type_id
        if data.required_count is not None:
            requirement.required_count = data.required_count
        requirement.start_date = target_start
        requirement.end_date = target_end
        requirement.updated_at = datetime.utcnow()

        self.db.commit()
        logger.info("Updated requirement %s", requirement.id)
        return self.get_requirement(requirement.id)

    def delete_requirement(self, requirement_id: UUID) -> None:
        requirement = self._require_requirement(requirement_id)
        if self.repo.allocation_count_for_requirement(requirement.id) > 0:
            raise _conflict("Cannot delete resource requirement with linked allocations")

        self.repo.delete_requirement(requirement)
        self.db.commit()
        logger.info("Deleted requirement %s", requirement_id)

    # ---------- Allocations ----------
    def list_project_allocations(self, project_id: UUID) -> list[AllocationDetail]:
        self._require_project(project_id)
        return self.repo.list_allocations_detailed(project_id=project_id)

    def list_person_allocations(self, person_id: UUID) -> list[AllocationDetail]:
        self._require_person(person_id)
        return self.repo.list_allocations_detailed(person_id=person_id)

    def list_all_allocations(self) -> list[AllocationDetail]:
        return self.repo.list_allocations_detailed()

    def get_allocation(self, allocation_id: UUID) -> AllocationDetail:
        allocation = self.repo.get_allocation_detailed(allocation_id)
        if allocation is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allocation not found.")
        return allocation

    def _ensure_requirement_in_project(self, requirement_id: UUID, project_id: UUID) -> None:
        requirement = self.repo.get_requirement(requirement_id)
        if requirement is None or requirement.project_id != project_id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="requirement_id must reference a requirement in this project.",
            )

    def create_allocation(self, project_id: UUID, data: AllocationCreateData) -> AllocationDetail:
        project = self._require_project(project_id)
        self._ensure_person_reference(data.person_id)
        self._ensure_role_type_reference(data.role_type_id)
        if data.requirement_id is not None:
            self._ensure_requirement_in_project(data.requirement_id, project.id)
        _ensure_range(data.start_date, data.end_date, label="Allocation")

        now = datetime.utcnow()
        allocation = ProjectAllocation(
            project_id=project.id,
            person_id=data.person_id,
            role_type_id=data.role_type_id,
            requirement_id=data.requirement_id,
            allocation_percentage=data.allocation_percentage,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_allocation(allocation)
        self.db.commit()
        logger.info(
            "Allocated person %s to project %s at %d%%",
            allocation.person_id,
            project.id,
            allocation.allocation_percentage,
        )
        return self.get_allocation(allocation.id)

    def update_allocation(self, allocation_id: UUID, data: AllocationUpdateData) -> AllocationDetail:
        allocation = self._require_allocation(allocation_id)

        target_start = data.start_date if data.start_date is not None else allocation.start_date
        target_end = data.end_date if data.end_date is not None else allocation.end_date
        _ensure_range(target_start, target_end, label="Allocation")

        if data.person_id is not None:
            self._ensure_person_reference(data.person_id)
            allocation.person_id = data.person_id
        if data.role_type_id is not None:
            self._ensure_role_type_reference(data.role_type_id)
            allocation.role_type_id = data.role_type_id
        if data.requirement_id is not None:
            self._ensure_requirement_in_project(data.requirement_id, allocation.project_id)
            allocation.requirement_id = data.requirement_id
        if data.allocation_percentage is not None:
            allocation.allocation_percentage = data.allocation_percentage
        allocation.start_date = target_start
        allocation.end_date = target_end
        allocation.updated_at = datetime.utcnow()

        self.db.commit()
        logger.info("Updated allocation %s", allocation.id)
        return self.get_allocation(allocation.id)

    def delete_allocation(self, allocation_id: UUID) -> None:
        allocation = self._require_allocation(allocation_id)
        self.repo.delete_allocation(allocation)
        self.db.commit()
        logger.info("Deleted allocation %s", allocation_id)

    # ---------- Leave periods ----------
    def list_leave(self, *, person_id: UUID | None = None) -> list[LeaveDetail]:
        if person_id is not None:
            self._require_person(person_id)
        return self.repo.list_leave_detailed(person_id=person_id)

    def list_pending_leave(self) -> list[LeaveDetail]:
        return self.repo.list_leave_detailed(status=LeaveStatus.PENDING)

    def get_leave(self, leave_id: UUID) -> LeaveDetail:
        leave = self.repo.get_leave_detailed(leave_id)
        if leave is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave period not found.")
        return leave

    def create_leave(self, data: LeaveCreateData) -> LeaveDetail:
        self._ensure_person_reference(data.person_id)
        _ensure_range(data.start_date, data.end_date, label="Leave")

        now = datetime.utcnow()
        leave = LeavePeriod(
            person_id=data.person_id,
            start_date=data.start_date,
            end_date=data.end_date,
            leave_type=_required_text(data.leave_type, field="leave_type"),
            notes=data.notes.strip() if data.notes else None,
            status=data.status,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_leave_period(leave)
        self.db.commit()
        logger.info("Recorded %s leave %s for person %s", leave.leave_type, leave.id, leave.person_id)
        return self.get_leave(leave.id)

    def update_leave(self, leave_id: UUID, data: LeaveUpdateData) -> LeaveDetail:
        leave = self._require_leave(leave_id)

        target_start = data.start_date if data.start_date is not None else leave.start_date
        target_end = data.end_date if data.end_date is not None else leave.end_date
        _ensure_range(target_start, target_end, label="Leave")

        if data.leave_type is not None:
            leave.leave_type = _required_text(data.leave_type, field="leave_type")
        if data.notes is not None:
            leave.notes = data.notes.strip() if data.notes else None
        if data.status is not None:
            leave.status = data.status
        leave.start_date = target_start
        leave.end_date = target_end
        leave.updated_at = datetime.utcnow()

        self.db.commit()
        logger.info("Updated leave period %s", leave.id)
        return self.get_leave(leave.id)

    def update_leave_status(self, leave_id: UUID, new_status: LeaveStatus) -> LeaveDetail:
        leave = self._require_leave(leave_id)
        leave.status = new_status
        leave.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info("Leave period %s marked %s", leave.id, new_status.value)
        return self.get_leave(leave.id)

    def delete_leave(self, leave_id: UUID) -> None:
        leave = self._require_leave(leave_id)
        self.repo.delete_leave_period(leave)
        self.db.commit()
        logger.info("Deleted leave period %s", leave_id)
