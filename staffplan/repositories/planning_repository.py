"""Repository helpers for workforce planning records."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, delete, func, select
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


class PlanningRepository:
    """Persistence operations used by planning and analytics services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Role types ----------
    def list_role_types(self) -> list[RoleType]:
        return self.db.scalars(select(RoleType).order_by(RoleType.name.asc())).all()

    def get_role_type(self, role_type_id: UUID) -> RoleType | None:
        return self.db.scalar(select(RoleType).where(RoleType.id == role_type_id))

    def add_role_type(self, role_type: RoleType) -> RoleType:
        self.db.add(role_type)
        self.db.flush()
        return role_type

    def delete_role_type(self, role_type: RoleType) -> None:
        self.db.delete(role_type)
        self.db.flush()

    def role_type_count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(RoleType)) or 0

    # ---------- People ----------
    def _people_with_roles_query(self):
        return select(Person, RoleType.name).join(RoleType, RoleType.id == Person.role_type_id)

    @staticmethod
    def _to_person_with_role(person: Person, role_type_name: str) -> PersonWithRole:
        return PersonWithRole(
            id=person.id,
            name=person.name,
            email=person.email,
            role_type_id=person.role_type_id,
            role_type_name=role_type_name,
            created_at=person.created_at,
            updated_at=person.updated_at,
        )

    def list_people_with_roles(self) -> list[PersonWithRole]:
        rows = self.db.execute(self._people_with_roles_query().order_by(Person.name.asc())).all()
        return [self._to_person_with_role(person, role_type_name) for person, role_type_name in rows]

    def get_person_with_role(self, person_id: UUID) -> PersonWithRole | None:
        row = self.db.execute(self._people_with_roles_query().where(Person.id == person_id)).first()
        if row is None:
            return None
        return self._to_person_with_role(row[0], row[1])

    def get_person(self, person_id: UUID) -> Person | None:
        return self.db.scalar(select(Person).where(Person.id == person_id))

    def add_person(self, person: Person) -> Person:
        self.db.add(person)
        self.db.flush()
        return person

    def delete_person(self, person: Person) -> None:
        self.db.delete(person)
        self.db.flush()

    def person_count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(Person)) or 0

    def person_count_for_role_type(self, role_type_id: UUID) -> int:
        return (
            self.db.scalar(select(func.count()).select_from(Person).where(Person.role_type_id == role_type_id))
            or 0
        )

    # ---------- Projects ----------
    def list_projects(self) -> list[Project]:
        return self.db.scalars(select(Project).order_by(Project.name.asc())).all()

    def list_recent_projects(self, limit: int) -> list[Project]:
        return self.db.scalars(
            select(Project).order_by(Project.created_at.desc(), Project.name.asc()).limit(limit)
        ).all()

    def list_projects_active_on(self, day: date) -> list[Project]:
        return self.db.scalars(
            select(Project)
            .where(and_(Project.start_date <= day, Project.end_date >= day))
            .order_by(Project.name.asc())
        ).all()

    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def add_project(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    def delete_project(self, project: Project) -> None:
        self.db.delete(project)
        self.db.flush()

    # ---------- Resource requirements ----------
    def _requirements_detailed_query(self):
        return (
            select(ProjectResourceRequirement, Project.name, RoleType.name)
            .join(Project, Project.id == ProjectResourceRequirement.project_id)
            .outerjoin(RoleType, RoleType.id == ProjectResourceRequirement.role_type_id)
        )

    @staticmethod
    def _to_requirement_detail(
        requirement: ProjectResourceRequirement,
        project_name: str,
        role_type_name: str | None,
    ) -> RequirementDetail:
        return RequirementDetail(
            id=requirement.id,
            project_id=requirement.project_id,
            project_name=project_name,
            role_type_id=requirement.role_type_id,
            role_type_name=role_type_name,
            required_count=requirement.required_count,
            start_date=requirement.start_date,
            end_date=requirement.end_date,
        )

    def list_requirements_detailed(self, project_id: UUID) -> list[RequirementDetail]:
        rows = self.db.execute(
            self._requirements_detailed_query()
            .where(ProjectResourceRequirement.project_id == project_id)
            .order_by(ProjectResourceRequirement.start_date.asc(), ProjectResourceRequirement.created_at.asc())
        ).all()
        return [self._to_requirement_detail(*row) for row in rows]

    def get_requirement_detailed(self, requirement_id: UUID) -> RequirementDetail | None:
        row = self.db.execute(
            self._requirements_detailed_query().where(ProjectResourceRequirement.id == requirement_id)
        ).first()
        if row is None:
            return None
        return self._to_requirement_detail(*row)

    def get_requirement(self, requirement_id: UUID) -> ProjectResourceRequirement | None:
        return self.db.scalar(
            select(ProjectResourceRequirement).where(ProjectResourceRequirement.id == requirement_id)
        )

    def add_requirement(self, requirement: ProjectResourceRequirement) -> ProjectResourceRequirement:
        self.db.add(requirement)
        self.db.flush()
        return requirement

    def delete_requirement(self, requirement: ProjectResourceRequirement) -> None:
        self.db.delete(requirement)
        self.db.flush()

    def requirement_count_for_project(self, project_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(ProjectResourceRequirement)
                .where(ProjectResourceRequirement.project_id == project_id)
            )
            or 0
        )

    def requirement_count_for_role_type(self, role_type_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(ProjectResourceRequirement)
                .where(ProjectResourceRequirement.role_type_id == role_type_id)
            )
            or 0
        )

    # ---------- Allocations ----------
    def _allocations_detailed_query(self):
        return (
            select(ProjectAllocation, Project.name, Person.name, RoleType.name)
            .join(Project, Project.id == ProjectAllocation.project_id)
            .outerjoin(Person, Person.id == ProjectAllocation.person_id)
            .outerjoin(RoleType, RoleType.id == ProjectAllocation.role_type_id)
        )

    @staticmethod
    def _to_allocation_detail(
        allocation: ProjectAllocation,
        project_name: str,
        person_name: str | None,
        role_type_name: str | None,
    ) -> AllocationDetail:
        return AllocationDetail(
            id=allocation.id,
            project_id=allocation.project_id,
            project_name=project_name,
            person_id=allocation.person_id,
            person_name=person_name,
            role_type_id=allocation.role_type_id,
            role_type_name=role_type_name,
            requirement_id=allocation.requirement_id,
            allocation_percentage=allocation.allocation_percentage,
            start_date=allocation.start_date,
            end_date=allocation.end_date,
        )

    def list_allocations_detailed(
        self,
        *,
        project_id: UUID | None = None,
        person_id: UUID | None = None,
    ) -> list[AllocationDetail]:
        conditions = []
        if project_id is not None:
            conditions.append(ProjectAllocation.project_id == project_id)
        if person_id is not None:
            conditions.append(ProjectAllocation.person_id == person_id)

        query = self._allocations_detailed_query()
        if conditions:
            query = query.where(and_(*conditions))
        rows = self.db.execute(
            query.order_by(ProjectAllocation.start_date.asc(), ProjectAllocation.created_at.asc())
        ).all()
        return [self._to_allocation_detail(*row) for row in rows]

    def list_allocations_overlapping(
        self,
        *,
        start_date: date,
        end_date: date,
        person_id: UUID | None = None,
    ) -> list[AllocationDetail]:
        conditions = [
            ProjectAllocation.end_date >= start_date,
            ProjectAllocation.start_date <= end_date,
        ]
        if person_id is not None:
            conditions.append(ProjectAllocation.person_id == person_id)

        rows = self.db.execute(
            self._allocations_detailed_query()
            .where(and_(*conditions))
            .order_by(ProjectAllocation.start_date.asc(), ProjectAllocation.created_at.asc())
        ).all()
        return [self._to_allocation_detail(*row) for row in rows]

    def get_allocation_detailed(self, allocation_id: UUID) -> AllocationDetail | None:
        row = self.db.execute(
            self._allocations_detailed_query().where(ProjectAllocation.id == allocation_id)
        ).first()
        if row is None:
            return None
        return self._to_allocation_detail(*row)

    def get_allocation(self, allocation_id: UUID) -> ProjectAllocation | None:
        return self.db.scalar(select(ProjectAllocation).where(ProjectAllocation.id == allocation_id))

    def add_allocation(self, allocation: ProjectAllocation) -> ProjectAllocation:
        self.db.add(allocation)
        self.db.flush()
        return allocation

    def delete_allocation(self, allocation: ProjectAllocation) -> None:
        self.db.delete(allocation)
        self.db.flush()

    def allocation_count_for_person(self, person_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count()).select_from(ProjectAllocation).where(ProjectAllocation.person_id == person_id)
            )
            or 0
        )

    def allocation_count_for_project(self, project_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(ProjectAllocation)
                .where(ProjectAllocation.project_id == project_id)
            )
            or 0
        )

    def allocation_count_for_role_type(self, role_type_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(ProjectAllocation)
                .where(ProjectAllocation.role_type_id == role_type_id)
            )
            or 0
        )

    def allocation_count_for_requirement(self, requirement_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(ProjectAllocation)
                .where(ProjectAllocation.requirement_id == requirement_id)
            )
            or 0
        )

    # ---------- Leave periods ----------
    def _leave_detailed_query(self):
        return (
            select(LeavePeriod, Person.name, RoleType.name)
            .join(Person, Person.id == LeavePeriod.person_id)
            .outerjoin(RoleType, RoleType.id == Person.role_type_id)
        )

    @staticmethod
    def _to_leave_detail(leave: LeavePeriod, person_name: str, role_type_name: str | None) -> LeaveDetail:
        return LeaveDetail(
            id=leave.id,
            person_id=leave.person_id,
            person_name=person_name,
            role_type_name=role_type_name,
            start_date=leave.start_date,
            end_date=leave.end_date,
            leave_type=leave.leave_type,
            notes=leave.notes,
            status=leave.status,
        )

    def list_leave_detailed(
        self,
        *,
        person_id: UUID | None = None,
        status: LeaveStatus | None = None,
    ) -> list[LeaveDetail]:
        conditions = []
        if person_id is not None:
            conditions.append(LeavePeriod.person_id == person_id)
        if status is not None:
            conditions.append(LeavePeriod.status == status)

        query = self._leave_detailed_query()
        if conditions:
            query = query.where(and_(*conditions))
        rows = self.db.execute(query.order_by(LeavePeriod.start_date.asc(), LeavePeriod.created_at.asc())).all()
        return [self._to_leave_detail(*row) for row in rows]

    def get_leave_detailed(self, leave_id: UUID) -> LeaveDetail | None:
        row = self.db.execute(self._leave_detailed_query().where(LeavePeriod.id == leave_id)).first()
        if row is None:
            return None
        return self._to_leave_detail(*row)

    def get_leave_period(self, leave_id: UUID) -> LeavePeriod | None:
        return self.db.scalar(select(LeavePeriod).where(LeavePeriod.id == leave_id))

    def add_leave_period(self, leave: LeavePeriod) -> LeavePeriod:
        self.db.add(leave)
        self.db.flush()
        return leave

    def delete_leave_period(self, leave: LeavePeriod) -> None:
        self.db.delete(leave)
        self.db.flush()

    def delete_leave_for_person(self, person_id: UUID) -> None:
        self.db.execute(delete(LeavePeriod).where(LeavePeriod.person_id == person_id))
        self.db.flush()
