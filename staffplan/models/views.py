"""Joined read records returned by repository "detailed" queries.

Each record flattens a table row together with the display names of the rows
it references, so analytics code can work on plain in-memory lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from staffplan.models.entities import LeaveStatus


@dataclass(slots=True)
class PersonWithRole:
    id: UUID
    name: str
    email: str | None
    role_type_id: UUID
    role_type_name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class RequirementDetail:
    id: UUID
    project_id: UUID
    project_name: str
    role_type_id: UUID | None
    role_type_name: str | None
    required_count: int | None
    start_date: date | None
    end_date: date | None


@dataclass(slots=True)
class AllocationDetail:
    id: UUID
    project_id: UUID
    project_name: str
    person_id: UUID | None
    person_name: str | None
    role_type_id: UUID | None
    role_type_name: str | None
    requirement_id: UUID | None
    allocation_percentage: int | None
    start_date: date | None
    end_date: date | None


@dataclass(slots=True)
class LeaveDetail:
    id: UUID
    person_id: UUID
    person_name: str
    role_type_name: str | None
    start_date: date
    end_date: date
    leave_type: str
    notes: str | None
    status: LeaveStatus
