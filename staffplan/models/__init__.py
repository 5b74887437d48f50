"""ORM model package."""

from staffplan.models.entities import (
    LeavePeriod,
    LeaveStatus,
    Person,
    Project,
    ProjectAllocation,
    ProjectResourceRequirement,
    RoleType,
)

__all__ = [
    "LeavePeriod",
    "LeaveStatus",
    "Person",
    "Project",
    "ProjectAllocation",
    "ProjectResourceRequirement",
    "RoleType",
]
