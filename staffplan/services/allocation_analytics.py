"""Interval and percentage reasoning over allocations and requirements.

Everything here is a pure function over in-memory records: no session, no
settings lookups. Date ranges are inclusive on both ends.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from staffplan.models.views import AllocationDetail, PersonWithRole, RequirementDetail

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")

DEFAULT_UTILIZATION_CAP = 100
DEFAULT_HEALTHY_THRESHOLD = 80


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2)


class ProjectStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"


class AllocationBand(str, enum.Enum):
    OVER_ALLOCATED = "over_allocated"
    HEALTHY = "healthy"
    UNDER_ALLOCATED = "under_allocated"


class CandidateMatch(str, enum.Enum):
    PERFECT_MATCH = "Perfect Match"
    AVAILABLE = "Available"
    BUSY_SAME_ROLE = "Busy - Same Role"
    BUSY_DIFFERENT_ROLE = "Busy - Different Role"


# Lower rank sorts first.
_CANDIDATE_RANK: dict[CandidateMatch, int] = {
    CandidateMatch.PERFECT_MATCH: 0,
    CandidateMatch.AVAILABLE: 1,
    CandidateMatch.BUSY_SAME_ROLE: 2,
    CandidateMatch.BUSY_DIFFERENT_ROLE: 3,
}


@dataclass(slots=True)
class UtilizationRow:
    person_id: UUID
    person_name: str
    role_type_id: UUID
    role_type_name: str
    utilization_percentage: int


@dataclass(slots=True)
class RequirementGap:
    requirement_id: UUID
    role_type_id: UUID
    role_type_name: str | None
    required_count: int
    allocated_count: Decimal
    gap_count: Decimal
    start_date: date
    end_date: date


@dataclass(slots=True)
class OverAllocation:
    person_id: UUID
    person_name: str | None
    total_allocation: int
    conflicting_allocations: tuple[AllocationDetail, AllocationDetail]


@dataclass(slots=True)
class AllocationCandidate:
    person: PersonWithRole
    current_utilization: int
    is_available: bool
    matches_role: bool
    match: CandidateMatch


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive overlap test: ranges sharing a single day overlap."""

    return a_start <= b_end and a_end >= b_start


def project_status(start_date: date, end_date: date, today: date) -> ProjectStatus:
    if today < start_date:
        return ProjectStatus.NOT_STARTED
    if today > end_date:
        return ProjectStatus.COMPLETED
    return ProjectStatus.ACTIVE


def allocation_band(
    percentage: int | None,
    *,
    healthy_threshold: int = DEFAULT_HEALTHY_THRESHOLD,
) -> AllocationBand:
    if percentage and percentage > 100:
        return AllocationBand.OVER_ALLOCATED
    if percentage and percentage >= healthy_threshold:
        return AllocationBand.HEALTHY
    return AllocationBand.UNDER_ALLOCATED


def person_utilization(
    allocations: Iterable[AllocationDetail],
    start_date: date,
    end_date: date,
    *,
    cap: int = DEFAULT_UTILIZATION_CAP,
) -> int:
    """Sum allocation percentages overlapping the window, capped at ``cap``.

    Any overlap counts the full percentage; allocations are not pro-rated by
    the number of overlapping days.
    """

    total = 0
    for allocation in allocations:
        if allocation.start_date is None or allocation.end_date is None:
            continue
        if intervals_overlap(allocation.start_date, allocation.end_date, start_date, end_date):
            total += allocation.allocation_percentage or 0
    return min(total, cap)


def utilization_by_person(
    people: Sequence[PersonWithRole],
    allocations: Sequence[AllocationDetail],
    start_date: date,
    end_date: date,
    *,
    cap: int = DEFAULT_UTILIZATION_CAP,
) -> list[UtilizationRow]:
    by_person: dict[UUID, list[AllocationDetail]] = {}
    for allocation in allocations:
        if allocation.person_id is None:
            continue
        by_person.setdefault(allocation.person_id, []).append(allocation)

    rows = [
        UtilizationRow(
            person_id=person.id,
            person_name=person.name,
            role_type_id=person.role_type_id,
            role_type_name=person.role_type_name,
            utilization_percentage=person_utilization(
                by_person.get(person.id, []),
                start_date,
                end_date,
                cap=cap,
            ),
        )
        for person in people
    ]
    rows.sort(key=lambda row: (row.person_name.lower(), str(row.person_id)))
    return rows


def average_utilization(rows: Sequence[UtilizationRow]) -> Decimal:
    if not rows:
        return ZERO
    total = sum((Decimal(row.utilization_percentage) for row in rows), ZERO)
    return _q2(total / Decimal(len(rows)))


def _matching_allocations(
    requirement: RequirementDetail,
    allocations: Sequence[AllocationDetail],
) -> list[AllocationDetail]:
    direct = [allocation for allocation in allocations if allocation.requirement_id == requirement.id]
    # Allocations without a requirement link still cover requirements of the
    # same role type whose window they overlap.
    legacy = [
        allocation
        for allocation in allocations
        if allocation.requirement_id is None
        and allocation.role_type_id == requirement.role_type_id
        and allocation.start_date is not None
        and allocation.end_date is not None
        and intervals_overlap(
            allocation.start_date,
            allocation.end_date,
            requirement.start_date,
            requirement.end_date,
        )
    ]
    return direct + legacy


def project_gaps(
    requirements: Sequence[RequirementDetail],
    allocations: Sequence[AllocationDetail],
) -> list[RequirementGap]:
    """Report requirements whose allocated headcount falls short.

    Allocated headcount is the sum of matching allocation percentages divided
    by 100, so two people at 50% fill one required position.
    """

    gaps: list[RequirementGap] = []
    for requirement in requirements:
        if requirement.start_date is None or requirement.end_date is None or requirement.role_type_id is None:
            continue

        matching = _matching_allocations(requirement, allocations)
        allocated_count = _q2(
            sum((Decimal(allocation.allocation_percentage or 0) for allocation in matching), ZERO) / HUNDRED
        )
        required_count = requirement.required_count or 0
        gap_count = _q2(Decimal(required_count) - allocated_count)
        if gap_count <= ZERO:
            continue

        gaps.append(
            RequirementGap(
                requirement_id=requirement.id,
                role_type_id=requirement.role_type_id,
                role_type_name=requirement.role_type_name,
                required_count=required_count,
                allocated_count=allocated_count,
                gap_count=gap_count,
                start_date=requirement.start_date,
                end_date=requirement.end_date,
            )
        )
    return gaps


def over_allocated_people(allocations: Sequence[AllocationDetail]) -> list[OverAllocation]:
    """Find pairs of overlapping allocations of one person summing above 100%.

    Every offending pair is reported separately, so a person can appear more
    than once.
    """

    grouped: dict[UUID, list[AllocationDetail]] = {}
    for allocation in allocations:
        if allocation.person_id is None or allocation.start_date is None or allocation.end_date is None:
            continue
        grouped.setdefault(allocation.person_id, []).append(allocation)

    conflicts: list[OverAllocation] = []
    for person_id, rows in grouped.items():
        for i, first in enumerate(rows):
            for second in rows[i + 1 :]:
                if not intervals_overlap(first.start_date, first.end_date, second.start_date, second.end_date):
                    continue
                total = (first.allocation_percentage or 0) + (second.allocation_percentage or 0)
                if total > 100:
                    conflicts.append(
                        OverAllocation(
                            person_id=person_id,
                            person_name=first.person_name,
                            total_allocation=total,
                            conflicting_allocations=(first, second),
                        )
                    )
    return conflicts


def rank_allocation_candidates(
    people: Sequence[PersonWithRole],
    utilization: Mapping[UUID, int],
    role_type_id: UUID | None,
) -> list[AllocationCandidate]:
    """Order people for filling a position of ``role_type_id``.

    Available people with the requested role come first, then available people
    with another role, then busy people with the role, then everyone else.
    Within a group, lower utilization wins.
    """

    candidates: list[AllocationCandidate] = []
    for person in people:
        current = utilization.get(person.id, 0)
        is_available = current < 100
        matches_role = role_type_id is not None and person.role_type_id == role_type_id
        if is_available:
            match = CandidateMatch.PERFECT_MATCH if matches_role else CandidateMatch.AVAILABLE
        else:
            match = CandidateMatch.BUSY_SAME_ROLE if matches_role else CandidateMatch.BUSY_DIFFERENT_ROLE
        candidates.append(
            AllocationCandidate(
                person=person,
                current_utilization=current,
                is_available=is_available,
                matches_role=matches_role,
                match=match,
            )
        )

    candidates.sort(
        key=lambda row: (
            _CANDIDATE_RANK[row.match],
            row.current_utilization,
            row.person.name.lower(),
            str(row.person.id),
        )
    )
    return candidates
