"""Timeline layout math: columns, proportional positions and row packing."""

from __future__ import annotations

import calendar
import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID

from staffplan.models.views import AllocationDetail, LeaveDetail, RequirementDetail
from staffplan.services.allocation_analytics import DEFAULT_HEALTHY_THRESHOLD, AllocationBand, allocation_band

MIN_BLOCK_WIDTH = 150.0
MIN_SLOT_ALLOCATION_WIDTH = 20.0
MIN_BLOCK_HEIGHT = 60
SLOT_HEIGHT = 30
BLOCK_PADDING = 20
BLOCK_MARGIN = 32


class Granularity(str, enum.Enum):
    WEEK = "week"
    MONTH = "month"


class TimelineItemKind(str, enum.Enum):
    ALLOCATION = "allocation"
    LEAVE = "leave"


class ShiftDirection(str, enum.Enum):
    PREV = "prev"
    NEXT = "next"


@dataclass(slots=True)
class TimelineConfig:
    start_date: date
    end_date: date
    granularity: Granularity = Granularity.MONTH


@dataclass(slots=True)
class TimelineColumn:
    starts_on: date
    label: str
    full_label: str


@dataclass(slots=True)
class ItemPosition:
    left: float
    width: float


@dataclass(slots=True)
class TimelineItem:
    id: str
    title: str
    start_date: date
    end_date: date
    kind: TimelineItemKind
    percentage: int | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class PositionedItem:
    item: TimelineItem
    position: ItemPosition
    band: AllocationBand | None
    tooltip: str


@dataclass(slots=True)
class SlotAllocation:
    allocation_id: UUID
    person_id: UUID | None
    person_name: str | None
    allocation_percentage: int
    start_date: date
    end_date: date
    offset: float
    width: float


@dataclass(slots=True)
class RequirementSlot:
    id: str
    requirement_id: UUID
    position_index: int
    role_type_name: str
    start_date: date
    end_date: date
    allocation: SlotAllocation | None = None


@dataclass(slots=True)
class RequirementBlock:
    requirement: RequirementDetail
    allocations: list[AllocationDetail]
    slots: list[RequirementSlot]
    position: ItemPosition
    display_width: float
    height: int


@dataclass(slots=True)
class ProjectTimeline:
    config: TimelineConfig
    columns: list[TimelineColumn]
    timeline_width: float
    blocks: list[RequirementBlock]
    total_height: int


@dataclass(slots=True)
class PersonTimeline:
    config: TimelineConfig
    columns: list[TimelineColumn]
    timeline_width: float
    rows: list[list[PositionedItem]]


def _first_of_month(value: date) -> date:
    return date(value.year, value.month, 1)


def _add_months(month_start: date, months: int) -> date:
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _last_of_month(value: date) -> date:
    return date(value.year, value.month, calendar.monthrange(value.year, value.month)[1])


def generate_timeline_columns(config: TimelineConfig) -> list[TimelineColumn]:
    """Week columns start on the Monday on or before ``start_date``; month columns on the 1st."""

    columns: list[TimelineColumn] = []
    if config.end_date < config.start_date:
        return columns

    if config.granularity is Granularity.WEEK:
        current = config.start_date - timedelta(days=config.start_date.weekday())
        while current <= config.end_date:
            columns.append(
                TimelineColumn(
                    starts_on=current,
                    label=current.strftime("%b %d"),
                    full_label=current.strftime("%b %d, %Y"),
                )
            )
            current += timedelta(days=7)
        return columns

    current = _first_of_month(config.start_date)
    while current <= config.end_date:
        columns.append(
            TimelineColumn(
                starts_on=current,
                label=current.strftime("%b %Y"),
                full_label=current.strftime("%B %Y"),
            )
        )
        current = _add_months(current, 1)
    return columns


def calculate_item_position(
    item_start: date,
    item_end: date,
    timeline_start: date,
    timeline_end: date,
    total_width: float,
) -> ItemPosition:
    """Map a date range onto ``total_width`` pixels of the timeline.

    The start is clamped to the timeline start and the end to the timeline
    end; every item is at least one day wide.
    """

    total_days = (timeline_end - timeline_start).days
    if total_days <= 0:
        return ItemPosition(left=0.0, width=0.0)

    item_start_days = max(0, (item_start - timeline_start).days)
    item_end_days = min(total_days, (item_end - timeline_start).days)
    item_duration = max(1, item_end_days - item_start_days)

    left = item_start_days / total_days * total_width
    width = item_duration / total_days * total_width
    return ItemPosition(left=left, width=width)


def group_timeline_items(items: Sequence[TimelineItem]) -> list[list[TimelineItem]]:
    """Pack items into rows so no two items in a row overlap.

    Items are placed greedily by start date into the first row that has room.
    Touching items (one ends the day the next starts) share a row.
    """

    rows: list[list[TimelineItem]] = []
    for item in sorted(items, key=lambda row: row.start_date):
        for row in rows:
            if not any(
                item.start_date < existing.end_date and item.end_date > existing.start_date for existing in row
            ):
                row.append(item)
                break
        else:
            rows.append([item])
    return rows


def default_timeline_range(today: date) -> tuple[date, date]:
    """Two months back through the end of the third month ahead."""

    this_month = _first_of_month(today)
    start_date = _add_months(this_month, -2)
    end_date = _last_of_month(_add_months(this_month, 3))
    return start_date, end_date


def shift_timeline_window(start_date: date, end_date: date, direction: ShiftDirection) -> tuple[date, date]:
    span = end_date - start_date
    if direction is ShiftDirection.PREV:
        return start_date - span, end_date - span
    return start_date + span, end_date + span


def format_timeline_tooltip(item: TimelineItem) -> str:
    duration = (item.end_date - item.start_date).days + 1
    tooltip = (
        f"{item.title}\n{item.start_date.strftime('%b %d')} - {item.end_date.strftime('%b %d')} ({duration} days)"
    )
    if item.percentage:
        tooltip += f"\n{item.percentage}% allocation"
    return tooltip


def position_item(
    item: TimelineItem,
    config: TimelineConfig,
    total_width: float,
    *,
    healthy_threshold: int = DEFAULT_HEALTHY_THRESHOLD,
) -> PositionedItem:
    band = None
    if item.kind is TimelineItemKind.ALLOCATION:
        band = allocation_band(item.percentage, healthy_threshold=healthy_threshold)
    return PositionedItem(
        item=item,
        position=calculate_item_position(
            item.start_date,
            item.end_date,
            config.start_date,
            config.end_date,
            total_width,
        ),
        band=band,
        tooltip=format_timeline_tooltip(item),
    )


def _slot_allocation(
    allocation: AllocationDetail,
    requirement_start: date,
    requirement_end: date,
    block_width: float,
) -> SlotAllocation:
    requirement_days = (requirement_end - requirement_start).days
    if requirement_days <= 0:
        offset = 0.0
        width = max(MIN_SLOT_ALLOCATION_WIDTH, block_width)
    else:
        offset_days = max(0, (allocation.start_date - requirement_start).days)
        overlap_days = (min(allocation.end_date, requirement_end) - max(allocation.start_date, requirement_start)).days
        offset = offset_days / requirement_days * block_width
        width = max(MIN_SLOT_ALLOCATION_WIDTH, overlap_days / requirement_days * block_width)

    return SlotAllocation(
        allocation_id=allocation.id,
        person_id=allocation.person_id,
        person_name=allocation.person_name,
        allocation_percentage=allocation.allocation_percentage or 0,
        start_date=allocation.start_date,
        end_date=allocation.end_date,
        offset=offset,
        width=width,
    )


def block_height(slot_count: int) -> int:
    return max(MIN_BLOCK_HEIGHT, slot_count * SLOT_HEIGHT + BLOCK_PADDING)


def build_requirement_block(
    requirement: RequirementDetail,
    allocations: Sequence[AllocationDetail],
    config: TimelineConfig,
    total_width: float,
) -> RequirementBlock | None:
    """Expand a requirement into one slot per required person.

    Linked allocations fill slots in order. Returns ``None`` for requirements
    without dates or role type.
    """

    if requirement.start_date is None or requirement.end_date is None or not requirement.role_type_name:
        return None

    linked = [
        allocation
        for allocation in allocations
        if allocation.requirement_id == requirement.id
        and allocation.start_date is not None
        and allocation.end_date is not None
    ]
    position = calculate_item_position(
        requirement.start_date,
        requirement.end_date,
        config.start_date,
        config.end_date,
        total_width,
    )

    slots: list[RequirementSlot] = []
    for index in range(requirement.required_count or 1):
        allocation = linked[index] if index < len(linked) else None
        slots.append(
            RequirementSlot(
                id=f"req-{requirement.id}-{index}",
                requirement_id=requirement.id,
                position_index=index,
                role_type_name=requirement.role_type_name,
                start_date=requirement.start_date,
                end_date=requirement.end_date,
                allocation=(
                    _slot_allocation(allocation, requirement.start_date, requirement.end_date, position.width)
                    if allocation is not None
                    else None
                ),
            )
        )

    return RequirementBlock(
        requirement=requirement,
        allocations=linked,
        slots=slots,
        position=position,
        display_width=max(position.width, MIN_BLOCK_WIDTH),
        height=block_height(len(slots)),
    )


def build_project_timeline(
    requirements: Sequence[RequirementDetail],
    allocations: Sequence[AllocationDetail],
    config: TimelineConfig,
    *,
    column_width: float,
) -> ProjectTimeline:
    columns = generate_timeline_columns(config)
    timeline_width = len(columns) * column_width

    blocks: list[RequirementBlock] = []
    for requirement in requirements:
        block = build_requirement_block(requirement, allocations, config, timeline_width)
        if block is not None:
            blocks.append(block)

    return ProjectTimeline(
        config=config,
        columns=columns,
        timeline_width=timeline_width,
        blocks=blocks,
        total_height=sum(block.height + BLOCK_MARGIN for block in blocks),
    )


def build_person_timeline(
    allocations: Sequence[AllocationDetail],
    leave_periods: Sequence[LeaveDetail],
    config: TimelineConfig,
    *,
    column_width: float,
    healthy_threshold: int = DEFAULT_HEALTHY_THRESHOLD,
) -> PersonTimeline:
    columns = generate_timeline_columns(config)
    timeline_width = len(columns) * column_width

    items: list[TimelineItem] = []
    for allocation in allocations:
        if allocation.start_date is None or allocation.end_date is None:
            continue
        items.append(
            TimelineItem(
                id=str(allocation.id),
                title=allocation.project_name,
                start_date=allocation.start_date,
                end_date=allocation.end_date,
                kind=TimelineItemKind.ALLOCATION,
                percentage=allocation.allocation_percentage,
                metadata={
                    "project_id": str(allocation.project_id),
                    "role_type_name": allocation.role_type_name,
                },
            )
        )
    for leave in leave_periods:
        items.append(
            TimelineItem(
                id=str(leave.id),
                title=f"{leave.leave_type.capitalize()} leave",
                start_date=leave.start_date,
                end_date=leave.end_date,
                kind=TimelineItemKind.LEAVE,
                metadata={"status": leave.status.value},
            )
        )

    rows = [
        [position_item(item, config, timeline_width, healthy_threshold=healthy_threshold) for item in row]
        for row in group_timeline_items(items)
    ]
    return PersonTimeline(config=config, columns=columns, timeline_width=timeline_width, rows=rows)
