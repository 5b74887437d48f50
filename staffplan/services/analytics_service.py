"""Utilization, coverage, timeline, dashboard and export service layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from staffplan.core.config import get_settings
from staffplan.repositories.planning_repository import PlanningRepository
from staffplan.services.allocation_analytics import (
    AllocationCandidate,
    OverAllocation,
    RequirementGap,
    UtilizationRow,
    average_utilization,
    over_allocated_people,
    person_utilization,
    project_gaps,
    rank_allocation_candidates,
    utilization_by_person,
)
from staffplan.services.planning_service import PlanningService
from staffplan.services.timeline_layout import (
    Granularity,
    PersonTimeline,
    PositionedItem,
    ProjectTimeline,
    RequirementBlock,
    ShiftDirection,
    TimelineColumn,
    TimelineConfig,
    build_person_timeline,
    build_project_timeline,
    default_timeline_range,
    generate_timeline_columns,
    shift_timeline_window,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


def _resolve_window(start_date: date | None, end_date: date | None, *, today: date) -> tuple[date, date]:
    window_start = start_date or today
    window_end = end_date or window_start
    if window_end < window_start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be greater than or equal to start_date.",
        )
    return window_start, window_end


class AnalyticsService:
    """Service applying allocation analytics and timeline layout to stored records."""

    def __init__(self, db: Session, *, today: date | None = None) -> None:
        self.db = db
        self.repo = PlanningRepository(db)
        self.planning = PlanningService(db)
        self.settings = get_settings()
        self.today = today or date.today()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_utilization_row(row: UtilizationRow) -> dict[str, object]:
        return {
            "person_id": str(row.person_id),
            "person_name": row.person_name,
            "role_type_id": str(row.role_type_id),
            "role_type_name": row.role_type_name,
            "utilization_percentage": row.utilization_percentage,
        }

    @staticmethod
    def serialize_gap(gap: RequirementGap) -> dict[str, object]:
        return {
            "requirement_id": str(gap.requirement_id),
            "role_type_id": str(gap.role_type_id),
            "role_type_name": gap.role_type_name,
            "required_count": gap.required_count,
            "allocated_count": str(gap.allocated_count),
            "gap_count": str(gap.gap_count),
            "start_date": gap.start_date.isoformat(),
            "end_date": gap.end_date.isoformat(),
        }

    @staticmethod
    def serialize_over_allocation(conflict: OverAllocation) -> dict[str, object]:
        return {
            "person_id": str(conflict.person_id),
            "person_name": conflict.person_name,
            "total_allocation": conflict.total_allocation,
            "conflicting_allocations": [
                PlanningService.serialize_allocation(allocation) for allocation in conflict.conflicting_allocations
            ],
        }

    @staticmethod
    def serialize_candidate(candidate: AllocationCandidate) -> dict[str, object]:
        return {
            **PlanningService.serialize_person(candidate.person),
            "current_utilization": candidate.current_utilization,
            "is_available": candidate.is_available,
            "matches_role": candidate.matches_role,
            "match_label": candidate.match.value,
        }

    @staticmethod
    def serialize_column(column: TimelineColumn) -> dict[str, object]:
        return {
            "date": column.starts_on.isoformat(),
            "label": column.label,
            "full_label": column.full_label,
        }

    @staticmethod
    def serialize_config(config: TimelineConfig) -> dict[str, object]:
        return {
            "start_date": config.start_date.isoformat(),
            "end_date": config.end_date.isoformat(),
            "granularity": config.granularity.value,
        }

    @staticmethod
    def serialize_block(block: RequirementBlock) -> dict[str, object]:
        return {
            "requirement": PlanningService.serialize_requirement(block.requirement),
            "left": block.position.left,
            "width": block.position.width,
            "display_width": block.display_width,
            "height": block.height,
            "slots": [
                {
                    "id": slot.id,
                    "requirement_id": str(slot.requirement_id),
                    "position_index": slot.position_index,
                    "role_type_name": slot.role_type_name,
                    "start_date": slot.start_date.isoformat(),
                    "end_date": slot.end_date.isoformat(),
                    "allocation": (
                        {
                            "allocation_id": str(slot.allocation.allocation_id),
                            "person_id": str(slot.allocation.person_id) if slot.allocation.person_id else None,
                            "person_name": slot.allocation.person_name,
                            "allocation_percentage": slot.allocation.allocation_percentage,
                            "start_date": slot.allocation.start_date.isoformat(),
                            "end_date": slot.allocation.end_date.isoformat(),
                            "offset": slot.allocation.offset,
                            "width": slot.allocation.width,
                        }
                        if slot.allocation is not None
                        else None
                    ),
                }
                for slot in block.slots
            ],
        }

    @staticmethod
    def serialize_positioned_item(positioned: PositionedItem) -> dict[str, object]:
        item = positioned.item
        return {
            "id": item.id,
            "title": item.title,
            "type": item.kind.value,
            "start_date": item.start_date.isoformat(),
            "end_date": item.end_date.isoformat(),
            "percentage": item.percentage,
            "metadata": item.metadata,
            "left": positioned.position.left,
            "width": positioned.position.width,
            "band": positioned.band.value if positioned.band is not None else None,
            "tooltip": positioned.tooltip,
        }

    def serialize_project_timeline(self, timeline: ProjectTimeline) -> dict[str, object]:
        return {
            "config": self.serialize_config(timeline.config),
            "columns": [self.serialize_column(column) for column in timeline.columns],
            "timeline_width": timeline.timeline_width,
            "total_height": timeline.total_height,
            "requirements": [self.serialize_block(block) for block in timeline.blocks],
        }

    def serialize_person_timeline(self, timeline: PersonTimeline) -> dict[str, object]:
        return {
            "config": self.serialize_config(timeline.config),
            "columns": [self.serialize_column(column) for column in timeline.columns],
            "timeline_width": timeline.timeline_width,
            "rows": [[self.serialize_positioned_item(item) for item in row] for row in timeline.rows],
        }

    # ---------- Utilization ----------
    def person_utilization(
        self,
        *,
        person_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, object]:
        person = self.planning.get_person(person_id)
        window_start, window_end = _resolve_window(start_date, end_date, today=self.today)
        allocations = self.repo.list_allocations_overlapping(
            start_date=window_start,
            end_date=window_end,
            person_id=person.id,
        )
        return {
            "person_id": str(person.id),
            "person_name": person.name,
            "start_date": window_start.isoformat(),
            "end_date": window_end.isoformat(),
            "utilization_percentage": person_utilization(
                allocations,
                window_start,
                window_end,
                cap=self.settings.utilization_cap_percentage,
            ),
        }

    def _utilization_rows(self, window_start: date, window_end: date) -> list[UtilizationRow]:
        return utilization_by_person(
            self.repo.list_people_with_roles(),
            self.repo.list_allocations_overlapping(start_date=window_start, end_date=window_end),
            window_start,
            window_end,
            cap=self.settings.utilization_cap_percentage,
        )

    def utilization_report(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, object]:
        window_start, window_end = _resolve_window(start_date, end_date, today=self.today)
        rows = self._utilization_rows(window_start, window_end)
        return {
            "start_date": window_start.isoformat(),
            "end_date": window_end.isoformat(),
            "average_utilization": str(average_utilization(rows)),
            "items": [self.serialize_utilization_row(row) for row in rows],
        }

    # ---------- Coverage ----------
    def project_gaps(self, *, project_id: UUID) -> list[RequirementGap]:
        project = self.planning.get_project(project_id)
        gaps = project_gaps(
            self.repo.list_requirements_detailed(project.id),
            self.repo.list_allocations_detailed(project_id=project.id),
        )
        logger.debug("Project %s has %d unfilled requirements", project.id, len(gaps))
        return gaps

    def over_allocations(self) -> list[OverAllocation]:
        conflicts = over_allocated_people(self.repo.list_allocations_detailed())
        logger.debug("Detected %d over-allocated allocation pairs", len(conflicts))
        return conflicts

    def allocation_candidates(
        self,
        *,
        project_id: UUID,
        role_type_id: UUID | None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AllocationCandidate]:
        project = self.planning.get_project(project_id)
        window_start, window_end = _resolve_window(
            start_date or project.start_date,
            end_date or project.end_date,
            today=self.today,
        )
        rows = self._utilization_rows(window_start, window_end)
        return rank_allocation_candidates(
            self.repo.list_people_with_roles(),
            {row.person_id: row.utilization_percentage for row in rows},
            role_type_id,
        )

    # ---------- Timelines ----------
    def _timeline_config(
        self,
        start_date: date | None,
        end_date: date | None,
        granularity: Granularity,
        *,
        fallback: tuple[date, date],
    ) -> TimelineConfig:
        window_start = start_date or fallback[0]
        window_end = end_date or fallback[1]
        if window_end <= window_start:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Timeline end_date must be after start_date.",
            )
        return TimelineConfig(start_date=window_start, end_date=window_end, granularity=granularity)

    def timeline_columns(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        granularity: Granularity = Granularity.MONTH,
        shift: ShiftDirection | None = None,
    ) -> dict[str, object]:
        config = self._timeline_config(
            start_date,
            end_date,
            granularity,
            fallback=default_timeline_range(self.today),
        )
        if shift is not None:
            config.start_date, config.end_date = shift_timeline_window(config.start_date, config.end_date, shift)

        columns = generate_timeline_columns(config)
        return {
            "config": self.serialize_config(config),
            "columns": [self.serialize_column(column) for column in columns],
            "timeline_width": len(columns) * self.settings.timeline_column_width_px,
        }

    def project_timeline(
        self,
        *,
        project_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        granularity: Granularity = Granularity.MONTH,
    ) -> ProjectTimeline:
        project = self.planning.get_project(project_id)
        config = self._timeline_config(
            start_date,
            end_date,
            granularity,
            fallback=(project.start_date, project.end_date),
        )
        return build_project_timeline(
            self.repo.list_requirements_detailed(project.id),
            self.repo.list_allocations_detailed(project_id=project.id),
            config,
            column_width=self.settings.timeline_column_width_px,
        )

    def person_timeline(
        self,
        *,
        person_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        granularity: Granularity = Granularity.MONTH,
    ) -> PersonTimeline:
        person = self.planning.get_person(person_id)
        config = self._timeline_config(
            start_date,
            end_date,
            granularity,
            fallback=default_timeline_range(self.today),
        )
        return build_person_timeline(
            self.repo.list_allocations_detailed(person_id=person.id),
            self.repo.list_leave_detailed(person_id=person.id),
            config,
            column_width=self.settings.timeline_column_width_px,
            healthy_threshold=self.settings.healthy_allocation_threshold,
        )

    # ---------- Dashboard ----------
    def dashboard(self) -> dict[str, object]:
        rows = self._utilization_rows(self.today, self.today)
        recent = self.repo.list_recent_projects(self.settings.recent_projects_limit)
        return {
            "as_of": self.today.isoformat(),
            "active_projects": len(self.repo.list_projects_active_on(self.today)),
            "total_people": self.repo.person_count(),
            "role_types": self.repo.role_type_count(),
            "overall_utilization": str(average_utilization(rows)),
            "recent_projects": [
                PlanningService.serialize_project(project, today=self.today) for project in recent
            ],
        }

    # ---------- Exports ----------
    def _report_rows(
        self,
        *,
        report_key: str,
        project_id: UUID | None,
        start_date: date | None,
        end_date: date | None,
    ) -> list[dict[str, str]]:
        if report_key == "utilization":
            payload = self.utilization_report(start_date=start_date, end_date=end_date)
            return [{key: str(value) for key, value in row.items()} for row in payload["items"]]

        if report_key == "over-allocations":
            rows: list[dict[str, str]] = []
            for conflict in self.over_allocations():
                first, second = conflict.conflicting_allocations
                rows.append(
                    {
                        "person_id": str(conflict.person_id),
                        "person_name": conflict.person_name or "",
                        "total_allocation": str(conflict.total_allocation),
                        "first_allocation_id": str(first.id),
                        "first_project_name": first.project_name,
                        "second_allocation_id": str(second.id),
                        "second_project_name": second.project_name,
                    }
                )
            return rows

        if report_key == "gaps":
            if project_id is None:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="project_id is required for the gaps report.",
                )
            return [
                {key: "" if value is None else str(value) for key, value in self.serialize_gap(gap).items()}
                for gap in self.project_gaps(project_id=project_id)
            ]

        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unknown report_key for export.",
        )

    def export_report(
        self,
        *,
        report_key: str,
        format_name: str,
        project_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ExportFilePayload:
        normalized_key = report_key.strip().lower()
        normalized_format = format_name.strip().lower()
        if normalized_format not in {"csv", "xlsx"}:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="format must be one of: csv, xlsx.",
            )

        flattened = self._report_rows(
            report_key=normalized_key,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
        )
        fieldnames = list(flattened[0].keys()) if flattened else []
        base_filename = normalized_key if project_id is None else f"{normalized_key}-{project_id}"
        logger.info("Exporting %s report as %s (%d rows)", normalized_key, normalized_format, len(flattened))

        if normalized_format == "csv":
            import csv
            import io

            csv_bytes = b""
            if fieldnames:
                sio = io.StringIO()
                writer = csv.DictWriter(sio, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(flattened)
                csv_bytes = sio.getvalue().encode("utf-8")
            return ExportFilePayload(
                media_type="text/csv; charset=utf-8",
                filename=f"{base_filename}.csv",
                content=bytes(csv_bytes),
            )

        # XLSX
        from openpyxl import Workbook

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "report"
        if fieldnames:
            sheet.append(fieldnames)
            for row in flattened:
                sheet.append([row.get(column, "") for column in fieldnames])

        output = BytesIO()
        workbook.save(output)
        return ExportFilePayload(
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"{base_filename}.xlsx",
            content=output.getvalue(),
        )
