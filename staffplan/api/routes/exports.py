"""Export endpoint for report datasets."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/exports", tags=["exports"])


def _service(db: Session) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/{report_key}")
def export_report(
    report_key: str,
    format: str = Query(default="xlsx"),
    project_id: UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> Response:
    service = _service(db)
    exported = service.export_report(
        report_key=report_key,
        format_name=format,
        project_id=project_id,
        start_date=start_date,
        end_date=end_date,
    )
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
