"""Timeline column generation and window navigation."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.analytics_service import AnalyticsService
from staffplan.services.timeline_layout import Granularity, ShiftDirection

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("/columns")
def get_timeline_columns(
    start_date: date | None = None,
    end_date: date | None = None,
    granularity: Granularity = Query(default=Granularity.MONTH),
    shift: ShiftDirection | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Columns for a window; without dates the default planning window is used."""

    service = AnalyticsService(db)
    return service.timeline_columns(
        start_date=start_date,
        end_date=end_date,
        granularity=granularity,
        shift=shift,
    )
