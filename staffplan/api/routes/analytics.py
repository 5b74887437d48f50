"""Cross-project analytics endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _service(db: Session) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/over-allocations")
def list_over_allocations(db: Session = Depends(get_db_session)) -> dict[str, list[object]]:
    service = _service(db)
    return {"items": [service.serialize_over_allocation(conflict) for conflict in service.over_allocations()]}


@router.get("/utilization")
def get_utilization_report(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    return service.utilization_report(start_date=start_date, end_date=end_date)
