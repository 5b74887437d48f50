"""Dashboard summary endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session
from staffplan.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
def get_dashboard(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return AnalyticsService(db).dashboard()
