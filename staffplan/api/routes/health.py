"""Health check endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from staffplan.db.dependencies import get_db_session

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db_session)) -> dict[str, str]:
    """Liveness endpoint that also confirms the database answers."""

    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
