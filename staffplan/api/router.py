"""Top-level API router."""

from fastapi import APIRouter

from staffplan.api.routes.analytics import router as analytics_router
from staffplan.api.routes.dashboard import router as dashboard_router
from staffplan.api.routes.exports import router as exports_router
from staffplan.api.routes.health import router as health_router
from staffplan.api.routes.leave import router as leave_router
from staffplan.api.routes.people import router as people_router
from staffplan.api.routes.projects import router as projects_router
from staffplan.api.routes.role_types import router as role_types_router
from staffplan.api.routes.timelines import router as timelines_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(role_types_router)
api_router.include_router(people_router)
api_router.include_router(projects_router)
api_router.include_router(leave_router)
api_router.include_router(analytics_router)
api_router.include_router(timelines_router)
api_router.include_router(dashboard_router)
api_router.include_router(exports_router)
