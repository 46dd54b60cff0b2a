"""Top-level API router."""

from fastapi import APIRouter

from sales_dashboard.api.routes.auth import router as auth_router
from sales_dashboard.api.routes.branches import router as branches_router
from sales_dashboard.api.routes.dashboards import router as dashboards_router
from sales_dashboard.api.routes.entries import router as entries_router
from sales_dashboard.api.routes.health import router as health_router
from sales_dashboard.api.routes.me import router as me_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(me_router)
api_router.include_router(branches_router)
api_router.include_router(entries_router)
api_router.include_router(dashboards_router)
