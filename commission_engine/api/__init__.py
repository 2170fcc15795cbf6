"""API router aggregation."""

from fastapi import APIRouter

from commission_engine.api.commissions import router as commissions_router
from commission_engine.api.establishments import router as establishments_router
from commission_engine.api.health import router as health_router
from commission_engine.api.leads import router as leads_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(leads_router)
api_router.include_router(commissions_router)
api_router.include_router(establishments_router)

__all__ = ["api_router"]
