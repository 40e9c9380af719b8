"""
Financial Router

Revenue, commission and pending figures, scoped to the current user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.auth import get_current_profile, require_admin
from djagency.core.database import get_db
from djagency.models import Profile
from djagency.schemas.financial import DashboardAnalytics, FinancialStatsResponse
from djagency.services import analytics as analytics_service

router = APIRouter(prefix="/financial", tags=["financial"])
analytics_router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/events/stats", response_model=FinancialStatsResponse)
async def event_stats(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Statistics over event cache values (admin: all, producer: own, dj: played)."""
    return await analytics_service.event_financial_stats(db, profile)


@router.get("/payments/stats", response_model=FinancialStatsResponse)
async def payment_stats(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Statistics over payments (admin: all, producer: own, dj: played)."""
    return await analytics_service.payment_financial_stats(db, profile)


@analytics_router.get("/dashboard", response_model=DashboardAnalytics)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """Record counts for the admin dashboard."""
    return await analytics_service.get_dashboard_analytics(db)
