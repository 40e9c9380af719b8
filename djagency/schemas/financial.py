"""Schemas for financial statistics and dashboard analytics."""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class FinancialStatsResponse(BaseModel):
    """Aggregated revenue and commission figures."""
    total_revenue: Decimal
    paid_revenue: Decimal
    pending_revenue: Decimal
    pending_count: int
    total_commission: Decimal
    net_revenue: Decimal

    class Config:
        from_attributes = True


class DashboardAnalytics(BaseModel):
    """Record counts for the admin dashboard. error is set when counting failed."""
    total_djs: int = 0
    total_contracts: int = 0
    total_events: int = 0
    total_payments: int = 0
    pending_contracts: int = 0
    error: Optional[str] = None
