"""Dashboard counters and financial statistics queries."""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.errors import ErrorKind, classify_exception
from djagency.core.retry import read_retry
from djagency.models import Contract, Event, Payment, Profile, ProfileRole
from djagency.schemas.financial import DashboardAnalytics
from djagency.services.events import list_events_for_profile
from djagency.services.financial import FinancialRecord, FinancialStats, aggregate_financial_stats
from djagency.services.payments import list_payments_for_profile

logger = logging.getLogger(__name__)


@read_retry()
async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return int(result.scalar_one() or 0)


async def get_dashboard_analytics(db: AsyncSession) -> DashboardAnalytics:
    """
    Record counts for the admin dashboard.

    Read failures degrade to zeros with the error set; authorization
    failures propagate.
    """
    try:
        return DashboardAnalytics(
            total_djs=await _count(
                db, select(func.count(Profile.id)).where(Profile.role == ProfileRole.DJ.value)
            ),
            total_contracts=await _count(db, select(func.count(Contract.id))),
            total_events=await _count(db, select(func.count(Event.id))),
            total_payments=await _count(db, select(func.count(Payment.id))),
            pending_contracts=await _count(
                db, select(func.count(Contract.id)).where(Contract.signed.is_(False))
            ),
        )
    except Exception as e:
        if classify_exception(e) == ErrorKind.UNAUTHORIZED:
            raise
        logger.warning(f"Dashboard analytics unavailable: {e}")
        return DashboardAnalytics(error=str(e) or e.__class__.__name__)


async def event_financial_stats(db: AsyncSession, profile: Profile) -> FinancialStats:
    """Aggregate over the events visible to the profile."""
    events = await list_events_for_profile(db, profile)
    return aggregate_financial_stats(FinancialRecord.from_event(event) for event in events)


async def payment_financial_stats(db: AsyncSession, profile: Profile) -> FinancialStats:
    """Aggregate over the payments visible to the profile."""
    payments = await list_payments_for_profile(db, profile)
    return aggregate_financial_stats(FinancialRecord.from_payment(payment) for payment in payments)
