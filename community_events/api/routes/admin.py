"""
Administrative views: statistics and attendee counter reconciliation.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from community_events.core.security import Capability, Principal, require_capability
from community_events.db.session import get_db
from community_events.schemas.event import EventStats
from community_events.schemas.registration import ReconciliationReport
from community_events.services import query_service
from community_events.services.cache_service import invalidate_event_cache
from community_events.services.reconciliation_service import reconcile

router = APIRouter(prefix="/events", tags=["Admin"])


@router.get("/stats", response_model=EventStats)
async def event_stats_endpoint(
    principal: Principal = Depends(require_capability(Capability.VIEW_REGISTRATIONS)),
    db: AsyncSession = Depends(get_db),
):
    return await query_service.event_stats(db)


@router.get("/reconciliation", response_model=ReconciliationReport)
async def reconciliation_report(
    principal: Principal = Depends(require_capability(Capability.RECONCILE)),
    db: AsyncSession = Depends(get_db),
):
    """Compare every event's counter with its confirmed registrations."""
    return asdict(await reconcile(db, repair=False))


@router.post("/reconciliation/repair", response_model=ReconciliationReport)
async def reconciliation_repair(
    principal: Principal = Depends(require_capability(Capability.RECONCILE)),
    db: AsyncSession = Depends(get_db),
):
    """Overwrite drifted counters with the confirmed registration count."""
    result = await reconcile(db, repair=True)
    if result.repaired:
        await invalidate_event_cache()
    return asdict(result)
