from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import Actor, require_staff
from database import get_db
from services.reports import build_summary

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/summary")
async def get_summary(
    since: Optional[datetime] = Query(None, description="Only applications created at or after this instant"),
    until: Optional[datetime] = Query(None, description="Only applications created before this instant"),
    actor: Actor = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Counts and totals for the dashboard. Omit both bounds for all-time figures."""
    return await build_summary(
        db, since=since, until=until, institution_id=None if actor.is_admin else actor.id
    )
