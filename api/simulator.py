from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from schemas.simulation import SimulationRequest
from services.simulator import simulate_credit

router = APIRouter(prefix="/api", tags=["simulator"])


@router.post("/simulate-credit")
async def simulate(body: SimulationRequest, db: AsyncSession = Depends(get_db)):
    """Public loan simulator; nothing is stored."""
    return await simulate_credit(
        db,
        body,
        rate_table=settings.project_interest_rates,
        default_effort_rate=settings.default_effort_rate,
    )
