from typing import Any, Optional, Union

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_current_principal, get_db, get_optional_principal
from hrportal.schemas.stats import CompanyStats, DashboardStats, PublicStats
from hrportal.services import stats_service
from hrportal.services.access import Principal

router = APIRouter()


@router.get("/public/stats", response_model=Union[PublicStats, CompanyStats])
async def get_public_stats(
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Landing-page counters.

    Anonymous callers see platform-wide totals; signed-in callers see their
    own company only. The ``public`` flag tells the two apart.
    """
    return await stats_service.public_stats(db, principal)


@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await stats_service.dashboard_stats(db, principal)
