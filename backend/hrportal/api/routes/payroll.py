from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_current_principal, get_db, require_roles
from hrportal.schemas.common import Pagination
from hrportal.schemas.payroll import (
    PayrollBulkCreate,
    PayrollBulkResult,
    PayrollCreate,
    PayrollListResponse,
    PayrollOut,
    PayrollStats,
    PayrollUpdate,
)
from hrportal.services import payroll_service, stats_service
from hrportal.services.access import HR_ROLES, Principal

router = APIRouter()


@router.get("", response_model=PayrollListResponse)
async def list_payrolls(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    payrolls, total = await payroll_service.list_payrolls(
        db, principal, page, limit, month, year, employee_id
    )
    return PayrollListResponse(
        payrolls=[PayrollOut.model_validate(p) for p in payrolls],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=PayrollOut, status_code=status.HTTP_201_CREATED)
async def create_payroll(
    payroll_in: PayrollCreate,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Compute and store one employee's pay slip for a period."""
    payroll = await payroll_service.create_payroll(db, principal, payroll_in)
    return PayrollOut.model_validate(payroll)


@router.post("/bulk", response_model=PayrollBulkResult)
async def bulk_create_payrolls(
    bulk_in: PayrollBulkCreate,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await payroll_service.bulk_create_payrolls(db, principal, bulk_in)


# Registered before /{payroll_id} so "stats" is not parsed as an id
@router.get("/stats", response_model=PayrollStats)
async def get_payroll_stats(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await stats_service.payroll_stats(db, principal, month, year)


@router.get("/{payroll_id}", response_model=PayrollOut)
async def get_payroll(
    payroll_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    payroll = await payroll_service.get_payroll(db, principal, payroll_id)
    return PayrollOut.model_validate(payroll)


@router.put("/{payroll_id}", response_model=PayrollOut)
async def update_payroll(
    payroll_id: int,
    payroll_in: PayrollUpdate,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    payroll = await payroll_service.set_paid_at(db, principal, payroll_id, payroll_in.paid_at)
    return PayrollOut.model_validate(payroll)
