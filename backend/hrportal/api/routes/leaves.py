from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_current_principal, get_db, require_roles
from hrportal.models.leave import LeaveStatus, LeaveType
from hrportal.schemas.common import MessageResponse, Pagination
from hrportal.schemas.leave import LeaveBalance, LeaveCreate, LeaveDecision, LeaveListResponse, LeaveOut
from hrportal.services import leave_service, stats_service
from hrportal.services.access import LEAVE_APPROVER_ROLES, Principal

router = APIRouter()


@router.get("", response_model=LeaveListResponse)
async def list_leaves(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    leave_type: Optional[LeaveType] = Query(None, alias="type"),
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    leaves, total = await leave_service.list_leaves(
        db,
        principal,
        page,
        limit,
        status=leave_status.value if leave_status else None,
        leave_type=leave_type.value if leave_type else None,
        employee_id=employee_id,
    )
    return LeaveListResponse(
        leaves=[LeaveOut.model_validate(leave) for leave in leaves],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=LeaveOut, status_code=status.HTTP_201_CREATED)
async def apply_for_leave(
    leave_in: LeaveCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    leave = await leave_service.apply_for_leave(db, principal, leave_in)
    return LeaveOut.model_validate(leave)


@router.get("/balance", response_model=LeaveBalance)
async def get_leave_balance(
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Remaining annual leave and this year's usage.

    ``employeeId`` is ignored unless the caller can approve leave.
    """
    return await stats_service.leave_balance(db, principal, employee_id)


@router.get("/{leave_id}", response_model=LeaveOut)
async def get_leave(
    leave_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    leave = await leave_service.get_leave(db, principal, leave_id)
    return LeaveOut.model_validate(leave)


@router.put("/{leave_id}", response_model=LeaveOut)
async def decide_leave(
    leave_id: int,
    decision: LeaveDecision,
    principal: Principal = Depends(require_roles(*LEAVE_APPROVER_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    leave = await leave_service.decide_leave(db, principal, leave_id, decision.status)
    return LeaveOut.model_validate(leave)


@router.delete("/{leave_id}", response_model=MessageResponse)
async def delete_leave(
    leave_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await leave_service.delete_leave(db, principal, leave_id)
    return {"message": "Leave application deleted successfully"}
