import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.exceptions import NotFoundError, ValidationError
from hrportal.models.employee import Employee
from hrportal.models.leave import Leave, LeaveStatus, LeaveType
from hrportal.schemas.leave import LeaveCreate
from hrportal.services.access import (
    LEAVE_DELETE_ROLES,
    LEAVE_READ_ROLES,
    Principal,
    missing,
    scoped_leaves,
)

logger = logging.getLogger("hrportal.leaves")

ACTIVE_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)


async def list_leaves(
    db: AsyncSession,
    principal: Principal,
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    leave_type: Optional[str] = None,
    employee_id: Optional[int] = None,
) -> tuple[list[Leave], int]:
    stmt = scoped_leaves(principal)
    if employee_id is not None and principal.has_role(LEAVE_READ_ROLES):
        stmt = stmt.where(Leave.employee_id == employee_id)
    if status:
        stmt = stmt.where(Leave.status == status)
    if leave_type:
        stmt = stmt.where(Leave.type == leave_type)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(Leave.applied_at.desc(), Leave.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def apply_for_leave(db: AsyncSession, principal: Principal, data: LeaveCreate) -> Leave:
    """
    File a leave request for the caller.

    Annual leave may not exceed the remaining balance, and no request may
    overlap another pending or approved one.
    """
    employee = (await db.execute(
        select(Employee).where(Employee.id == principal.employee_id).with_for_update()
    )).scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    days = (data.end_date - data.start_date).days + 1
    if data.type == LeaveType.ANNUAL and days > employee.leave_balance:
        raise ValidationError("Insufficient leave balance")

    overlapping = await db.execute(
        select(Leave.id).where(
            Leave.employee_id == employee.id,
            Leave.status.in_(ACTIVE_STATUSES),
            Leave.start_date <= data.end_date,
            Leave.end_date >= data.start_date,
        ).limit(1)
    )
    if overlapping.first() is not None:
        raise ValidationError("Leave dates overlap with existing leave application")

    leave = Leave(
        employee=employee,
        type=data.type.value,
        status=LeaveStatus.PENDING.value,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
    )
    db.add(leave)
    await db.commit()
    await db.refresh(leave)

    logger.info(f"Leave {leave.id} ({leave.type}, {days} days) filed by employee {employee.employee_id}")
    return leave


async def get_leave(db: AsyncSession, principal: Principal, leave_id: int) -> Leave:
    result = await db.execute(scoped_leaves(principal).where(Leave.id == leave_id))
    leave = result.scalar_one_or_none()
    if leave is None:
        raise missing(principal, LEAVE_READ_ROLES, "Leave")
    return leave


async def decide_leave(db: AsyncSession, principal: Principal, leave_id: int, status: str) -> Leave:
    """
    Approve or reject a pending request.

    Approving annual leave draws the days from the employee's balance in the
    same transaction.
    """
    result = await db.execute(
        scoped_leaves(principal).where(Leave.id == leave_id).with_for_update(of=Leave)
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise missing(principal, LEAVE_READ_ROLES, "Leave")
    if leave.status != LeaveStatus.PENDING.value:
        raise ValidationError("Leave has already been processed")

    if status == LeaveStatus.APPROVED.value and leave.type == LeaveType.ANNUAL.value:
        employee = (await db.execute(
            select(Employee).where(Employee.id == leave.employee_id).with_for_update()
        )).scalar_one()
        if leave.days > employee.leave_balance:
            raise ValidationError("Insufficient leave balance")
        employee.leave_balance -= leave.days

    leave.status = status
    leave.approved_at = datetime.utcnow() if status == LeaveStatus.APPROVED.value else None
    leave.approved_by = principal.employee_id
    await db.commit()
    await db.refresh(leave)

    logger.info(f"Leave {leave.id} {status.lower()} by user {principal.id}")
    return leave


async def delete_leave(db: AsyncSession, principal: Principal, leave_id: int) -> None:
    """Withdraw a request; only pending requests can be removed."""
    result = await db.execute(
        scoped_leaves(principal, LEAVE_DELETE_ROLES).where(Leave.id == leave_id).with_for_update(of=Leave)
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise missing(principal, LEAVE_DELETE_ROLES, "Leave")
    if leave.status != LeaveStatus.PENDING.value:
        raise ValidationError("Can only delete pending leave applications")

    await db.delete(leave)
    await db.commit()
    logger.info(f"Leave {leave_id} deleted by user {principal.id}")
