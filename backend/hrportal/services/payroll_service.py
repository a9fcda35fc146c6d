import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.exceptions import ConflictError, NotFoundError
from hrportal.models.employee import Employee, EmployeeStatus
from hrportal.models.payroll import Payroll
from hrportal.schemas.payroll import PayrollBulkCreate, PayrollCreate
from hrportal.services.access import PAYROLL_READ_ROLES, Principal, missing, scoped_employees, scoped_payrolls
from hrportal.services.compliance import calculate_payroll

logger = logging.getLogger("hrportal.payroll")

DUPLICATE_PERIOD_MESSAGE = "Payroll already exists for this period"


def _build_payroll(employee: Employee, month: int, year: int, allowances: float, deductions: float) -> Payroll:
    breakdown = calculate_payroll(employee.salary, allowances, deductions)
    return Payroll(
        employee=employee,
        month=month,
        year=year,
        basic_salary=employee.salary,
        allowances=allowances,
        deductions=deductions,
        epf_amount=breakdown.epf_employee,
        socso_amount=breakdown.socso_employee,
        eis_amount=breakdown.eis_amount,
        tax_amount=breakdown.tax_amount,
        net_salary=breakdown.net_salary,
    )


async def list_payrolls(
    db: AsyncSession,
    principal: Principal,
    page: int = 1,
    limit: int = 10,
    month: Optional[int] = None,
    year: Optional[int] = None,
    employee_id: Optional[int] = None,
) -> tuple[list[Payroll], int]:
    """
    Pay slips visible to the caller, latest period first.

    ``employee_id`` narrows a company-wide listing; self-scoped callers only
    ever see their own rows.
    """
    stmt = scoped_payrolls(principal)
    if employee_id is not None and principal.has_role(PAYROLL_READ_ROLES):
        stmt = stmt.where(Payroll.employee_id == employee_id)
    if month is not None:
        stmt = stmt.where(Payroll.month == month)
    if year is not None:
        stmt = stmt.where(Payroll.year == year)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(Payroll.year.desc(), Payroll.month.desc(), Payroll.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_payroll(db: AsyncSession, principal: Principal, payroll_id: int) -> Payroll:
    result = await db.execute(scoped_payrolls(principal).where(Payroll.id == payroll_id))
    payroll = result.scalar_one_or_none()
    if payroll is None:
        raise missing(principal, PAYROLL_READ_ROLES, "Payroll")
    return payroll


async def create_payroll(db: AsyncSession, principal: Principal, data: PayrollCreate) -> Payroll:
    employee = (await db.execute(
        scoped_employees(principal).where(Employee.id == data.employee_id)
    )).scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    existing = await db.execute(
        select(Payroll.id).where(
            Payroll.employee_id == employee.id,
            Payroll.month == data.month,
            Payroll.year == data.year,
        )
    )
    if existing.first() is not None:
        raise ConflictError(DUPLICATE_PERIOD_MESSAGE)

    payroll = _build_payroll(employee, data.month, data.year, data.allowances, data.deductions)
    db.add(payroll)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert for the same period
        await db.rollback()
        raise ConflictError(DUPLICATE_PERIOD_MESSAGE)
    await db.refresh(payroll)

    logger.info(
        f"Payroll {data.month}/{data.year} created for employee {employee.employee_id} "
        f"by user {principal.id}"
    )
    return payroll


async def bulk_create_payrolls(db: AsyncSession, principal: Principal, data: PayrollBulkCreate) -> dict:
    """
    Run payroll for every active employee of the caller's company, or for the
    given subset. Periods that already exist are skipped and reported.
    """
    stmt = scoped_employees(principal).where(Employee.status == EmployeeStatus.ACTIVE.value)
    if data.employee_ids:
        stmt = stmt.where(Employee.id.in_(data.employee_ids))
    employees = (await db.execute(stmt.order_by(Employee.id))).scalars().all()

    already_paid = set((await db.execute(
        select(Payroll.employee_id).where(
            Payroll.employee_id.in_([e.id for e in employees]),
            Payroll.month == data.month,
            Payroll.year == data.year,
        )
    )).scalars().all()) if employees else set()

    errors: list[str] = []
    created: list[Payroll] = []
    for employee in employees:
        if employee.id in already_paid:
            errors.append(f"Payroll already exists for {employee.full_name}")
            continue
        created.append(_build_payroll(
            employee,
            data.month,
            data.year,
            data.allowances.get(employee.id, 0.0),
            data.deductions.get(employee.id, 0.0),
        ))

    db.add_all(created)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_PERIOD_MESSAGE)

    logger.info(
        f"Bulk payroll {data.month}/{data.year}: {len(created)} created, "
        f"{len(errors)} skipped, by user {principal.id}"
    )
    return {"success": True, "created": len(created), "errors": errors}


async def set_paid_at(
    db: AsyncSession, principal: Principal, payroll_id: int, paid_at: Optional[datetime]
) -> Payroll:
    """Mark a pay slip paid, or clear the mark with ``None``."""
    result = await db.execute(
        scoped_payrolls(principal).where(Payroll.id == payroll_id).with_for_update(of=Payroll)
    )
    payroll = result.scalar_one_or_none()
    if payroll is None:
        raise missing(principal, PAYROLL_READ_ROLES, "Payroll")

    if paid_at is not None and paid_at.tzinfo is not None:
        paid_at = paid_at.replace(tzinfo=None) - paid_at.utcoffset()
    payroll.paid_at = paid_at
    await db.commit()
    await db.refresh(payroll)

    logger.info(f"Payroll {payroll.id} paid_at set to {paid_at} by user {principal.id}")
    return payroll
