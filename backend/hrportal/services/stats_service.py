"""
Aggregation reporters: leave balances, payroll totals, and the public and
dashboard counters. Every figure except the anonymous public counters is
limited to the caller's company.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.config import settings
from hrportal.core.exceptions import NotFoundError
from hrportal.models.company import Company
from hrportal.models.document import Document
from hrportal.models.employee import Employee, EmployeeStatus
from hrportal.models.leave import Leave, LeaveStatus
from hrportal.models.payroll import Payroll
from hrportal.schemas.stats import (
    CompanyCounters,
    CompanyStats,
    DashboardActivities,
    DashboardDocuments,
    DashboardEmployees,
    DashboardLeaves,
    DashboardPayroll,
    DashboardStats,
    DepartmentCount,
    DocumentCount,
    EmployeeCounts,
    MonthPayroll,
    PayrollPeriodTotal,
    PendingLeaves,
    PublicCounters,
    PublicStats,
    RecentEmployee,
    RecentEmployees,
    RecentLeave,
    StatsResult,
    StatusCount,
    TypeCount,
)
from hrportal.services.access import LEAVE_APPROVER_ROLES, Principal, scoped_employees

logger = logging.getLogger("hrportal.stats")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def year_window(today: date) -> tuple[date, date]:
    return date(today.year, 1, 1), date(today.year, 12, 31)


def month_window(today: date) -> tuple[date, date]:
    """First day of this month and first day of the next."""
    start = today.replace(day=1)
    if start.month == 12:
        return start, date(start.year + 1, 1, 1)
    return start, date(start.year, start.month + 1, 1)


async def _scalar(db: AsyncSession, stmt) -> float:
    value = (await db.execute(stmt)).scalar()
    return value or 0


# ============ Leave balance ============

async def leave_balance(
    db: AsyncSession,
    principal: Principal,
    employee_id: Optional[int] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Remaining annual leave plus this year's approved and pending counts by type.

    ``employee_id`` is only honoured for approvers, and only inside their own
    company; anyone else always gets their own balance.
    """
    today = today or date.today()
    if employee_id is not None and principal.has_role(LEAVE_APPROVER_ROLES):
        stmt = scoped_employees(principal).where(Employee.id == employee_id)
    else:
        stmt = select(Employee).where(Employee.id == principal.employee_id)

    employee = (await db.execute(stmt)).scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    start, end = year_window(today)
    rows = await db.execute(
        select(Leave.type, Leave.status, func.count(Leave.id))
        .where(
            Leave.employee_id == employee.id,
            Leave.start_date >= start,
            Leave.start_date <= end,
        )
        .group_by(Leave.type, Leave.status)
    )

    used: dict[str, int] = {}
    pending: dict[str, int] = {}
    for leave_type, status, count in rows.all():
        if status == LeaveStatus.APPROVED.value:
            used[leave_type] = used.get(leave_type, 0) + count
        elif status == LeaveStatus.PENDING.value:
            pending[leave_type] = pending.get(leave_type, 0) + count

    return {
        "employee": {
            "id": employee.id,
            "employee_id": employee.employee_id,
            "name": employee.full_name,
            "date_joined": employee.date_joined,
        },
        "balance": {
            "annual": employee.leave_balance,
            "used": used,
            "pending": pending,
        },
    }


# ============ Payroll stats ============

async def payroll_stats(
    db: AsyncSession,
    principal: Principal,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> dict:
    """
    Company payroll totals for an optional period.

    An empty selection reports zeros across the board.
    """
    filters = [Employee.company_id == principal.company_id]
    if month is not None:
        filters.append(Payroll.month == month)
    if year is not None:
        filters.append(Payroll.year == year)

    row = (await db.execute(
        select(
            func.coalesce(func.sum(Payroll.net_salary), 0),
            func.count(Payroll.id),
            func.avg(Payroll.net_salary),
        )
        .join(Employee, Payroll.employee_id == Employee.id)
        .where(*filters)
    )).one()
    pending = await _scalar(db, (
        select(func.count(Payroll.id))
        .join(Employee, Payroll.employee_id == Employee.id)
        .where(*filters, Payroll.paid_at.is_(None))
    ))

    total, count, average = row
    return {
        "total_payroll": float(total or 0),
        "total_employees": int(count or 0),
        "avg_salary": round_half_up(float(average)) if average is not None else 0,
        "pending_payments": int(pending),
    }


# ============ Public / company stats ============

async def _recent_employees(db: AsyncSession, company_id: int) -> list[RecentEmployee]:
    result = await db.execute(
        select(Employee)
        .where(Employee.company_id == company_id)
        .order_by(Employee.created_at.desc(), Employee.id.desc())
        .limit(5)
    )
    return [RecentEmployee.model_validate(e) for e in result.scalars()]


async def public_stats(
    db: AsyncSession, principal: Optional[Principal], today: Optional[date] = None
) -> StatsResult:
    """
    Anonymous callers get platform-wide teaser counters; signed-in callers get
    their own company's figures.
    """
    if principal is None:
        companies = await _scalar(db, select(func.count(Company.id)))
        employees = await _scalar(db, select(func.count(Employee.id)))
        processed = await _scalar(
            db, select(func.count(Leave.id)).where(Leave.status == LeaveStatus.APPROVED.value)
        )
        return PublicStats(stats=PublicCounters(
            companies=companies,
            employees=employees,
            leaves_processed=processed,
            satisfaction=settings.PUBLIC_SATISFACTION_RATE,
        ))

    today = today or date.today()
    company_id = principal.company_id

    total = await _scalar(db, select(func.count(Employee.id)).where(Employee.company_id == company_id))
    active = await _scalar(db, select(func.count(Employee.id)).where(
        Employee.company_id == company_id, Employee.status == EmployeeStatus.ACTIVE.value
    ))
    pending = await _scalar(db, (
        select(func.count(Leave.id))
        .join(Employee, Leave.employee_id == Employee.id)
        .where(Employee.company_id == company_id, Leave.status == LeaveStatus.PENDING.value)
    ))
    month_total = await _scalar(db, (
        select(func.sum(Payroll.net_salary))
        .join(Employee, Payroll.employee_id == Employee.id)
        .where(Employee.company_id == company_id, Payroll.month == today.month, Payroll.year == today.year)
    ))
    documents = await _scalar(db, (
        select(func.count(Document.id))
        .join(Employee, Document.employee_id == Employee.id)
        .where(Employee.company_id == company_id)
    ))

    return CompanyStats(
        company_stats=CompanyCounters(
            employees=EmployeeCounts(total=total, active=active),
            leaves=PendingLeaves(pending=pending),
            payroll=MonthPayroll(current_month=float(month_total)),
            documents=DocumentCount(total=documents),
        ),
        recent_activities=RecentEmployees(employees=await _recent_employees(db, company_id)),
    )


# ============ Dashboard ============

async def dashboard_stats(db: AsyncSession, principal: Principal, today: Optional[date] = None) -> DashboardStats:
    today = today or date.today()
    company_id = principal.company_id
    month_start, next_month = month_window(today)
    year_start, year_end = year_window(today)
    in_company = Employee.company_id == company_id

    # Employees
    total = await _scalar(db, select(func.count(Employee.id)).where(in_company))
    active = await _scalar(db, select(func.count(Employee.id)).where(
        in_company, Employee.status == EmployeeStatus.ACTIVE.value
    ))
    new_hires = await _scalar(db, select(func.count(Employee.id)).where(
        in_company, Employee.date_joined >= month_start, Employee.date_joined < next_month
    ))
    by_department = await db.execute(
        select(Employee.department, func.count(Employee.id))
        .where(in_company, Employee.status == EmployeeStatus.ACTIVE.value)
        .group_by(Employee.department)
        .order_by(Employee.department)
    )
    by_status = await db.execute(
        select(Employee.status, func.count(Employee.id))
        .where(in_company)
        .group_by(Employee.status)
        .order_by(Employee.status)
    )

    # Leaves
    company_leaves = select(func.count(Leave.id)).join(Employee, Leave.employee_id == Employee.id)
    pending_leaves = await _scalar(db, company_leaves.where(
        in_company, Leave.status == LeaveStatus.PENDING.value
    ))
    approved_this_month = await _scalar(db, company_leaves.where(
        in_company,
        Leave.status == LeaveStatus.APPROVED.value,
        Leave.start_date >= month_start,
        Leave.start_date < next_month,
    ))
    by_type = await db.execute(
        select(Leave.type, func.count(Leave.id))
        .join(Employee, Leave.employee_id == Employee.id)
        .where(
            in_company,
            Leave.status == LeaveStatus.APPROVED.value,
            Leave.start_date >= year_start,
            Leave.start_date <= year_end,
        )
        .group_by(Leave.type)
        .order_by(Leave.type)
    )

    # Payroll
    company_payroll = Payroll.employee_id == Employee.id
    month_row = (await db.execute(
        select(func.coalesce(func.sum(Payroll.net_salary), 0), func.count(Payroll.id))
        .join(Employee, company_payroll)
        .where(in_company, Payroll.month == today.month, Payroll.year == today.year)
    )).one()
    pending_payments = await _scalar(db, (
        select(func.count(Payroll.id))
        .join(Employee, company_payroll)
        .where(in_company, Payroll.paid_at.is_(None))
    ))
    year_total = await _scalar(db, (
        select(func.sum(Payroll.net_salary))
        .join(Employee, company_payroll)
        .where(in_company, Payroll.year == today.year)
    ))

    # Documents
    company_documents = select(func.count(Document.id)).join(Employee, Document.employee_id == Employee.id)
    total_documents = await _scalar(db, company_documents.where(in_company))
    recent_documents = await _scalar(db, company_documents.where(
        in_company, Document.uploaded_at >= datetime.utcnow() - timedelta(days=30)
    ))

    # Recent activity
    recent_leaves = await db.execute(
        select(Leave)
        .join(Employee, Leave.employee_id == Employee.id)
        .where(in_company)
        .order_by(Leave.applied_at.desc(), Leave.id.desc())
        .limit(5)
    )

    return DashboardStats(
        employees=DashboardEmployees(
            total=total,
            active=active,
            new_hires=new_hires,
            by_department=[DepartmentCount(department=d, count=c) for d, c in by_department.all()],
            by_status=[StatusCount(status=s, count=c) for s, c in by_status.all()],
        ),
        leaves=DashboardLeaves(
            pending=pending_leaves,
            approved_this_month=approved_this_month,
            by_type=[TypeCount(type=t, count=c) for t, c in by_type.all()],
        ),
        payroll=DashboardPayroll(
            current_month=PayrollPeriodTotal(total=float(month_row[0] or 0), count=month_row[1]),
            pending_payments=pending_payments,
            total_this_year=float(year_total),
        ),
        documents=DashboardDocuments(total=total_documents, recent=recent_documents),
        recent_activities=DashboardActivities(
            employees=await _recent_employees(db, company_id),
            leaves=[
                RecentLeave(
                    id=leave.id,
                    type=leave.type,
                    status=leave.status,
                    start_date=leave.start_date,
                    end_date=leave.end_date,
                    applied_at=leave.applied_at,
                    employee_name=leave.employee.full_name,
                    employee_code=leave.employee.employee_id,
                )
                for leave in recent_leaves.scalars()
            ],
        ),
    )
