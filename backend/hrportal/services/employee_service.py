import logging
from enum import Enum
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrportal.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrportal.core.security import generate_temporary_password, get_password_hash
from hrportal.models.document import Document
from hrportal.models.employee import Employee
from hrportal.models.leave import Leave
from hrportal.models.payroll import Payroll
from hrportal.schemas.employee import CompanyOut, EmployeeCreate, EmployeeDetail, EmployeeOut, EmployeeProfile
from hrportal.schemas.document import DocumentOut
from hrportal.schemas.leave import LeaveOut
from hrportal.schemas.payroll import PayrollOut
from hrportal.services.access import Principal, scoped_employees

logger = logging.getLogger("hrportal.employees")

DUPLICATE_MESSAGE = "Employee ID, email, or NRIC already exists"

# Columns a partial update may change but never clear
REQUIRED_FIELDS = frozenset({
    "first_name", "last_name", "email", "date_joined", "salary", "status", "role",
})


async def list_employees(
    db: AsyncSession,
    principal: Principal,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None,
) -> tuple[list[Employee], int]:
    """Company directory, newest first, with case-insensitive search."""
    stmt = scoped_employees(principal)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            Employee.first_name.ilike(pattern),
            Employee.last_name.ilike(pattern),
            Employee.employee_id.ilike(pattern),
            Employee.email.ilike(pattern),
        ))
    if department:
        stmt = stmt.where(Employee.department == department)
    if status:
        stmt = stmt.where(Employee.status == status)

    total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
    result = await db.execute(
        stmt.order_by(Employee.created_at.desc(), Employee.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def _ensure_unique(
    db: AsyncSession,
    employee_code: Optional[str],
    email: Optional[str],
    nric: Optional[str],
    exclude_id: Optional[int] = None,
) -> None:
    clauses = []
    if employee_code:
        clauses.append(Employee.employee_id == employee_code)
    if email:
        clauses.append(Employee.email == email)
    if nric:
        clauses.append(Employee.nric == nric)
    if not clauses:
        return

    stmt = select(Employee.id).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(Employee.id != exclude_id)
    if (await db.execute(stmt.limit(1))).first() is not None:
        raise ConflictError(DUPLICATE_MESSAGE)


async def create_employee(
    db: AsyncSession, principal: Principal, data: EmployeeCreate
) -> tuple[Employee, str]:
    """
    Add an employee to the caller's company.

    Returns the new row and the one-time temporary password; only its bcrypt
    hash is stored.
    """
    await _ensure_unique(db, data.employee_id, data.email, data.nric)

    temp_password = generate_temporary_password()
    employee = Employee(
        **data.model_dump(exclude={"role"}),
        role=data.role.value,
        hashed_password=get_password_hash(temp_password),
        company_id=principal.company_id,
    )
    db.add(employee)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)
    await db.refresh(employee)

    logger.info(f"Employee {employee.employee_id} created by user {principal.id}")
    return employee, temp_password


async def get_employee_detail(db: AsyncSession, principal: Principal, employee_id: int) -> EmployeeDetail:
    result = await db.execute(
        scoped_employees(principal)
        .where(Employee.id == employee_id)
        .options(selectinload(Employee.company))
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    leaves = await db.execute(
        select(Leave).where(Leave.employee_id == employee.id)
        .order_by(Leave.applied_at.desc()).limit(5)
    )
    payrolls = await db.execute(
        select(Payroll).where(Payroll.employee_id == employee.id)
        .order_by(Payroll.created_at.desc()).limit(6)
    )
    documents = await db.execute(
        select(Document).where(Document.employee_id == employee.id)
        .order_by(Document.uploaded_at.desc())
    )

    return EmployeeDetail(
        **EmployeeOut.model_validate(employee).model_dump(),
        company=CompanyOut.model_validate(employee.company),
        leaves=[LeaveOut.model_validate(leave) for leave in leaves.scalars()],
        payrolls=[PayrollOut.model_validate(p) for p in payrolls.scalars()],
        documents=[DocumentOut.model_validate(d) for d in documents.scalars()],
    )


async def update_employee(
    db: AsyncSession, principal: Principal, employee_id: int, changes: dict[str, Any]
) -> Employee:
    """Apply a partial patch to an employee of the caller's company."""
    result = await db.execute(
        scoped_employees(principal).where(Employee.id == employee_id).with_for_update()
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    await _ensure_unique(db, None, changes.get("email"), changes.get("nric"), exclude_id=employee.id)

    for field, value in changes.items():
        if value is None and field in REQUIRED_FIELDS:
            raise ValidationError(f"{field} cannot be null")
        if isinstance(value, Enum):
            value = value.value
        setattr(employee, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)
    await db.refresh(employee)

    logger.info(f"Employee {employee.employee_id} updated by user {principal.id}: {sorted(changes)}")
    return employee


async def delete_employee(db: AsyncSession, principal: Principal, employee_id: int) -> None:
    result = await db.execute(
        scoped_employees(principal).where(Employee.id == employee_id).with_for_update()
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    await db.delete(employee)
    await db.commit()
    logger.info(f"Employee {employee.employee_id} deleted by user {principal.id}")


async def get_profile(db: AsyncSession, principal: Principal) -> EmployeeProfile:
    """The caller's own record with their five latest leaves and documents."""
    employee = (await db.execute(
        select(Employee).where(Employee.id == principal.employee_id)
    )).scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    leaves = await db.execute(
        select(Leave).where(Leave.employee_id == employee.id)
        .order_by(Leave.applied_at.desc()).limit(5)
    )
    documents = await db.execute(
        select(Document).where(Document.employee_id == employee.id)
        .order_by(Document.uploaded_at.desc()).limit(5)
    )

    return EmployeeProfile(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        employee_id=employee.employee_id,
        department=employee.department,
        position=employee.position,
        leave_balance=employee.leave_balance,
        recent_leaves=[LeaveOut.model_validate(leave) for leave in leaves.scalars()],
        recent_documents=[DocumentOut.model_validate(d) for d in documents.scalars()],
    )
