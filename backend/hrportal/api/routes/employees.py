from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_current_principal, get_db, require_roles
from hrportal.models.employee import EmployeeStatus, Role
from hrportal.schemas.common import MessageResponse, Pagination
from hrportal.schemas.employee import (
    EmployeeCreate,
    EmployeeCreateResponse,
    EmployeeDetail,
    EmployeeListResponse,
    EmployeeOut,
    EmployeeProfile,
    EmployeeUpdate,
)
from hrportal.services import employee_service
from hrportal.services.access import ADMIN_ROLES, HR_ROLES, Principal

router = APIRouter()
profile_router = APIRouter()


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    department: Optional[str] = None,
    employee_status: Optional[EmployeeStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Company directory."""
    employees, total = await employee_service.list_employees(
        db, principal, page, limit, search, department, employee_status.value if employee_status else None
    )
    return EmployeeListResponse(
        employees=[EmployeeOut.model_validate(e) for e in employees],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=EmployeeCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_in: EmployeeCreate,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Add an employee to the caller's company.

    The response carries a temporary password that is not retrievable later.
    """
    employee, temp_password = await employee_service.create_employee(db, principal, employee_in)
    return EmployeeCreateResponse(employee=EmployeeOut.model_validate(employee), temp_password=temp_password)


@router.get("/{employee_id}", response_model=EmployeeDetail)
async def get_employee(
    employee_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await employee_service.get_employee_detail(db, principal, employee_id)


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: int,
    employee_in: EmployeeUpdate,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    changes = employee_in.model_dump(exclude_unset=True)
    employee = await employee_service.update_employee(db, principal, employee_id, changes)
    return EmployeeOut.model_validate(employee)


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete_employee(
    employee_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await employee_service.delete_employee(db, principal, employee_id)
    return {"message": "Employee deleted successfully"}


@profile_router.get("/profile", response_model=EmployeeProfile)
async def read_profile(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """The caller's own profile with recent leaves and documents."""
    return await employee_service.get_profile(db, principal)
