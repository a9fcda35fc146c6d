from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from hrportal.models.employee import EmployeeStatus, Role
from hrportal.schemas.common import CamelModel, Pagination
from hrportal.schemas.document import DocumentOut
from hrportal.schemas.leave import LeaveOut
from hrportal.schemas.payroll import PayrollOut


class CompanyOut(CamelModel):
    id: int
    name: str
    registration_no: str
    address: Optional[str] = None
    contact_no: Optional[str] = None
    email: Optional[str] = None


class EmployeeOut(CamelModel):
    id: int
    employee_id: str
    first_name: str
    last_name: str
    nric: Optional[str] = None
    passport_no: Optional[str] = None
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_joined: date
    department: Optional[str] = None
    position: Optional[str] = None
    salary: float
    epf_no: Optional[str] = None
    socso_no: Optional[str] = None
    tax_no: Optional[str] = None
    bank_account: Optional[str] = None
    role: Role
    status: EmployeeStatus
    leave_balance: int
    company_id: int
    created_at: datetime
    updated_at: datetime


class EmployeeDetail(EmployeeOut):
    company: Optional[CompanyOut] = None
    documents: List[DocumentOut] = []
    leaves: List[LeaveOut] = []
    payrolls: List[PayrollOut] = []


class EmployeeListResponse(CamelModel):
    employees: List[EmployeeOut]
    pagination: Pagination


class EmployeeCreate(CamelModel):
    employee_id: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    nric: Optional[str] = None
    passport_no: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_joined: date
    department: Optional[str] = None
    position: Optional[str] = None
    salary: float = Field(..., ge=0)
    epf_no: Optional[str] = None
    socso_no: Optional[str] = None
    tax_no: Optional[str] = None
    bank_account: Optional[str] = None
    role: Role = Role.EMPLOYEE


class EmployeeUpdate(CamelModel):
    """Partial update; only fields present in the request body are written."""
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    nric: Optional[str] = None
    passport_no: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    date_joined: Optional[date] = None
    department: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[float] = Field(None, ge=0)
    epf_no: Optional[str] = None
    socso_no: Optional[str] = None
    tax_no: Optional[str] = None
    bank_account: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    role: Optional[Role] = None


class EmployeeCreateResponse(CamelModel):
    employee: EmployeeOut
    temp_password: str


class EmployeeProfile(CamelModel):
    id: int
    first_name: str
    last_name: str
    employee_id: str
    department: Optional[str] = None
    position: Optional[str] = None
    leave_balance: int
    recent_leaves: List[LeaveOut]
    recent_documents: List[DocumentOut]
