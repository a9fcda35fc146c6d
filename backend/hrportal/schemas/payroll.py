from datetime import datetime
from typing import Annotated, Dict, List, Optional

from pydantic import Field

from hrportal.schemas.common import CamelModel, EmployeeSummary, Pagination


class PayrollOut(CamelModel):
    id: int
    employee_id: int
    month: int
    year: int
    basic_salary: float
    allowances: float
    deductions: float
    epf_amount: float
    socso_amount: float
    eis_amount: float
    tax_amount: float
    net_salary: float
    paid_at: Optional[datetime] = None
    created_at: datetime
    employee: Optional[EmployeeSummary] = None


class PayrollListResponse(CamelModel):
    payrolls: List[PayrollOut]
    pagination: Pagination


class PayrollCreate(CamelModel):
    employee_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    allowances: float = Field(0.0, ge=0)
    deductions: float = Field(0.0, ge=0)


class PayrollBulkCreate(CamelModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    employee_ids: Optional[List[int]] = None
    # Per-employee amounts keyed by employee primary key
    allowances: Dict[int, Annotated[float, Field(ge=0)]] = {}
    deductions: Dict[int, Annotated[float, Field(ge=0)]] = {}


class PayrollBulkResult(CamelModel):
    success: bool
    created: int
    errors: List[str]


class PayrollUpdate(CamelModel):
    paid_at: Optional[datetime] = None


class PayrollStats(CamelModel):
    total_payroll: float
    total_employees: int
    avg_salary: int
    pending_payments: int
