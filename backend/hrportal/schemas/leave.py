from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import model_validator

from hrportal.models.leave import LeaveStatus, LeaveType
from hrportal.schemas.common import CamelModel, EmployeeSummary, Pagination


class LeaveOut(CamelModel):
    id: int
    employee_id: int
    type: LeaveType
    status: LeaveStatus
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
    applied_at: datetime
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    employee: Optional[EmployeeSummary] = None


class LeaveListResponse(CamelModel):
    leaves: List[LeaveOut]
    pagination: Pagination


class LeaveCreate(CamelModel):
    type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class LeaveDecision(CamelModel):
    status: Literal["APPROVED", "REJECTED"]


class LeaveBalanceEmployee(CamelModel):
    id: int
    employee_id: str
    name: str
    date_joined: date


class LeaveBalanceDetail(CamelModel):
    annual: int
    used: Dict[str, int]
    pending: Dict[str, int]


class LeaveBalance(CamelModel):
    employee: LeaveBalanceEmployee
    balance: LeaveBalanceDetail
