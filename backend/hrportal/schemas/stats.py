"""
Aggregate report payloads.

``/api/public/stats`` answers with one of two shapes depending on whether the
caller is signed in; both carry a literal ``public`` tag so clients branch on it.
"""

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from hrportal.schemas.common import CamelModel


# ============ Public stats ============

class PublicCounters(CamelModel):
    companies: int
    employees: int
    leaves_processed: int
    satisfaction: float


class PublicStats(CamelModel):
    public: Literal[True] = True
    stats: PublicCounters


class EmployeeCounts(CamelModel):
    total: int
    active: int


class PendingLeaves(CamelModel):
    pending: int


class MonthPayroll(CamelModel):
    current_month: float


class DocumentCount(CamelModel):
    total: int


class CompanyCounters(CamelModel):
    employees: EmployeeCounts
    leaves: PendingLeaves
    payroll: MonthPayroll
    documents: DocumentCount


class RecentEmployee(CamelModel):
    id: int
    first_name: str
    last_name: str
    employee_id: str
    department: Optional[str] = None
    created_at: datetime


class RecentEmployees(CamelModel):
    employees: List[RecentEmployee]


class CompanyStats(CamelModel):
    public: Literal[False] = False
    company_stats: CompanyCounters
    recent_activities: RecentEmployees


StatsResult = Union[PublicStats, CompanyStats]


# ============ Dashboard ============

class DepartmentCount(CamelModel):
    department: Optional[str] = None
    count: int


class StatusCount(CamelModel):
    status: str
    count: int


class TypeCount(CamelModel):
    type: str
    count: int


class DashboardEmployees(CamelModel):
    total: int
    active: int
    new_hires: int
    by_department: List[DepartmentCount]
    by_status: List[StatusCount]


class DashboardLeaves(CamelModel):
    pending: int
    approved_this_month: int
    by_type: List[TypeCount]


class PayrollPeriodTotal(CamelModel):
    total: float
    count: int


class DashboardPayroll(CamelModel):
    current_month: PayrollPeriodTotal
    pending_payments: int
    total_this_year: float


class DashboardDocuments(CamelModel):
    total: int
    recent: int


class RecentLeave(CamelModel):
    id: int
    type: str
    status: str
    start_date: date
    end_date: date
    applied_at: datetime
    employee_name: str
    employee_code: str


class DashboardActivities(CamelModel):
    employees: List[RecentEmployee]
    leaves: List[RecentLeave]


class DashboardStats(CamelModel):
    employees: DashboardEmployees
    leaves: DashboardLeaves
    payroll: DashboardPayroll
    documents: DashboardDocuments
    recent_activities: DashboardActivities
