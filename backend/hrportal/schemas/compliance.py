from pydantic import Field

from hrportal.schemas.common import CamelModel


class ComplianceRequest(CamelModel):
    basic_salary: float = Field(..., gt=0, description="Monthly basic salary in RM")
    allowances: float = Field(0.0, ge=0, description="Monthly allowances in RM")
    deductions: float = Field(0.0, ge=0, description="Monthly deductions in RM")


class ComplianceBreakdown(CamelModel):
    gross_salary: float
    epf_employee: float
    epf_employer: float
    socso_employee: float
    socso_employer: float
    eis_amount: float
    tax_amount: float
    net_salary: float


class ComplianceResponse(CamelModel):
    success: bool = True
    data: ComplianceBreakdown
