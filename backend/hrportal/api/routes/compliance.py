from typing import Any

from fastapi import APIRouter, Depends

from hrportal.api.deps import get_current_principal
from hrportal.schemas.compliance import ComplianceBreakdown, ComplianceRequest, ComplianceResponse
from hrportal.services.access import Principal
from hrportal.services.compliance import calculate_payroll

router = APIRouter()

CALCULATOR_INFO = {
    "description": "Malaysian Payroll Compliance Calculator",
    "endpoint": "/api/compliance/calculate",
    "method": "POST",
    "requiredFields": {
        "basicSalary": "number (required) - Monthly basic salary in RM",
    },
    "optionalFields": {
        "allowances": "number (default: 0) - Monthly allowances in RM",
        "deductions": "number (default: 0) - Monthly deductions in RM",
    },
    "responseFormat": {
        "success": "boolean",
        "data": {
            "grossSalary": "number",
            "epfEmployee": "number",
            "epfEmployer": "number",
            "socsoEmployee": "number",
            "socsoEmployer": "number",
            "eisAmount": "number",
            "taxAmount": "number",
            "netSalary": "number",
        },
    },
    "exampleRequest": {"basicSalary": 3000, "allowances": 500, "deductions": 100},
}


@router.get("/calculate")
async def calculator_info(principal: Principal = Depends(get_current_principal)) -> Any:
    return CALCULATOR_INFO


@router.post("/calculate", response_model=ComplianceResponse)
async def calculate(
    request_in: ComplianceRequest,
    principal: Principal = Depends(get_current_principal),
) -> Any:
    """EPF, SOCSO, EIS and PCB for one monthly salary."""
    breakdown = calculate_payroll(request_in.basic_salary, request_in.allowances, request_in.deductions)
    return ComplianceResponse(data=ComplianceBreakdown(**breakdown.to_dict()))
