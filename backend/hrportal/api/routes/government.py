"""
Government agency endpoints.

Each endpoint dispatches on ``action`` to the matching gateway client and
passes its result through unchanged. Restricted to ADMIN and HR.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from hrportal.api.deps import get_gateways, require_roles
from hrportal.core.exceptions import ValidationError
from hrportal.schemas.government import (
    HRDFRequest,
    KWSPRequest,
    LHDNRequest,
    MyWorkIDRequest,
    PERKESORequest,
    SyncRequest,
)
from hrportal.services.access import HR_ROLES, Principal
from hrportal.services.government import GovernmentGateways, sync_employee_data

logger = logging.getLogger("hrportal.government")

router = APIRouter()

INVALID_ACTION = "Invalid action"


def _require(value: Any, message: str) -> Any:
    if not value:
        raise ValidationError(message)
    return value


@router.post("/lhdn")
async def lhdn(
    body: LHDNRequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    gateways: GovernmentGateways = Depends(get_gateways),
) -> Any:
    if body.action == "validate":
        return await gateways.lhdn.validate_tax_number(_require(body.tax_number, "Tax number is required"))
    if body.action == "submit":
        return await gateways.lhdn.submit_tax_return(_require(body.tax_data, "Tax data is required"))
    raise ValidationError(INVALID_ACTION)


@router.post("/kwsp")
async def kwsp(
    body: KWSPRequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    gateways: GovernmentGateways = Depends(get_gateways),
) -> Any:
    if body.action == "validate":
        return await gateways.kwsp.validate_epf(_require(body.epf_number, "EPF number is required"))
    if body.action == "submit":
        return await gateways.kwsp.submit_contribution(
            _require(body.contribution_data, "Contribution data is required")
        )
    raise ValidationError(INVALID_ACTION)


@router.post("/perkeso")
async def perkeso(
    body: PERKESORequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    gateways: GovernmentGateways = Depends(get_gateways),
) -> Any:
    if body.action == "validate":
        return await gateways.perkeso.validate_socso(_require(body.socso_number, "SOCSO number is required"))
    if body.action == "submit":
        return await gateways.perkeso.submit_contribution(
            _require(body.contribution_data, "Contribution data is required")
        )
    raise ValidationError(INVALID_ACTION)


@router.post("/hrdf")
async def hrdf(
    body: HRDFRequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    gateways: GovernmentGateways = Depends(get_gateways),
) -> Any:
    claim_data = _require(body.claim_data, "Claim data is required") if body.action in ("validate", "submit") else None
    if body.action == "validate":
        return await gateways.hrdf.validate_claim(claim_data)
    if body.action == "submit":
        return await gateways.hrdf.submit_claim(claim_data)
    raise ValidationError(INVALID_ACTION)


@router.post("/myworkid")
async def myworkid(
    body: MyWorkIDRequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    gateways: GovernmentGateways = Depends(get_gateways),
) -> Any:
    if body.action == "verify":
        return await gateways.myworkid.verify_identity(_require(body.ic_number, "IC number is required"))
    if body.action == "employmentHistory":
        return await gateways.myworkid.get_employment_history(_require(body.ic_number, "IC number is required"))
    raise ValidationError(INVALID_ACTION)


@router.post("/sync")
async def sync(
    body: SyncRequest,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    gateways: GovernmentGateways = Depends(get_gateways),
) -> Any:
    """Cross-check one employee's identifiers with every agency."""
    result = await sync_employee_data(
        gateways, body.ic_number, body.epf_number, body.socso_number, body.tax_number
    )
    logger.info(f"Government sync by user {principal.id}: sources={result['sources']}")
    return result
