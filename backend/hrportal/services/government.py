"""
Clients for Malaysian government services used in HR compliance:

- LHDN (Inland Revenue Board): tax number validation, tax return submission
- KWSP (EPF): member validation, contribution submission
- PERKESO (SOCSO): member validation, contribution submission
- HRDF: training claim validation and submission
- MyWorkID: identity verification and employment history

In sandbox mode the clients answer locally with deterministic results so the
rest of the system can be exercised without agency credentials. In live mode
they POST JSON to the agency endpoint with a timeout and exponential backoff
on connection failures.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from hrportal.core.config import Settings, settings as default_settings
from hrportal.core.exceptions import HRPortalError
from hrportal.core.version import APP_VERSION

logger = logging.getLogger("hrportal.government")


class GatewayError(HRPortalError):
    """The agency endpoint could not be reached or answered with an error."""

    status_code = 502
    default_message = "Government service unavailable"


def _millis() -> int:
    return int(time.time() * 1000)


class GovernmentClient:
    """
    Shared async HTTP plumbing for the agency clients.

    Uses httpx.AsyncClient with:
    - Manual retry logic with exponential backoff
    - Request timeouts
    - A lazily created connection pool, released by ``close()``
    """

    service_name = "government"

    def __init__(
        self,
        base_url: str,
        sandbox: bool = True,
        timeout: float = 15.0,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.sandbox = sandbox
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": f"HRPortal/{APP_VERSION}",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload, retrying connection failures and timeouts.

        Attempts = 1 + max_retries, waiting 0.1s, 0.2s, 0.4s... between them.

        Raises:
            GatewayError: if every attempt fails or the agency answers 5xx
        """
        client = await self._get_client()
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.post(path, json=payload)
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                last_exception = e
                if attempt < self.max_retries:
                    wait_time = (2 ** attempt) * 0.1
                    logger.warning(
                        f"{self.service_name} request to {path} failed "
                        f"(attempt {attempt + 1}/{self.max_retries + 1}): {e}. "
                        f"Retrying in {wait_time:.1f}s..."
                    )
                    await asyncio.sleep(wait_time)
                continue

            if response.status_code >= 500:
                logger.error(f"{self.service_name} {path} returned {response.status_code}")
                raise GatewayError(f"{self.service_name} service returned {response.status_code}")
            try:
                return response.json()
            except ValueError:
                raise GatewayError(f"{self.service_name} service returned an invalid response")

        logger.error(f"{self.service_name} request to {path} failed after {self.max_retries + 1} attempts")
        raise GatewayError(f"{self.service_name} service unavailable: {last_exception}")


class LHDNClient(GovernmentClient):
    """LHDN (Inland Revenue Board) client."""

    service_name = "LHDN"

    async def validate_tax_number(self, tax_number: str) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/tax-numbers/validate", {"taxNumber": tax_number})
        if len(tax_number) != 10 or tax_number == "invalid":
            return {"valid": False, "error": "Invalid tax number format"}
        return {"valid": True, "taxpayerName": "John Doe", "taxCategory": "Individual"}

    async def submit_tax_return(self, tax_data: Dict[str, Any]) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/tax-returns", tax_data)
        return {
            "success": True,
            "submissionId": f"SUB{_millis()}",
            "status": "submitted",
            "estimatedProcessingDays": 14,
        }


class KWSPClient(GovernmentClient):
    """KWSP (Employees Provident Fund) client."""

    service_name = "KWSP"

    async def validate_epf(self, epf_number: str) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/members/validate", {"epfNumber": epf_number})
        if len(epf_number) != 9 or epf_number == "invalid":
            return {"valid": False, "error": "Invalid EPF number format"}
        return {"valid": True, "accountBalance": 25000, "lastContribution": "2024-01-15"}

    async def submit_contribution(self, contribution_data: Dict[str, Any]) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/contributions", contribution_data)
        amount = contribution_data.get("amount")
        if (
            not contribution_data.get("employeeId")
            or not isinstance(amount, (int, float))
            or amount <= 0
            or not contribution_data.get("month")
        ):
            return {"success": False, "status": "validation_failed", "error": "Invalid contribution data"}
        return {
            "success": True,
            "transactionId": f"EPF_TXN_{_millis()}",
            "status": "processed",
            "contributionAmount": amount,
        }


class PERKESOClient(GovernmentClient):
    """PERKESO (Social Security Organisation) client."""

    service_name = "PERKESO"

    async def validate_socso(self, socso_number: str) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/members/validate", {"socsoNumber": socso_number})
        if socso_number == "invalid":
            return {"valid": False, "error": "Invalid SOCSO number"}
        return {"valid": True, "coverage": "Employment Injury", "premiumRate": 0.4}

    async def submit_contribution(self, contribution_data: Dict[str, Any]) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/contributions", contribution_data)
        year = datetime.utcnow().year
        return {
            "success": True,
            "transactionId": f"SOCSO_TXN_{_millis()}",
            "status": "confirmed",
            "coveragePeriod": f"{year}-01 to {year}-12",
        }


class HRDFClient(GovernmentClient):
    """HRDF (Human Resources Development Fund) client."""

    service_name = "HRDF"

    async def validate_claim(self, claim_data: Dict[str, Any]) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/claims/validate", claim_data)
        if not claim_data.get("trainingProgram") or not claim_data.get("participants"):
            return {
                "valid": False,
                "error": "Missing required claim data: training program and participants",
            }
        return {"valid": True, "claimAmount": 5000, "approvedHours": 40}

    async def submit_claim(self, claim_data: Dict[str, Any]) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/claims", claim_data)
        return {
            "success": True,
            "claimId": f"HRDF_CLAIM_{_millis()}",
            "status": "submitted",
            "processingTime": "2-3 weeks",
        }


class MyWorkIDClient(GovernmentClient):
    """MyWorkID identity and employment history client."""

    service_name = "MyWorkID"

    async def verify_identity(self, ic_number: str) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/identity/verify", {"icNumber": ic_number})
        if len(ic_number) != 12:
            return {"valid": False, "error": "Invalid IC number format"}
        return {
            "valid": True,
            "verified": True,
            "fullName": "Ahmad bin Abdullah",
            "icNumber": ic_number,
            "nationality": "Malaysian",
        }

    async def get_employment_history(self, ic_number: str) -> Dict[str, Any]:
        if not self.sandbox:
            return await self._post("/employment-history", {"icNumber": ic_number})
        return {
            "employmentHistory": [
                {
                    "employer": "ABC Company",
                    "position": "Software Engineer",
                    "startDate": "2020-01-01",
                    "endDate": "2023-12-31",
                },
                {
                    "employer": "XYZ Solutions",
                    "position": "Senior Developer",
                    "startDate": "2024-01-01",
                    "endDate": None,
                },
            ]
        }


@dataclass
class GovernmentGateways:
    """All agency clients for one process; built at startup, closed at shutdown."""
    lhdn: LHDNClient
    kwsp: KWSPClient
    perkeso: PERKESOClient
    hrdf: HRDFClient
    myworkid: MyWorkIDClient

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "GovernmentGateways":
        config = config or default_settings
        common = {
            "sandbox": config.GOVERNMENT_SANDBOX,
            "timeout": config.GOVERNMENT_TIMEOUT,
            "max_retries": config.GOVERNMENT_MAX_RETRIES,
            "transport": transport,
        }
        return cls(
            lhdn=LHDNClient(config.LHDN_BASE_URL, **common),
            kwsp=KWSPClient(config.KWSP_BASE_URL, **common),
            perkeso=PERKESOClient(config.PERKESO_BASE_URL, **common),
            hrdf=HRDFClient(config.HRDF_BASE_URL, **common),
            myworkid=MyWorkIDClient(config.MYWORKID_BASE_URL, **common),
        )

    async def close(self) -> None:
        for client in (self.lhdn, self.kwsp, self.perkeso, self.hrdf, self.myworkid):
            await client.close()


async def sync_employee_data(
    gateways: GovernmentGateways,
    ic_number: str,
    epf_number: str,
    socso_number: str,
    tax_number: str,
) -> Dict[str, Any]:
    """
    Cross-check one employee's identifiers against all four registries.

    ``synced`` only when every check passes; ``partialSuccess`` when some do.
    """
    sources: list[str] = []
    errors: list[str] = []

    try:
        identity = await gateways.myworkid.verify_identity(ic_number)
        if identity.get("verified"):
            sources.append("MyWorkID")
        else:
            errors.append("Identity verification failed")

        epf = await gateways.kwsp.validate_epf(epf_number)
        if epf.get("valid"):
            sources.append("KWSP")
        else:
            errors.append("EPF validation failed")

        socso = await gateways.perkeso.validate_socso(socso_number)
        if socso.get("valid"):
            sources.append("PERKESO")
        else:
            errors.append("SOCSO validation failed")

        tax = await gateways.lhdn.validate_tax_number(tax_number)
        if tax.get("valid"):
            sources.append("LHDN")
        else:
            errors.append("Tax number validation failed")
    except GatewayError as e:
        errors.append(f"Synchronization failed: {e.message}")
        return {
            "synced": False,
            "sources": sources,
            "errors": errors,
            "lastSync": datetime.utcnow().isoformat() + "Z",
            "partialSuccess": False,
        }

    total_sources = 4
    return {
        "synced": len(sources) == total_sources,
        "sources": sources,
        "errors": errors,
        "lastSync": datetime.utcnow().isoformat() + "Z",
        "partialSuccess": 0 < len(sources) < total_sources,
    }
