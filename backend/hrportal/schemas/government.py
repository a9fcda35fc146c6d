from typing import Any, Dict, Optional

from hrportal.schemas.common import CamelModel


class GatewayRequest(CamelModel):
    action: Optional[str] = None


class LHDNRequest(GatewayRequest):
    tax_number: Optional[str] = None
    tax_data: Optional[Dict[str, Any]] = None


class KWSPRequest(GatewayRequest):
    epf_number: Optional[str] = None
    contribution_data: Optional[Dict[str, Any]] = None


class PERKESORequest(GatewayRequest):
    socso_number: Optional[str] = None
    contribution_data: Optional[Dict[str, Any]] = None


class HRDFRequest(GatewayRequest):
    claim_data: Optional[Dict[str, Any]] = None


class MyWorkIDRequest(GatewayRequest):
    ic_number: Optional[str] = None


class SyncRequest(CamelModel):
    ic_number: str
    epf_number: str
    socso_number: str
    tax_number: str
