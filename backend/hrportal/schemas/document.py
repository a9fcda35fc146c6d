from datetime import datetime
from typing import List, Optional

from hrportal.schemas.common import CamelModel, EmployeeSummary


class DocumentOut(CamelModel):
    id: int
    name: str
    type: str
    key: str
    url: str
    employee_id: int
    uploaded_at: datetime
    employee: Optional[EmployeeSummary] = None


class DocumentListResponse(CamelModel):
    documents: List[DocumentOut]
