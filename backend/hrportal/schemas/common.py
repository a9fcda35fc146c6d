from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=-(-total // limit) if limit else 0)


class MessageResponse(BaseModel):
    message: str


class EmployeeSummary(CamelModel):
    """Owner details embedded in payroll, leave and document payloads."""
    id: int
    employee_id: str
    first_name: str
    last_name: str
    department: Optional[str] = None
    position: Optional[str] = None
