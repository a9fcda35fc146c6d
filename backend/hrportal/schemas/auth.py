from typing import Optional

from pydantic import BaseModel, field_validator

from hrportal.schemas.common import CamelModel


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Email and password are required")
        return v


class UserOut(CamelModel):
    id: int
    email: str
    name: str
    first_name: str
    last_name: str
    role: str
    department: Optional[str] = None
    position: Optional[str] = None
    employee_id: str
    company_id: int
    company: Optional[str] = None


class LoginResponse(CamelModel):
    user: UserOut
    token: str


class MeResponse(CamelModel):
    user: UserOut
