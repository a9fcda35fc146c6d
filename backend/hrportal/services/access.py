"""
Role policy and tenancy scoping.

Every read or write goes through one of the ``scoped_*`` builders below so the
principal's company (privileged roles) or own employee row (everyone else) is
part of the query itself. A miss on a self-scoped query is reported as
unauthorized whether or not the id exists.
"""

from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Optional

from sqlalchemy import Select, select

from hrportal.core.exceptions import AuthorizationError, NotFoundError
from hrportal.models.document import Document
from hrportal.models.employee import Employee, Role
from hrportal.models.leave import Leave
from hrportal.models.payroll import Payroll

ADMIN_ROLES: FrozenSet[str] = frozenset({Role.ADMIN.value})
HR_ROLES: FrozenSet[str] = frozenset({Role.ADMIN.value, Role.HR.value})
LEAVE_APPROVER_ROLES: FrozenSet[str] = frozenset({Role.ADMIN.value, Role.HR.value, Role.MANAGER.value})

# Who sees company-wide rows for each resource; everyone else sees their own.
PAYROLL_READ_ROLES = HR_ROLES
DOCUMENT_READ_ROLES = HR_ROLES
LEAVE_READ_ROLES = LEAVE_APPROVER_ROLES
LEAVE_DELETE_ROLES = HR_ROLES


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, rebuilt from token claims on every request."""
    id: int
    email: str
    name: str
    role: str
    department: Optional[str]
    company_id: int
    employee_code: Optional[str] = None

    @property
    def employee_id(self) -> int:
        # Credentials live on the employee row, so the ids coincide.
        return self.id

    def has_role(self, roles: FrozenSet[str]) -> bool:
        return self.role in roles

    def claims(self) -> dict[str, Any]:
        return {
            "sub": str(self.id),
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "department": self.department,
            "company_id": self.company_id,
            "employee_code": self.employee_code,
        }

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Optional["Principal"]:
        """Return None when required claims are missing or malformed."""
        try:
            principal_id = int(claims["sub"])
            company_id = int(claims["company_id"])
            role = str(claims["role"])
            email = str(claims["email"])
        except (KeyError, TypeError, ValueError):
            return None
        if role not in Role.__members__:
            return None
        return cls(
            id=principal_id,
            email=email,
            name=str(claims.get("name") or email),
            role=role,
            department=claims.get("department"),
            company_id=company_id,
            employee_code=claims.get("employee_code"),
        )

    @classmethod
    def from_employee(cls, employee: Employee) -> "Principal":
        return cls(
            id=employee.id,
            email=employee.email,
            name=employee.full_name,
            role=employee.role,
            department=employee.department,
            company_id=employee.company_id,
            employee_code=employee.employee_id,
        )


def require_role(principal: Principal, roles: FrozenSet[str]) -> None:
    if not principal.has_role(roles):
        raise AuthorizationError()


def missing(principal: Principal, read_roles: FrozenSet[str], resource: str) -> Exception:
    """
    The error for a scoped lookup that found nothing.

    Privileged callers learn the id is absent from their company; self-scoped
    callers get the same answer as for someone else's row.
    """
    if principal.has_role(read_roles):
        return NotFoundError(f"{resource} not found")
    return AuthorizationError()


def scoped_employees(principal: Principal) -> Select:
    return select(Employee).where(Employee.company_id == principal.company_id)


def _owned(stmt: Select, model, principal: Principal, read_roles: FrozenSet[str]) -> Select:
    if principal.has_role(read_roles):
        return stmt.join(Employee, model.employee_id == Employee.id).where(
            Employee.company_id == principal.company_id
        )
    return stmt.where(model.employee_id == principal.employee_id)


def scoped_payrolls(principal: Principal) -> Select:
    return _owned(select(Payroll), Payroll, principal, PAYROLL_READ_ROLES)


def scoped_documents(principal: Principal) -> Select:
    return _owned(select(Document), Document, principal, DOCUMENT_READ_ROLES)


def scoped_leaves(principal: Principal, read_roles: FrozenSet[str] = LEAVE_READ_ROLES) -> Select:
    return _owned(select(Leave), Leave, principal, read_roles)
