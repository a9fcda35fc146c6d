"""
Tests for hrportal/services/access.py - Principals, role policy and scoping.
"""
import pytest

from hrportal.core.exceptions import AuthorizationError, NotFoundError
from hrportal.services.access import (
    DOCUMENT_READ_ROLES,
    HR_ROLES,
    LEAVE_APPROVER_ROLES,
    PAYROLL_READ_ROLES,
    Principal,
    missing,
    require_role,
    scoped_payrolls,
)


class TestPrincipalClaims:
    def test_claims_round_trip(self, principal_factory):
        principal = principal_factory(role="HR", id=12, company_id=4)

        restored = Principal.from_claims(principal.claims())

        assert restored == principal

    def test_sub_is_string_in_claims(self, principal_factory):
        assert principal_factory(id=5).claims()["sub"] == "5"

    @pytest.mark.parametrize("claims", [
        {},
        {"sub": "x", "company_id": 1, "role": "HR", "email": "a@company.com"},
        {"sub": "1", "role": "HR", "email": "a@company.com"},
        {"sub": "1", "company_id": 1, "role": "SUPERUSER", "email": "a@company.com"},
    ])
    def test_malformed_claims_rejected(self, claims):
        assert Principal.from_claims(claims) is None

    def test_employee_id_matches_id(self, principal_factory):
        assert principal_factory(id=9).employee_id == 9


class TestRolePolicy:
    def test_hr_roles(self):
        assert HR_ROLES == {"ADMIN", "HR"}
        assert PAYROLL_READ_ROLES == HR_ROLES
        assert DOCUMENT_READ_ROLES == HR_ROLES

    def test_managers_approve_leave(self):
        assert "MANAGER" in LEAVE_APPROVER_ROLES
        assert "EMPLOYEE" not in LEAVE_APPROVER_ROLES

    def test_require_role_denies_with_unauthorized(self, principal_factory):
        with pytest.raises(AuthorizationError) as exc_info:
            require_role(principal_factory(role="EMPLOYEE"), HR_ROLES)

        assert exc_info.value.status_code == 401

    def test_require_role_allows(self, principal_factory):
        require_role(principal_factory(role="HR"), HR_ROLES)


class TestMissing:
    def test_privileged_caller_gets_not_found(self, principal_factory):
        error = missing(principal_factory(role="ADMIN"), PAYROLL_READ_ROLES, "Payroll")

        assert isinstance(error, NotFoundError)
        assert error.message == "Payroll not found"

    def test_self_scoped_caller_gets_unauthorized(self, principal_factory):
        error = missing(principal_factory(role="EMPLOYEE"), PAYROLL_READ_ROLES, "Payroll")

        assert isinstance(error, AuthorizationError)


class TestScopedQueries:
    def test_privileged_scope_filters_by_company(self, principal_factory):
        sql = str(scoped_payrolls(principal_factory(role="HR")))

        assert "employees.company_id" in sql

    def test_self_scope_filters_by_owner(self, principal_factory):
        sql = str(scoped_payrolls(principal_factory(role="EMPLOYEE")))

        assert "payrolls.employee_id" in sql
        assert "company_id" not in sql
