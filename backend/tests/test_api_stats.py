"""
Tests for hrportal/api/routes/stats.py - Public and dashboard counters.
"""
from datetime import date

import pytest

from hrportal.core.config import settings
from hrportal.models.payroll import Payroll


class TestPublicStats:
    @pytest.mark.asyncio
    async def test_anonymous_gets_platform_counters(self, client, seed):
        response = await client.get("/api/public/stats")

        assert response.status_code == 200
        assert response.json() == {
            "public": True,
            "stats": {
                "companies": 2,
                "employees": 7,
                "leavesProcessed": 0,
                "satisfaction": settings.PUBLIC_SATISFACTION_RATE,
            },
        }

    @pytest.mark.asyncio
    async def test_invalid_token_is_treated_as_anonymous(self, client, seed):
        response = await client.get("/api/public/stats", headers={"Authorization": "Bearer junk"})

        assert response.json()["public"] is True

    @pytest.mark.asyncio
    async def test_signed_in_caller_gets_own_company(self, client, seed):
        response = await client.get("/api/public/stats", headers=seed.headers("employee"))

        body = response.json()
        assert body["public"] is False
        counters = body["companyStats"]
        assert counters["employees"] == {"total": 5, "active": 5}
        assert counters["leaves"] == {"pending": 1}
        assert counters["documents"] == {"total": 1}
        recent = body["recentActivities"]["employees"]
        assert len(recent) == 5
        assert {e["employeeId"] for e in recent} <= {"EMP001", "EMP002", "EMP003", "EMP004", "EMP005"}

    @pytest.mark.asyncio
    async def test_other_company_sees_only_itself(self, client, seed):
        response = await client.get("/api/public/stats", headers=seed.headers("other_employee"))

        counters = response.json()["companyStats"]
        assert counters["employees"]["total"] == 2
        assert counters["leaves"]["pending"] == 1

    @pytest.mark.asyncio
    async def test_current_month_payroll(self, client, seed, db_session):
        today = date.today()
        db_session.add(Payroll(employee_id=seed.employees["hr"], month=today.month, year=today.year,
                               basic_salary=6500.0, net_salary=5400.0))
        db_session.add(Payroll(employee_id=seed.employees["other_admin"], month=today.month,
                               year=today.year, basic_salary=9000.0, net_salary=7000.0))
        await db_session.commit()

        response = await client.get("/api/public/stats", headers=seed.headers("admin"))

        assert response.json()["companyStats"]["payroll"] == {"currentMonth": 5400.0}


class TestDashboardStats:
    @pytest.mark.asyncio
    async def test_requires_token(self, client, seed):
        response = await client.get("/api/dashboard/stats")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_dashboard_shape(self, client, seed):
        response = await client.get("/api/dashboard/stats", headers=seed.headers("hr"))

        assert response.status_code == 200
        body = response.json()
        assert body["employees"]["total"] == 5
        assert body["employees"]["active"] == 5
        departments = {d["department"]: d["count"] for d in body["employees"]["byDepartment"]}
        assert departments == {"Administration": 1, "Human Resources": 1, "Engineering": 2, "Finance": 1}
        assert body["leaves"]["pending"] == 1
        assert body["payroll"]["pendingPayments"] == 1
        assert body["documents"]["total"] == 1
        assert len(body["recentActivities"]["leaves"]) == 1
        assert body["recentActivities"]["leaves"][0]["employeeCode"] == "EMP003"
