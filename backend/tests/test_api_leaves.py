"""
Tests for hrportal/api/routes/leaves.py - Applications, decisions and balances.
"""
from datetime import date

import pytest
from sqlalchemy import select

from hrportal.models.employee import Employee
from hrportal.models.leave import Leave, LeaveStatus, LeaveType

THIS_YEAR = date.today().year


def _leave(start: str, end: str, leave_type: str = "ANNUAL", reason: str = "Family trip"):
    return {"type": leave_type, "startDate": start, "endDate": end, "reason": reason}


class TestApplyForLeave:
    @pytest.mark.asyncio
    async def test_apply(self, client, seed):
        response = await client.post(
            "/api/leaves",
            json=_leave(f"{THIS_YEAR}-06-01", f"{THIS_YEAR}-06-03"),
            headers=seed.headers("employee"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["days"] == 3
        assert body["employeeId"] == seed.employees["employee"]

    @pytest.mark.asyncio
    async def test_annual_leave_over_balance(self, client, seed):
        response = await client.post(
            "/api/leaves",
            json=_leave(f"{THIS_YEAR}-07-01", f"{THIS_YEAR}-07-20"),
            headers=seed.headers("employee"),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient leave balance"

    @pytest.mark.asyncio
    async def test_sick_leave_ignores_balance(self, client, seed):
        response = await client.post(
            "/api/leaves",
            json=_leave(f"{THIS_YEAR}-07-01", f"{THIS_YEAR}-07-20", leave_type="SICK"),
            headers=seed.headers("employee"),
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_overlap_with_pending_leave(self, client, seed):
        response = await client.post(
            "/api/leaves",
            json=_leave(f"{THIS_YEAR}-03-03", f"{THIS_YEAR}-03-04"),
            headers=seed.headers("employee"),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Leave dates overlap with existing leave application"

    @pytest.mark.asyncio
    async def test_end_before_start(self, client, seed):
        response = await client.post(
            "/api/leaves",
            json=_leave(f"{THIS_YEAR}-06-05", f"{THIS_YEAR}-06-01"),
            headers=seed.headers("employee"),
        )

        assert response.status_code == 400


class TestLeaveVisibility:
    @pytest.mark.asyncio
    async def test_employee_sees_own(self, client, seed):
        own = await client.get(f"/api/leaves/{seed.leaves['employee_pending']}", headers=seed.headers("employee"))
        other = await client.get(
            f"/api/leaves/{seed.leaves['employee_pending']}", headers=seed.headers("colleague")
        )

        assert own.status_code == 200
        assert other.status_code == 401

    @pytest.mark.asyncio
    async def test_manager_sees_company(self, client, seed):
        listing = await client.get("/api/leaves", headers=seed.headers("manager"))
        foreign = await client.get(f"/api/leaves/{seed.leaves['other_pending']}", headers=seed.headers("manager"))

        assert [leave["id"] for leave in listing.json()["leaves"]] == [seed.leaves["employee_pending"]]
        assert foreign.status_code == 404

    @pytest.mark.asyncio
    async def test_filter_by_status(self, client, seed):
        response = await client.get(
            "/api/leaves", params={"status": "APPROVED"}, headers=seed.headers("hr")
        )

        assert response.json()["leaves"] == []
        assert response.json()["pagination"]["total"] == 0


class TestLeaveDecision:
    @pytest.mark.asyncio
    async def test_approving_annual_leave_draws_balance(self, client, seed, db_session):
        applied = await client.post(
            "/api/leaves",
            json=_leave(f"{THIS_YEAR}-08-03", f"{THIS_YEAR}-08-06"),
            headers=seed.headers("employee"),
        )
        leave_id = applied.json()["id"]

        response = await client.put(
            f"/api/leaves/{leave_id}", json={"status": "APPROVED"}, headers=seed.headers("manager")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "APPROVED"
        assert body["approvedBy"] == seed.employees["manager"]
        assert body["approvedAt"] is not None

        balance = (await db_session.execute(
            select(Employee.leave_balance).where(Employee.id == seed.employees["employee"])
        )).scalar_one()
        assert balance == 14 - 4

    @pytest.mark.asyncio
    async def test_reject(self, client, seed):
        response = await client.put(
            f"/api/leaves/{seed.leaves['employee_pending']}",
            json={"status": "REJECTED"},
            headers=seed.headers("hr"),
        )

        assert response.json()["status"] == "REJECTED"
        assert response.json()["approvedAt"] is None

    @pytest.mark.asyncio
    async def test_cannot_decide_twice(self, client, seed):
        url = f"/api/leaves/{seed.leaves['employee_pending']}"
        await client.put(url, json={"status": "REJECTED"}, headers=seed.headers("hr"))

        response = await client.put(url, json={"status": "APPROVED"}, headers=seed.headers("hr"))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_employee_cannot_decide(self, client, seed):
        response = await client.put(
            f"/api/leaves/{seed.leaves['employee_pending']}",
            json={"status": "APPROVED"},
            headers=seed.headers("employee"),
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_other_company_leave(self, client, seed):
        response = await client.put(
            f"/api/leaves/{seed.leaves['other_pending']}",
            json={"status": "APPROVED"},
            headers=seed.headers("admin"),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_status(self, client, seed):
        response = await client.put(
            f"/api/leaves/{seed.leaves['employee_pending']}",
            json={"status": "MAYBE"},
            headers=seed.headers("hr"),
        )

        assert response.status_code == 400


class TestLeaveDelete:
    @pytest.mark.asyncio
    async def test_owner_withdraws_pending(self, client, seed):
        response = await client.delete(
            f"/api/leaves/{seed.leaves['employee_pending']}", headers=seed.headers("employee")
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_processed_leave_cannot_be_deleted(self, client, seed):
        url = f"/api/leaves/{seed.leaves['employee_pending']}"
        await client.put(url, json={"status": "REJECTED"}, headers=seed.headers("hr"))

        response = await client.delete(url, headers=seed.headers("employee"))

        assert response.status_code == 400
        assert response.json()["error"] == "Can only delete pending leave applications"

    @pytest.mark.asyncio
    async def test_colleague_cannot_delete(self, client, seed):
        response = await client.delete(
            f"/api/leaves/{seed.leaves['employee_pending']}", headers=seed.headers("colleague")
        )

        assert response.status_code == 401


class TestLeaveBalance:
    @pytest.mark.asyncio
    async def test_counts_only_this_year(self, client, seed, db_session):
        db_session.add_all([
            Leave(employee_id=seed.employees["employee"], type=LeaveType.ANNUAL.value,
                  status=LeaveStatus.APPROVED.value,
                  start_date=date(THIS_YEAR - 1, 12, 30), end_date=date(THIS_YEAR, 1, 2)),
            Leave(employee_id=seed.employees["employee"], type=LeaveType.ANNUAL.value,
                  status=LeaveStatus.APPROVED.value,
                  start_date=date(THIS_YEAR, 2, 2), end_date=date(THIS_YEAR, 2, 3)),
        ])
        await db_session.commit()

        response = await client.get("/api/leaves/balance", headers=seed.headers("employee"))

        assert response.status_code == 200
        body = response.json()
        assert body["employee"]["employeeId"] == "EMP003"
        assert body["balance"]["annual"] == 14
        assert body["balance"]["used"] == {"ANNUAL": 1}
        assert body["balance"]["pending"] == {"SICK": 1}

    @pytest.mark.asyncio
    async def test_manager_reads_colleague(self, client, seed):
        response = await client.get(
            "/api/leaves/balance",
            params={"employeeId": seed.employees["colleague"]},
            headers=seed.headers("manager"),
        )

        assert response.json()["employee"]["id"] == seed.employees["colleague"]

    @pytest.mark.asyncio
    async def test_employee_param_ignored_for_employees(self, client, seed):
        response = await client.get(
            "/api/leaves/balance",
            params={"employeeId": seed.employees["colleague"]},
            headers=seed.headers("employee"),
        )

        assert response.json()["employee"]["id"] == seed.employees["employee"]

    @pytest.mark.asyncio
    async def test_other_company_employee(self, client, seed):
        response = await client.get(
            "/api/leaves/balance",
            params={"employeeId": seed.employees["other_employee"]},
            headers=seed.headers("hr"),
        )

        assert response.status_code == 404
