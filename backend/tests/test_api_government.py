"""
Tests for hrportal/api/routes/government.py, compliance.py and webhook.py.
"""
import pytest


class TestGovernmentEndpoints:
    @pytest.mark.asyncio
    async def test_requires_token(self, client, seed):
        response = await client.post("/api/government/lhdn", json={"action": "validate", "taxNumber": "1234567890"})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    @pytest.mark.asyncio
    async def test_employee_denied(self, client, seed):
        response = await client.post(
            "/api/government/lhdn",
            json={"action": "validate", "taxNumber": "1234567890"},
            headers=seed.headers("employee"),
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_lhdn_validate(self, client, seed):
        response = await client.post(
            "/api/government/lhdn",
            json={"action": "validate", "taxNumber": "1234567890"},
            headers=seed.headers("hr"),
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("service, payload, error", [
        ("lhdn", {"action": "validate"}, "Tax number is required"),
        ("lhdn", {"action": "submit"}, "Tax data is required"),
        ("kwsp", {"action": "validate"}, "EPF number is required"),
        ("kwsp", {"action": "submit"}, "Contribution data is required"),
        ("perkeso", {"action": "validate"}, "SOCSO number is required"),
        ("hrdf", {"action": "submit"}, "Claim data is required"),
        ("myworkid", {"action": "verify"}, "IC number is required"),
        ("myworkid", {"action": "employmentHistory"}, "IC number is required"),
        ("kwsp", {"action": "delete"}, "Invalid action"),
        ("hrdf", {}, "Invalid action"),
    ])
    async def test_missing_fields(self, client, seed, service, payload, error):
        response = await client.post(f"/api/government/{service}", json=payload, headers=seed.headers("admin"))

        assert response.status_code == 400
        assert response.json()["error"] == error

    @pytest.mark.asyncio
    async def test_kwsp_submit(self, client, seed):
        response = await client.post(
            "/api/government/kwsp",
            json={"action": "submit", "contributionData": {"employeeId": "EMP003", "amount": 825, "month": "2025-01"}},
            headers=seed.headers("admin"),
        )

        assert response.json()["status"] == "processed"

    @pytest.mark.asyncio
    async def test_hrdf_validate(self, client, seed):
        response = await client.post(
            "/api/government/hrdf",
            json={"action": "validate", "claimData": {"trainingProgram": "Python 101", "participants": 4}},
            headers=seed.headers("hr"),
        )

        assert response.json() == {"valid": True, "claimAmount": 5000, "approvedHours": 40}

    @pytest.mark.asyncio
    async def test_employment_history(self, client, seed):
        response = await client.post(
            "/api/government/myworkid",
            json={"action": "employmentHistory", "icNumber": "880312079012"},
            headers=seed.headers("hr"),
        )

        assert len(response.json()["employmentHistory"]) == 2

    @pytest.mark.asyncio
    async def test_sync(self, client, seed):
        response = await client.post(
            "/api/government/sync",
            json={
                "icNumber": "880312079012",
                "epfNumber": "123456789",
                "socsoNumber": "SOC123",
                "taxNumber": "1234567890",
            },
            headers=seed.headers("hr"),
        )

        assert response.status_code == 200
        assert response.json()["synced"] is True


class TestComplianceCalculator:
    @pytest.mark.asyncio
    async def test_calculate(self, client, seed):
        response = await client.post(
            "/api/compliance/calculate",
            json={"basicSalary": 3000, "allowances": 500, "deductions": 100},
            headers=seed.headers("employee"),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["grossSalary"] == 3500
        assert body["data"]["epfEmployee"] == pytest.approx(385.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"basicSalary": 0}, {"basicSalary": -10}])
    async def test_basic_salary_required(self, client, seed, payload):
        response = await client.post(
            "/api/compliance/calculate", json=payload, headers=seed.headers("employee")
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_info(self, client, seed):
        response = await client.get("/api/compliance/calculate", headers=seed.headers("employee"))

        assert response.json()["method"] == "POST"

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.post("/api/compliance/calculate", json={"basicSalary": 3000})

        assert response.status_code == 401


class TestWebhook:
    @pytest.mark.asyncio
    async def test_receives_payload(self, client):
        response = await client.post("/api/webhook", json={"event": "employee.created", "id": 1})

        assert response.status_code == 200
        assert response.json() == {"message": "Webhook received successfully"}

    @pytest.mark.asyncio
    async def test_malformed_payload(self, client):
        response = await client.post(
            "/api/webhook", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 500
        assert response.json() == {"message": "Webhook processing failed"}

    @pytest.mark.asyncio
    async def test_get(self, client):
        response = await client.get("/api/webhook")

        assert response.json() == {"message": "Webhook endpoint"}
