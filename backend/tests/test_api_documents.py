"""
Tests for hrportal/api/routes/documents.py - Upload, listing and access control.
"""
import pytest

from hrportal.core.config import settings
from hrportal.services import document_service

PDF_BYTES = b"%PDF-1.4 test document"


def _upload(employee_id: int, content: bytes = PDF_BYTES, content_type: str = "application/pdf"):
    return {
        "files": {"file": ("payslip.pdf", content, content_type)},
        "data": {"employeeId": str(employee_id), "type": "PAYSLIP", "name": "January payslip"},
    }


class TestDocumentAccess:
    @pytest.mark.asyncio
    async def test_employee_reads_own(self, client, seed):
        response = await client.get(
            f"/api/documents/{seed.documents['employee']}", headers=seed.headers("employee")
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Offer letter"

    @pytest.mark.asyncio
    async def test_employee_cannot_read_others(self, client, seed):
        other = await client.get(
            f"/api/documents/{seed.documents['other_employee']}", headers=seed.headers("colleague")
        )
        missing = await client.get("/api/documents/999999", headers=seed.headers("colleague"))

        assert other.status_code == 401
        assert missing.status_code == 401

    @pytest.mark.asyncio
    async def test_hr_reads_company_documents(self, client, seed):
        found = await client.get(f"/api/documents/{seed.documents['employee']}", headers=seed.headers("hr"))
        foreign = await client.get(
            f"/api/documents/{seed.documents['other_employee']}", headers=seed.headers("hr")
        )

        assert found.status_code == 200
        assert foreign.status_code == 404

    @pytest.mark.asyncio
    async def test_list_is_scoped(self, client, seed):
        own = await client.get("/api/documents", headers=seed.headers("colleague"))
        company = await client.get("/api/documents", headers=seed.headers("admin"))

        assert own.json()["documents"] == []
        assert [d["id"] for d in company.json()["documents"]] == [seed.documents["employee"]]


class TestDocumentUpload:
    @pytest.mark.asyncio
    async def test_upload_own_document(self, client, seed):
        response = await client.post(
            "/api/documents", headers=seed.headers("employee"), **_upload(seed.employees["employee"])
        )

        assert response.status_code == 201
        body = response.json()
        assert body["type"] == "PAYSLIP"
        assert body["key"].startswith(f"{seed.employees['employee']}-")
        assert body["key"].endswith("-payslip.pdf")
        assert body["url"].startswith("data:application/pdf;base64,")

    @pytest.mark.asyncio
    async def test_employee_cannot_upload_for_others(self, client, seed):
        response = await client.post(
            "/api/documents", headers=seed.headers("employee"), **_upload(seed.employees["colleague"])
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_hr_uploads_for_company_employee(self, client, seed):
        allowed = await client.post(
            "/api/documents", headers=seed.headers("hr"), **_upload(seed.employees["colleague"])
        )
        foreign = await client.post(
            "/api/documents", headers=seed.headers("hr"), **_upload(seed.employees["other_employee"])
        )

        assert allowed.status_code == 201
        assert foreign.status_code == 404

    @pytest.mark.asyncio
    async def test_rejects_unsupported_type(self, client, seed):
        response = await client.post(
            "/api/documents",
            headers=seed.headers("employee"),
            **_upload(seed.employees["employee"], b"MZ", "application/x-msdownload"),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid file type"

    @pytest.mark.asyncio
    async def test_rejects_oversized_file(self, client, seed):
        content = b"0" * (settings.DOCUMENT_MAX_BYTES + 1)

        response = await client.post(
            "/api/documents", headers=seed.headers("employee"), **_upload(seed.employees["employee"], content)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "File size must be less than 10MB"

    @pytest.mark.asyncio
    async def test_upload_reads_at_most_one_byte_past_limit(self, client, seed, monkeypatch):
        """Oversized bodies are cut off at the limit instead of buffered whole."""
        monkeypatch.setattr(settings, "DOCUMENT_MAX_BYTES", 16)
        received = {}
        original = document_service.upload_document

        async def recording_upload(*args, **kwargs):
            received["size"] = len(kwargs["content"])
            return await original(*args, **kwargs)

        monkeypatch.setattr(document_service, "upload_document", recording_upload)

        response = await client.post(
            "/api/documents", headers=seed.headers("employee"), **_upload(seed.employees["employee"], b"0" * 4096)
        )

        assert response.status_code == 400
        assert received["size"] == 17

    @pytest.mark.asyncio
    async def test_missing_form_fields(self, client, seed):
        response = await client.post(
            "/api/documents",
            headers=seed.headers("employee"),
            files={"file": ("a.pdf", PDF_BYTES, "application/pdf")},
        )

        assert response.status_code == 400


class TestDocumentDelete:
    @pytest.mark.asyncio
    async def test_hr_deletes(self, client, seed):
        url = f"/api/documents/{seed.documents['employee']}"

        deleted = await client.delete(url, headers=seed.headers("hr"))
        again = await client.get(url, headers=seed.headers("hr"))

        assert deleted.status_code == 200
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_owner_cannot_delete(self, client, seed):
        response = await client.delete(
            f"/api/documents/{seed.documents['employee']}", headers=seed.headers("employee")
        )

        assert response.status_code == 401
