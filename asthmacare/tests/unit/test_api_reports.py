"""Unit tests for report API endpoints."""

from urllib.parse import unquote

import pytest


def pdf_file(name="report.pdf", data=b"%PDF-1.4 lung function"):
    return ("files", (name, data, "application/pdf"))


async def wait_for_analysis(app_state, headers, report_id):
    token = headers["Authorization"].split(" ", 1)[1]
    await app_state.contexts[token].reports.wait_for_analysis(report_id)


@pytest.fixture
async def uploaded_report(test_client_with_db, auth_headers, app_state):
    """Upload one report and wait until its analysis is stored."""
    response = await test_client_with_db.post(
        "/api/reports",
        headers=auth_headers,
        files=[pdf_file()],
        data={"report_text": "Spirometry shows wheezing, asthma suspected"},
    )
    report = response.json()["uploaded"][0]
    await wait_for_analysis(app_state, auth_headers, report["id"])
    return report


class TestReportsAPI:
    """Test cases for report API endpoints."""

    @pytest.mark.asyncio
    async def test_requires_token(self, test_client_with_db):
        """Test report endpoints reject anonymous requests."""
        response = await test_client_with_db.get("/api/reports")

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["type"] == "AuthenticationRequiredError"

    @pytest.mark.asyncio
    async def test_upload_starts_analyzing(self, test_client_with_db, auth_headers, app_state):
        """Test an upload returns immediately with analyzing reports."""
        response = await test_client_with_db.post(
            "/api/reports",
            headers=auth_headers,
            files=[pdf_file("a.pdf"), pdf_file("b.pdf")],
        )

        assert response.status_code == 201
        data = response.json()
        assert [r["file_name"] for r in data["uploaded"]] == ["a.pdf", "b.pdf"]
        assert all(r["status"] == "analyzing" for r in data["uploaded"])
        assert data["failed"] == []
        assert data["message"] == "Successfully uploaded 2 file(s)"

        progress = app_state.connections.events_of_type("upload_progress")
        assert [p["progress"] for p in progress] == [50, 100]

        for report in data["uploaded"]:
            await wait_for_analysis(app_state, auth_headers, report["id"])

    @pytest.mark.asyncio
    async def test_upload_rejects_invalid_type(self, test_client_with_db, auth_headers):
        """Test a batch without any valid file is a 400."""
        response = await test_client_with_db.post(
            "/api/reports",
            headers=auth_headers,
            files=[("files", ("notes.txt", b"hello", "text/plain"))],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No valid files to upload"

    @pytest.mark.asyncio
    async def test_list_and_get(self, test_client_with_db, auth_headers, uploaded_report):
        """Test the list holds the completed report with its analysis."""
        response = await test_client_with_db.get("/api/reports", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        report = data["reports"][0]
        assert report["id"] == uploaded_report["id"]
        assert report["status"] == "completed"
        assert report["analysis_result"]["riskLevel"] == "moderate"
        assert "Asthma" in report["analysis_result"]["detectedConditions"]

        response = await test_client_with_db.get(
            f"/api/reports/{uploaded_report['id']}", headers=auth_headers
        )
        assert response.json()["id"] == uploaded_report["id"]

    @pytest.mark.asyncio
    async def test_get_missing_report(self, test_client_with_db, auth_headers):
        response = await test_client_with_db.get("/api/reports/missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["type"] == "ReportNotFoundError"

    @pytest.mark.asyncio
    async def test_download_analysis(self, test_client_with_db, auth_headers, uploaded_report):
        """Test the text export of a completed analysis."""
        response = await test_client_with_db.get(
            f"/api/reports/{uploaded_report['id']}/analysis.txt", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == (
            "attachment; filename*=UTF-8''report.pdf_analysis.txt"
        )
        assert response.text.startswith("Medical Report Analysis")
        assert "Risk Level: moderate" in response.text

    @pytest.mark.asyncio
    async def test_download_analysis_non_ascii_name(self, test_client_with_db, auth_headers, app_state):
        """Test the export of a report whose file name is not ASCII."""
        response = await test_client_with_db.post(
            "/api/reports",
            headers=auth_headers,
            files=[pdf_file("रिपोर्ट.pdf")],
            data={"report_text": "asthma"},
        )
        report_id = response.json()["uploaded"][0]["id"]
        await wait_for_analysis(app_state, auth_headers, report_id)

        response = await test_client_with_db.get(
            f"/api/reports/{report_id}/analysis.txt", headers=auth_headers
        )

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert disposition.startswith("attachment; filename*=UTF-8''")
        assert unquote(disposition.split("''", 1)[1]) == "रिपोर्ट.pdf_analysis.txt"
        assert "Risk Level:" in response.text

    @pytest.mark.asyncio
    async def test_download_before_analysis(self, test_client_with_db, auth_headers, app_state):
        """Test the export is unavailable while analyzing."""
        response = await test_client_with_db.post(
            "/api/reports", headers=auth_headers, files=[pdf_file()]
        )
        report_id = response.json()["uploaded"][0]["id"]

        response = await test_client_with_db.get(
            f"/api/reports/{report_id}/analysis.txt", headers=auth_headers
        )

        assert response.status_code == 409
        await wait_for_analysis(app_state, auth_headers, report_id)

    @pytest.mark.asyncio
    async def test_reanalyze(self, test_client_with_db, auth_headers, app_state, uploaded_report):
        """Test re-analysis of a completed report."""
        response = await test_client_with_db.post(
            f"/api/reports/{uploaded_report['id']}/reanalyze", headers=auth_headers
        )

        assert response.status_code == 202
        assert response.json()["status"] == "analyzing"
        assert response.json()["analysis_result"] is None

        # A second request while analyzing conflicts
        response = await test_client_with_db.post(
            f"/api/reports/{uploaded_report['id']}/reanalyze", headers=auth_headers
        )
        assert response.status_code == 409

        await wait_for_analysis(app_state, auth_headers, uploaded_report["id"])

    @pytest.mark.asyncio
    async def test_delete(self, test_client_with_db, auth_headers, app_state, uploaded_report):
        """Test deleting a report removes it from the list."""
        response = await test_client_with_db.delete(
            f"/api/reports/{uploaded_report['id']}", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "id": uploaded_report["id"]}
        assert app_state.connections.events_of_type("report_deleted") == [{"id": uploaded_report["id"]}]

        response = await test_client_with_db.get("/api/reports", headers=auth_headers)
        assert response.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_reports_survive_new_context(self, test_client_with_db, auth_headers, app_state, uploaded_report):
        """Test a restored session reloads the stored reports."""
        app_state.shutdown()

        response = await test_client_with_db.get("/api/reports", headers=auth_headers)

        assert response.json()["total"] == 1
        assert response.json()["reports"][0]["status"] == "completed"
