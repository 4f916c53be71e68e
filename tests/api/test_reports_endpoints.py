"""
================================================================================
AgriShield Reports - Reports API Endpoint Tests
================================================================================
AgriShield Platform Team
District Agriculture Enforcement

Description:
    Integration tests for the /api/reports dispatcher, /api/dashboard-stats
    and /api/health, driven through FastAPI's TestClient against a temporary
    SQLite store.

Test Coverage:
    - Authentication (missing, invalid and valid bearer tokens)
    - Report type dispatch and dashboard fallback
    - Filter validation and query parameter names
    - 500 responses with development-only details
    - Dashboard stats period validation and refresh acknowledgement
    - Health check table counts and connection pool usage
================================================================================
"""
import pytest
from unittest.mock import patch, AsyncMock

from agrishield.config import config, Environment


class TestReportsAuthentication:
    """Test /api/reports authentication"""

    def test_missing_token(self, api_client):
        with patch("agrishield.reports.router.DashboardReports.build", new_callable=AsyncMock) as build:
            response = api_client.get("/api/reports")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        build.assert_not_called()

    def test_invalid_token(self, api_client):
        response = api_client.get("/api/reports", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_expired_token(self, api_client, make_token):
        from datetime import timedelta
        token = make_token(expires_in=timedelta(seconds=-1))

        response = api_client.get("/api/reports", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestReportDispatch:
    """Test /api/reports type dispatch"""

    def test_default_is_dashboard(self, api_client, auth_headers):
        response = api_client.get("/api/reports", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"summary", "statusBreakdown", "recentActivity", "topOfficers", "topDistricts"}

    def test_unknown_type_falls_back_to_dashboard(self, api_client, auth_headers):
        response = api_client.get("/api/reports?type=weather", headers=auth_headers)

        assert response.status_code == 200
        assert "summary" in response.json()

    @pytest.mark.parametrize("report_type,key", [
        ("inspections", "inspections"),
        ("seizures", "seizures"),
        ("lab-samples", "labSamples"),
        ("fir-cases", "firCases"),
    ])
    def test_entity_reports(self, api_client, auth_headers, report_type, key):
        response = api_client.get(f"/api/reports?type={report_type}", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body[key] == []
        assert body["statusBreakdown"] == []

    def test_filters_reach_the_report(self, api_client, auth_headers, store):
        user = store.user(name="Ravi Kumar")
        store.inspection(user, location="Saaf Mandi")
        store.inspection(user, location="Bathinda")

        response = api_client.get(
            "/api/reports",
            params={"type": "inspections", "keyword": "SAAF", "startDate": "2024-01-01",
                    "endDate": "2024-12-31", "officer": "ravi", "auditId": "ignored"},
            headers=auth_headers
        )

        assert response.status_code == 200
        inspections = response.json()["inspections"]
        assert [i["location"] for i in inspections] == ["Saaf Mandi"]

    def test_overflowing_estimated_value_is_skipped(self, api_client, auth_headers, store):
        user = store.user()
        store.seizure(user, estimated_value="9" * 400)
        store.seizure(user, estimated_value="Rs 2500")

        response = api_client.get("/api/reports?type=seizures", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["valueAnalysis"] == {"sum": 2500.0, "avg": 2500.0, "count": 1}

    def test_blank_filters_are_ignored(self, api_client, auth_headers, store):
        user = store.user()
        store.fir_case(user)

        response = api_client.get(
            "/api/reports?type=fir-cases&startDate=&endDate=&district=&keyword=",
            headers=auth_headers
        )

        assert response.status_code == 200
        assert len(response.json()["firCases"]) == 1


class TestReportValidation:
    """Test /api/reports filter validation"""

    def test_invalid_start_date(self, api_client, auth_headers):
        response = api_client.get("/api/reports?type=seizures&startDate=not-a-date", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid startDate: 'not-a-date' is not an ISO-8601 date"
        assert response.json()["path"] == "/api/reports"

    def test_invalid_end_date(self, api_client, auth_headers):
        response = api_client.get("/api/reports?endDate=31-12-2024", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid endDate")


class TestReportErrors:
    """Test /api/reports failure responses"""

    def test_failure_returns_500(self, api_client, auth_headers):
        with patch("agrishield.reports.router.SeizureReports.build",
                   new_callable=AsyncMock, side_effect=RuntimeError("disk I/O error")):
            response = api_client.get("/api/reports?type=seizures", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_details_only_in_development(self, api_client, auth_headers, monkeypatch):
        monkeypatch.setattr(config, "environment", Environment.DEVELOPMENT)

        with patch("agrishield.reports.router.DashboardReports.build",
                   new_callable=AsyncMock, side_effect=RuntimeError("disk I/O error")):
            response = api_client.get("/api/reports", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": "disk I/O error"}


class TestDashboardStatsEndpoint:
    """Test /api/dashboard-stats"""

    def test_requires_auth(self, api_client):
        assert api_client.get("/api/dashboard-stats").status_code == 401
        assert api_client.post("/api/dashboard-stats").status_code == 401
        assert api_client.get("/api/dashboard-stats").json() == {"error": "Unauthorized"}

    def test_stats_shape(self, api_client, auth_headers, store):
        user = store.user()
        store.inspection(user, status="completed")

        response = api_client.get("/api/dashboard-stats", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["generatedAt"].endswith("Z")
        assert set(body["data"]) == {"overview", "statusBreakdown", "trends"}
        assert body["data"]["overview"]["totalInspections"] == 1
        assert body["data"]["statusBreakdown"]["inspections"] == {"completed": 1}

    @pytest.mark.parametrize("period", ["0", "-3", "abc", "5000"])
    def test_invalid_period(self, api_client, auth_headers, period):
        response = api_client.get(f"/api/dashboard-stats?period={period}", headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request parameters"

    def test_custom_period(self, api_client, auth_headers):
        with patch("agrishield.reports.router.DashboardStatsReports.build",
                   new_callable=AsyncMock, return_value={}) as build:
            response = api_client.get("/api/dashboard-stats?period=7", headers=auth_headers)

        assert response.status_code == 200
        build.assert_awaited_once_with(7)

    def test_default_period(self, api_client, auth_headers):
        with patch("agrishield.reports.router.DashboardStatsReports.build",
                   new_callable=AsyncMock, return_value={}) as build:
            api_client.get("/api/dashboard-stats", headers=auth_headers)

        build.assert_awaited_once_with(config.reports.default_stats_period_days)

    def test_failure_returns_500(self, api_client, auth_headers):
        with patch("agrishield.reports.router.DashboardStatsReports.build",
                   new_callable=AsyncMock, side_effect=RuntimeError("boom")):
            response = api_client.get("/api/dashboard-stats", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"

    def test_refresh(self, api_client, auth_headers):
        response = api_client.post("/api/dashboard-stats", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Dashboard stats refresh triggered"


class TestHealthEndpoint:
    """Test /api/health"""

    def test_health_without_lifespan(self, api_client):
        response = api_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["environment"] == "testing"

    def test_health_reports_tables_and_pool(self, api_client, db_manager, store, monkeypatch):
        from agrishield.app import app_state
        monkeypatch.setitem(app_state, "db_manager", db_manager)
        store.inspection(store.user())

        body = api_client.get("/api/health").json()

        assert body["status"] == "healthy"
        assert body["tables"]["inspection_tasks"] == {"exists": True, "row_count": 1}
        assert body["pool"]["max_connections"] == db_manager.pool.max_connections
        assert body["pool"]["in_use"] == 0
