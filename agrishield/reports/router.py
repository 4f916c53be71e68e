"""
Report Router (API Layer)

FastAPI routers for the reports API: the /api/reports dispatcher serving the
dashboard and the four per-entity reports, and the /api/dashboard-stats
endpoint behind the dashboard cards. Both require a bearer token; filter
validation happens before any query runs.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ..auth import AuthenticatedUser, require_auth
from ..config import config
from .handlers import (
    DashboardReports,
    InspectionReports,
    SeizureReports,
    LabSampleReports,
    FIRCaseReports,
    DashboardStatsReports
)
from .models import ReportFilters, ReportType
from .service import ReportService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/reports", tags=["reports"])
stats_router = APIRouter(prefix="/api/dashboard-stats", tags=["dashboard"])

REPORT_BUILDERS = {
    ReportType.DASHBOARD: DashboardReports,
    ReportType.INSPECTIONS: InspectionReports,
    ReportType.SEIZURES: SeizureReports,
    ReportType.LAB_SAMPLES: LabSampleReports,
    ReportType.FIR_CASES: FIRCaseReports,
}


# Dependency to get report service
def get_report_service():
    """Get report service instance - will be injected by main app"""
    from ..app import app_state
    return ReportService(app_state["db_manager"])


def _validation_message(error: ValidationError) -> str:
    """First validation failure as 'Invalid <queryParam>: <reason>'"""
    first = error.errors()[0]
    field = to_camel(str(first['loc'][0])) if first.get('loc') else 'parameter'
    reason = first['msg'].removeprefix('Value error, ')
    return f"Invalid {field}: {reason}"


def _server_error(exc: Exception) -> JSONResponse:
    content = {"error": "Internal server error"}
    if config.is_development():
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


# ============================================================================
# REPORT DISPATCHER
# ============================================================================

@router.get("")
async def get_report(
    user: AuthenticatedUser = Depends(require_auth),
    report_type: Optional[str] = Query(None, alias="type", description="dashboard, inspections, seizures, lab-samples or fir-cases"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    officer: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    keyword: Optional[str] = Query(None),
    audit_id: Optional[str] = Query(None, alias="auditId", description="Accepted for compatibility, not used"),
    service: ReportService = Depends(get_report_service)
):
    """
    Build one report.

    Unknown or missing types fall back to the dashboard. Every filter is
    optional; an unparseable date is rejected with 400.
    """
    try:
        filters = ReportFilters(
            start_date=start_date,
            end_date=end_date,
            officer=officer,
            district=district,
            keyword=keyword
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=_validation_message(e))

    resolved = ReportType.resolve(report_type)
    logger.info(f"Report requested by {user.user_id}: type={resolved.value} filters={filters.applied()}")

    try:
        handler = REPORT_BUILDERS[resolved](service)
        return await handler.build(filters)
    except Exception as e:
        logger.error(f"Report generation failed: type={resolved.value} - {e}", exc_info=True)
        return _server_error(e)


# ============================================================================
# DASHBOARD STATS
# ============================================================================

@stats_router.get("")
async def get_dashboard_stats(
    user: AuthenticatedUser = Depends(require_auth),
    period: Optional[int] = Query(None, ge=1, le=3650, description="Look-back window in days"),
    service: ReportService = Depends(get_report_service)
):
    """Overview counts, status breakdowns and weekly trends"""
    period = period or config.reports.default_stats_period_days

    try:
        data = await DashboardStatsReports(service).build(period)
    except Exception as e:
        logger.error(f"Dashboard stats failed: period={period} - {e}", exc_info=True)
        return _server_error(e)

    return {
        "success": True,
        "data": data,
        "generatedAt": _timestamp()
    }


@stats_router.post("")
async def refresh_dashboard_stats(user: AuthenticatedUser = Depends(require_auth)):
    """Acknowledge a refresh request; stats are computed on every read"""
    logger.info(f"Dashboard stats refresh requested by {user.user_id}")
    return {
        "success": True,
        "message": "Dashboard stats refresh triggered",
        "timestamp": _timestamp()
    }
