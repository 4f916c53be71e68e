"""
Reports Module

Reports module providing the enforcement analytics endpoints of the
AgriShield service. Implements a layered architecture: filters build SQL
predicates, the service runs queries, handlers assemble reports and the
router exposes them.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

from .router import router as reports_router, stats_router as dashboard_stats_router
from .filters import QueryFilter, build_entity_filter, build_keyword_filters
from .models import ReportFilters, ReportType

__all__ = [
    "reports_router",
    "dashboard_stats_router",
    "QueryFilter",
    "build_entity_filter",
    "build_keyword_filters",
    "ReportFilters",
    "ReportType"
]
