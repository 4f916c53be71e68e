"""
Report Handlers (Business Logic Layer)

Report builders implementing the business logic layer for enforcement
analytics. Each handler class focuses on one report type: it issues the
listing and its breakdown queries concurrently, then derives the in-memory
metrics from the listing. Errors are not caught here; a report is either
complete or the request fails.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import asyncio
from datetime import datetime, timedelta
from typing import List, Dict, Any

from ..config import config
from ..database import utc_now
from .analytics import (
    value_analysis,
    equipment_usage,
    completion_analytics,
    resolution_analytics,
    compliance_rate,
    trend,
)
from .filters import (
    QueryFilter,
    ENTITY_TABLES,
    ENTITY_KEYS,
    build_date_filter,
    build_entity_filter,
    build_activity_filter,
)
from .models import (
    ReportFilters,
    InspectionTaskRecord,
    SeizureRecord,
    LabSampleRecord,
    FIRCaseRecord,
    AuditLogEntry,
)
from .service import ReportService, select_columns, nest_record

USER_COLUMNS = ['id', 'name', 'email', 'role']
USER_JOIN = "LEFT JOIN users ON users.id = {table}.user_id"


class EntityReport:
    """Shared query shapes for reports over a single entity table"""

    table: str = ''

    def __init__(self, service: ReportService):
        self.service = service
        self.reports = config.reports

    def group_count(
        self,
        column: str,
        where: QueryFilter,
        label: str,
        *extra_conditions: str,
        join: str = "",
        limit: int = None
    ):
        """Awaitable breakdown [{label: value, count}] ordered by count descending"""
        query = f"""
            SELECT {column} AS value, COUNT(*) AS count
            FROM {self.table} {join}
            {where.where_clause(*extra_conditions)}
            GROUP BY {column}
            ORDER BY count DESC, value
        """
        params = list(where.params)
        if limit:
            query += " LIMIT ?"
            params.append(limit)
        return self._breakdown(query, params, label)

    async def _breakdown(self, query: str, params: List[Any], label: str) -> List[Dict[str, Any]]:
        rows = await self.service.fetch_all(query, params)
        return self.service.format_breakdown(rows, label)

    def status_breakdown(self, where: QueryFilter):
        return self.group_count(f"{self.table}.status", where, "status")

    def child_statuses(self, child_table: str, fk_column: str, where: QueryFilter):
        """Awaitable {id, status} rows of child records whose parent matches the filter"""
        query = f"""
            SELECT {child_table}.id, {child_table}.status, {child_table}.{fk_column} AS parent_id
            FROM {child_table}
            WHERE {child_table}.{fk_column} IN (
                SELECT {self.table}.id FROM {self.table} {where.where_clause()}
            )
            ORDER BY {child_table}.created_at
        """
        return self.service.fetch_all(query, where.params)


def _group_by_parent(rows: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row in rows:
        grouped.setdefault(row['parent_id'], []).append({"id": row['id'], "status": row['status']})
    return grouped


class InspectionReports(EntityReport):
    """Inspection task listing with status, officer and equipment breakdowns"""

    table = 'inspection_tasks'

    async def build(self, filters: ReportFilters) -> dict:
        where = build_entity_filter(self.table, filters)
        query = f"""
            SELECT {select_columns(self.table)}, {select_columns('users', 'user', USER_COLUMNS)}
            FROM inspection_tasks
            {USER_JOIN.format(table=self.table)}
            {where.where_clause()}
            ORDER BY inspection_tasks.created_at DESC
        """

        rows, status_breakdown, user_breakdown = await asyncio.gather(
            self.service.fetch_all(query, where.params),
            self.status_breakdown(where),
            self.group_count("inspection_tasks.user_id", where, "userId"),
        )

        inspections = [InspectionTaskRecord.model_validate(nest_record(row)) for row in rows]

        return {
            "inspections": [record.to_api() for record in inspections],
            "statusBreakdown": status_breakdown,
            "userBreakdown": user_breakdown,
            "equipmentStats": equipment_usage(record.equipment for record in inspections)
        }


class SeizureReports(EntityReport):
    """Seizure listing with company breakdown and declared value analysis"""

    table = 'seizures'
    scan_join = "LEFT JOIN scan_results ON scan_results.id = seizures.scan_result_id"

    async def build(self, filters: ReportFilters) -> dict:
        where = build_entity_filter(self.table, filters)
        query = f"""
            SELECT {select_columns(self.table)},
                   {select_columns('users', 'user', USER_COLUMNS)},
                   {select_columns('scan_results', 'scan_result')}
            FROM seizures
            {USER_JOIN.format(table=self.table)}
            {self.scan_join}
            {where.where_clause()}
            ORDER BY seizures.created_at DESC
        """

        rows, lab_samples, fir_cases, status_breakdown, company_breakdown = await asyncio.gather(
            self.service.fetch_all(query, where.params),
            self.child_statuses('lab_samples', 'seizure_id', where),
            self.child_statuses('fir_cases', 'seizure_id', where),
            self.status_breakdown(where),
            self.group_count(
                "scan_results.company", where, "company",
                "scan_results.company IS NOT NULL",
                join=self.scan_join,
                limit=self.reports.company_breakdown_limit
            ),
        )

        samples_by_seizure = _group_by_parent(lab_samples)
        cases_by_seizure = _group_by_parent(fir_cases)

        seizures = []
        for row in rows:
            record = nest_record(row)
            record['lab_samples'] = samples_by_seizure.get(record['id'], [])
            record['fir_cases'] = cases_by_seizure.get(record['id'], [])
            seizures.append(SeizureRecord.model_validate(record))

        return {
            "seizures": [record.to_api() for record in seizures],
            "statusBreakdown": status_breakdown,
            "companyBreakdown": company_breakdown,
            "valueAnalysis": value_analysis(record.estimated_value for record in seizures)
        }


class LabSampleReports(EntityReport):
    """Lab sample listing with destination/result breakdowns and turnaround"""

    table = 'lab_samples'

    async def build(self, filters: ReportFilters) -> dict:
        where = build_entity_filter(self.table, filters)
        query = f"""
            SELECT {select_columns(self.table)},
                   {select_columns('users', 'user', USER_COLUMNS)},
                   {select_columns('seizures', 'seizure')},
                   {select_columns('scan_results', 'seizure__scan_result')}
            FROM lab_samples
            {USER_JOIN.format(table=self.table)}
            LEFT JOIN seizures ON seizures.id = lab_samples.seizure_id
            LEFT JOIN scan_results ON scan_results.id = seizures.scan_result_id
            {where.where_clause()}
            ORDER BY lab_samples.created_at DESC
        """

        rows, fir_cases, status_breakdown, destination_breakdown, result_breakdown = await asyncio.gather(
            self.service.fetch_all(query, where.params),
            self.child_statuses('fir_cases', 'lab_sample_id', where),
            self.status_breakdown(where),
            self.group_count("lab_samples.lab_destination", where, "labDestination"),
            self.group_count(
                "lab_samples.lab_result", where, "labResult",
                "lab_samples.lab_result IS NOT NULL"
            ),
        )

        cases_by_sample = _group_by_parent(fir_cases)

        samples = []
        for row in rows:
            record = nest_record(row)
            record['fir_cases'] = cases_by_sample.get(record['id'], [])
            samples.append(LabSampleRecord.model_validate(record))

        return {
            "labSamples": [record.to_api() for record in samples],
            "statusBreakdown": status_breakdown,
            "labDestinationBreakdown": destination_breakdown,
            "resultBreakdown": result_breakdown,
            "analytics": completion_analytics(
                (s.status, s.created_at, s.updated_at) for s in samples
            )
        }


class FIRCaseReports(EntityReport):
    """FIR case listing with violation/location breakdowns and resolution time"""

    table = 'fir_cases'

    async def build(self, filters: ReportFilters) -> dict:
        where = build_entity_filter(self.table, filters)
        query = f"""
            SELECT {select_columns(self.table)},
                   {select_columns('users', 'user', USER_COLUMNS)},
                   {select_columns('seizures', 'seizure')},
                   {select_columns('scan_results', 'seizure__scan_result')},
                   {select_columns('lab_samples', 'lab_sample', ['id', 'sample_type', 'status'])}
            FROM fir_cases
            {USER_JOIN.format(table=self.table)}
            LEFT JOIN seizures ON seizures.id = fir_cases.seizure_id
            LEFT JOIN scan_results ON scan_results.id = seizures.scan_result_id
            LEFT JOIN lab_samples ON lab_samples.id = fir_cases.lab_sample_id
            {where.where_clause()}
            ORDER BY fir_cases.created_at DESC
        """

        rows, status_breakdown, violation_breakdown, location_breakdown = await asyncio.gather(
            self.service.fetch_all(query, where.params),
            self.status_breakdown(where),
            self.group_count("fir_cases.violation_type", where, "violationType"),
            self.group_count(
                "fir_cases.location", where, "location",
                limit=self.reports.fir_location_limit
            ),
        )

        cases = [FIRCaseRecord.model_validate(nest_record(row)) for row in rows]

        return {
            "firCases": [record.to_api() for record in cases],
            "statusBreakdown": status_breakdown,
            "violationBreakdown": violation_breakdown,
            "locationBreakdown": location_breakdown,
            "analytics": resolution_analytics(
                (c.status, c.created_at, c.updated_at) for c in cases
            )
        }


class DashboardReports:
    """Cross-entity summary: totals, status breakdowns, activity and rankings"""

    def __init__(self, service: ReportService):
        self.service = service
        self.reports = config.reports
        self.entities = {
            'inspection_tasks': InspectionReports(service),
            'seizures': SeizureReports(service),
            'lab_samples': LabSampleReports(service),
            'fir_cases': FIRCaseReports(service),
        }

    def _count(self, table: str, where: QueryFilter):
        return self.service.fetch_count(
            f"SELECT COUNT(*) AS total FROM {table} {where.where_clause()}", where.params
        )

    async def recent_activity(self, filters: ReportFilters) -> List[dict]:
        """Newest audit entries with the acting user"""
        where = build_activity_filter(filters)
        query = f"""
            SELECT {select_columns('audit_logs')}, {select_columns('users', 'user', USER_COLUMNS)}
            FROM audit_logs
            {USER_JOIN.format(table='audit_logs')}
            {where.where_clause()}
            ORDER BY audit_logs.created_at DESC
            LIMIT ?
        """
        rows = await self.service.fetch_all(query, where.params + [self.reports.recent_activity_limit])
        return [AuditLogEntry.model_validate(nest_record(row)).to_api() for row in rows]

    async def top_officers(self, where: QueryFilter) -> List[dict]:
        """Inspection counts per owning user, with the user resolved separately"""
        ranked = await self.entities['inspection_tasks'].group_count(
            "inspection_tasks.user_id", where, "userId",
            limit=self.reports.top_officers_limit
        )
        if not ranked:
            return []

        user_ids = [entry['userId'] for entry in ranked]
        placeholders = ', '.join('?' for _ in user_ids)
        users = await self.service.fetch_all(
            f"SELECT id, name, email FROM users WHERE id IN ({placeholders})", user_ids
        )
        users_by_id = {user['id']: user for user in users}

        return [
            {**entry, "user": users_by_id.get(entry['userId'])}
            for entry in ranked
        ]

    async def build(self, filters: ReportFilters) -> dict:
        wheres = {table: build_entity_filter(table, filters) for table in ENTITY_TABLES}
        inspection_where = wheres['inspection_tasks']

        counts = [self._count(table, wheres[table]) for table in ENTITY_TABLES]
        breakdowns = [
            self.entities[table].status_breakdown(wheres[table]) for table in ENTITY_TABLES
        ]

        results = await asyncio.gather(
            *counts,
            *breakdowns,
            self.recent_activity(filters),
            self.top_officers(inspection_where),
            self.entities['inspection_tasks'].group_count(
                "inspection_tasks.location", inspection_where, "location",
                limit=self.reports.top_districts_limit
            ),
        )

        n = len(ENTITY_TABLES)
        totals = dict(zip(ENTITY_TABLES, results[:n]))
        statuses = dict(zip(ENTITY_TABLES, results[n:2 * n]))
        recent_activity, top_officers, top_districts = results[2 * n:]

        return {
            "summary": {
                "totalInspections": totals['inspection_tasks'],
                "totalSeizures": totals['seizures'],
                "totalLabSamples": totals['lab_samples'],
                "totalFIRCases": totals['fir_cases']
            },
            "statusBreakdown": {
                ENTITY_KEYS[table]: statuses[table] for table in ENTITY_TABLES
            },
            "recentActivity": recent_activity,
            "topOfficers": top_officers,
            "topDistricts": top_districts
        }


class DashboardStatsReports:
    """Store-wide overview, status maps and weekly trends for the dashboard cards"""

    def __init__(self, service: ReportService):
        self.service = service
        self.reports = config.reports

    def _records(self, table: str, where: QueryFilter = None):
        """Awaitable (created_at, status) rows of an entity"""
        where = where or QueryFilter()
        return self.service.fetch_all(
            f"SELECT {table}.created_at, {table}.status FROM {table} {where.where_clause()}",
            where.params
        )

    async def _status_map(self, table: str) -> Dict[str, int]:
        rows = await self.service.fetch_all(
            f"SELECT status AS value, COUNT(*) AS count FROM {table} "
            f"GROUP BY status ORDER BY count DESC, value"
        )
        return self.service.format_status_map(rows)

    async def build(self, period_days: int, now: datetime = None) -> dict:
        """
        Build the dashboard card statistics.

        Args:
            period_days: Look-back window for the compliance rate
            now: Reference time (defaults to the current UTC time)

        Returns:
            Dictionary with overview, statusBreakdown and trends
        """
        now = now or utc_now()
        period_start = (now - timedelta(days=period_days)).isoformat()
        window_days = min(period_days, self.reports.trend_window_days)

        results = await asyncio.gather(
            *(self._records(table) for table in ENTITY_TABLES),
            *(self._status_map(table) for table in ENTITY_TABLES),
            self._records(
                'inspection_tasks',
                build_date_filter('inspection_tasks', start_date=period_start)
            ),
        )

        n = len(ENTITY_TABLES)
        rows = dict(zip(ENTITY_TABLES, results[:n]))
        status_maps = dict(zip(ENTITY_TABLES, results[n:2 * n]))
        period_inspections = results[-1]

        def open_count(table: str, done_status: str) -> int:
            return sum(1 for row in rows[table] if row['status'] != done_status)

        overview = {
            "totalInspections": len(rows['inspection_tasks']),
            "totalSeizures": len(rows['seizures']),
            "totalFirCases": len(rows['fir_cases']),
            "totalLabSamples": len(rows['lab_samples']),
            "activeSeizures": open_count('seizures', 'closed'),
            "pendingLabSamples": open_count('lab_samples', 'completed'),
            "activeFirCases": open_count('fir_cases', 'closed'),
            "complianceRate": compliance_rate(row['status'] for row in period_inspections)
        }

        trends = {
            ENTITY_KEYS[table]: trend(
                len(rows[table]),
                [datetime.fromisoformat(row['created_at']) for row in rows[table]],
                now,
                window_days
            )
            for table in ENTITY_TABLES
        }

        return {
            "overview": overview,
            "statusBreakdown": {
                ENTITY_KEYS[table]: status_maps[table] for table in ENTITY_TABLES
            },
            "trends": trends
        }
