"""
Report Filters

Filtering utilities for reports providing reusable functions for building SQL
WHERE clauses. Every filter axis (date range, officer, district, keyword) is
a pure function returning a parameterized QueryFilter; filters merge with AND
and an empty filter is a no-op. Columns are always qualified with the entity
table so merged filters stay unambiguous in joined queries.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

from .models import ReportFilters


ENTITY_TABLES = ['inspection_tasks', 'seizures', 'lab_samples', 'fir_cases']

# Map table names to their date column
DATE_COLUMN_MAP = {
    'inspection_tasks': 'created_at',
    'seizures': 'created_at',
    'lab_samples': 'created_at',
    'fir_cases': 'created_at',
    'audit_logs': 'created_at',
}

# Only these entities carry a location column; seizure locations live in
# scan_results.geo_location and are not district-filtered
LOCATION_COLUMN_MAP = {
    'inspection_tasks': 'location',
    'fir_cases': 'location',
}

# Text fields searched by the keyword filter, per entity. Dotted paths go
# through RELATIONS.
KEYWORD_FIELDS: Dict[str, List[str]] = {
    'inspection_tasks': ['location', 'officer', 'target_type'],
    'seizures': [
        'witness_name',
        'scan_result.company',
        'scan_result.product',
        'scan_result.batch_number',
    ],
    'lab_samples': ['sample_type', 'lab_destination', 'lab_result'],
    'fir_cases': ['violation_type', 'accused', 'case_notes'],
}

# (table, relation) -> (foreign key column, target table, target key)
RELATIONS: Dict[Tuple[str, str], Tuple[str, str, str]] = {
    ('seizures', 'scan_result'): ('scan_result_id', 'scan_results', 'id'),
    ('lab_samples', 'seizure'): ('seizure_id', 'seizures', 'id'),
    ('fir_cases', 'seizure'): ('seizure_id', 'seizures', 'id'),
    ('fir_cases', 'lab_sample'): ('lab_sample_id', 'lab_samples', 'id'),
}

# Keys the report payload uses for each entity
ENTITY_KEYS = {
    'inspection_tasks': 'inspections',
    'seizures': 'seizures',
    'lab_samples': 'labSamples',
    'fir_cases': 'firCases',
}


@dataclass
class QueryFilter:
    """AND-joined SQL condition fragments with their bound parameters"""
    conditions: List[str] = field(default_factory=list)
    params: List[Any] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def merge(self, *others: 'QueryFilter') -> 'QueryFilter':
        conditions = list(self.conditions)
        params = list(self.params)
        for other in others:
            if other:
                conditions.extend(other.conditions)
                params.extend(other.params)
        return QueryFilter(conditions, params)

    def where_clause(self, *extra_conditions: str) -> str:
        """Render 'WHERE ...' (or '' when nothing applies)"""
        conditions = list(self.conditions) + [c for c in extra_conditions if c]
        return f"WHERE {' AND '.join(conditions)}" if conditions else ""


def merge_filters(*filters: QueryFilter) -> QueryFilter:
    """AND together any number of filters; empty filters are skipped"""
    return QueryFilter().merge(*filters)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally"""
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def contains_pattern(term: str) -> str:
    """Case-folded '%term%' pattern for use with casefold(column) LIKE ?"""
    return f"%{escape_like(term.casefold())}%"


def _contains(column: str) -> str:
    return f"casefold({column}) LIKE ? ESCAPE '\\'"


def build_date_filter(
    table: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> QueryFilter:
    """
    Build the createdAt range filter.

    Args:
        table: Table name to determine the date column
        start_date: Inclusive lower bound, already normalized by ReportFilters
        end_date: Inclusive upper bound

    Returns:
        QueryFilter, empty when neither bound is given
        Example: ["inspection_tasks.created_at >= ?"], ["2024-01-01T00:00:00"]
    """
    date_col = f"{table}.{DATE_COLUMN_MAP.get(table, 'created_at')}"
    result = QueryFilter()

    if start_date:
        result.conditions.append(f"{date_col} >= ?")
        result.params.append(start_date)
    if end_date:
        result.conditions.append(f"{date_col} <= ?")
        result.params.append(end_date)

    return result


def build_user_filter(table: str, officer: Optional[str] = None) -> QueryFilter:
    """Owning user's name OR email contains the officer string (case-insensitive)"""
    if not officer:
        return QueryFilter()

    pattern = contains_pattern(officer)
    return QueryFilter(
        [f"{table}.user_id IN (SELECT users.id FROM users "
         f"WHERE {_contains('users.name')} OR {_contains('users.email')})"],
        [pattern, pattern]
    )


def build_location_filter(table: str, district: Optional[str] = None) -> QueryFilter:
    """Location contains the district substring; no-op for entities without a location"""
    column = LOCATION_COLUMN_MAP.get(table)
    if not district or column is None:
        return QueryFilter()

    return QueryFilter([_contains(f"{table}.{column}")], [contains_pattern(district)])


def build_keyword_filter(table: str, keyword: Optional[str] = None) -> QueryFilter:
    """
    OR-predicate over the entity's KEYWORD_FIELDS.

    Direct fields compare on the entity row; dotted fields are grouped by
    relation into one IN (SELECT ...) subquery each.
    """
    fields = KEYWORD_FIELDS.get(table)
    if not keyword or not fields:
        return QueryFilter()

    pattern = contains_pattern(keyword)
    alternatives = []
    params = []
    related: Dict[str, List[str]] = {}

    for path in fields:
        if '.' in path:
            relation, column = path.split('.', 1)
            related.setdefault(relation, []).append(column)
        else:
            alternatives.append(_contains(f"{table}.{path}"))
            params.append(pattern)

    for relation, columns in related.items():
        fk_column, target, target_key = RELATIONS[(table, relation)]
        matches = ' OR '.join(_contains(f"{target}.{column}") for column in columns)
        alternatives.append(
            f"{table}.{fk_column} IN (SELECT {target}.{target_key} FROM {target} WHERE {matches})"
        )
        params.extend([pattern] * len(columns))

    return QueryFilter([f"({' OR '.join(alternatives)})"], params)


def build_keyword_filters(keyword: Optional[str] = None) -> Optional[Dict[str, QueryFilter]]:
    """Per-entity keyword predicates keyed by report key, or None without a keyword"""
    if not keyword:
        return None
    return {ENTITY_KEYS[table]: build_keyword_filter(table, keyword) for table in ENTITY_TABLES}


def build_entity_filter(table: str, filters: ReportFilters) -> QueryFilter:
    """
    Compose every filter axis meaningful for the entity.

    Args:
        table: Entity table name
        filters: Validated report filters

    Returns:
        Merged QueryFilter (date, officer, district where applicable, keyword)
    """
    return merge_filters(
        build_date_filter(table, filters.start_date, filters.end_date),
        build_user_filter(table, filters.officer),
        build_location_filter(table, filters.district),
        build_keyword_filter(table, filters.keyword),
    )


def build_activity_filter(filters: ReportFilters) -> QueryFilter:
    """Audit-trail filter: date range and acting officer only"""
    return merge_filters(
        build_date_filter('audit_logs', filters.start_date, filters.end_date),
        build_user_filter('audit_logs', filters.officer),
    )
