"""
Report Service (Data Access Layer)

Data access layer for report queries providing query execution and row
formatting. Synchronous execution goes through the pooled SQLite connections;
the async variants run the same call on a worker thread so a report can fan
out several independent queries and await them together.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import asyncio
from typing import List, Dict, Any, Optional, Sequence
from contextlib import contextmanager

from ..database_schema import TABLE_COLUMNS


def select_columns(table: str, prefix: str = "", columns: Optional[Sequence[str]] = None) -> str:
    """
    Column list for a (joined) table, aliased with a nesting prefix.

    select_columns('scan_results', 'scan_result') ->
        "scan_results.id AS scan_result__id, scan_results.company AS scan_result__company, ..."
    """
    columns = columns or TABLE_COLUMNS[table]
    if not prefix:
        return ", ".join(f"{table}.{column}" for column in columns)
    return ", ".join(f"{table}.{column} AS {prefix}__{column}" for column in columns)


def nest_record(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn 'relation__column' keys into nested dictionaries.

    A nested relation whose id is NULL (no joined row) becomes None.
    """
    record: Dict[str, Any] = {}
    for key, value in row.items():
        parts = key.split('__')
        target = record
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return _collapse_missing(record)


def _collapse_missing(record: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in list(record.items()):
        if isinstance(value, dict):
            record[key] = None if value.get('id') is None else _collapse_missing(value)
    return record


class ReportService:
    """Base service for executing report queries"""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    @contextmanager
    def get_connection(self):
        """Get database connection from pool"""
        with self.db_manager.pool.get_connection() as conn:
            yield conn

    def execute_query(self, query: str, params: List[Any] = None) -> List[Dict[str, Any]]:
        """
        Execute a query and return results.

        Args:
            query: SQL query string
            params: Query parameters

        Returns:
            List of rows as dictionaries
        """
        params = params or []
        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            columns = [desc[0] for desc in cursor.description] if cursor.description else []
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_single(self, query: str, params: List[Any] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single result"""
        rows = self.execute_query(query, params)
        return rows[0] if rows else None

    def execute_count(self, query: str, params: List[Any] = None) -> int:
        """Execute a COUNT query and return the number"""
        row = self.execute_single(query, params)
        return int(next(iter(row.values()))) if row else 0

    async def fetch_all(self, query: str, params: List[Any] = None) -> List[Dict[str, Any]]:
        """Async execute_query on a worker thread"""
        return await asyncio.to_thread(self.execute_query, query, params)

    async def fetch_count(self, query: str, params: List[Any] = None) -> int:
        return await asyncio.to_thread(self.execute_count, query, params)

    def format_breakdown(self, rows: List[Dict[str, Any]], label: str) -> List[Dict[str, Any]]:
        """
        Format grouped rows as [{label: value, "count": n}].

        Args:
            rows: Rows with a 'value' and a 'count' column
            label: Key the grouped value is reported under
        """
        return [{label: row['value'], "count": int(row['count'])} for row in rows]

    def format_status_map(self, rows: List[Dict[str, Any]]) -> Dict[str, int]:
        """Format grouped status rows as {status: count}"""
        return {row['value']: int(row['count']) for row in rows}
