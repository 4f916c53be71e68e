"""
Database Layer

Thread-safe SQLite access for the reports service: a connection pool shared
by concurrent report queries and a database manager that owns schema
creation, raw query execution and table statistics.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import sqlite3
import logging
import threading
import time
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple
from contextlib import contextmanager
from datetime import datetime, timezone
from dataclasses import dataclass, field

from .config import config
from .database_schema import get_schema_sql, get_table_names

# Register datetime adapter for Python 3.12+ compatibility
sqlite3.register_adapter(datetime, lambda dt: dt.isoformat())


def utc_now() -> datetime:
    """Naive UTC timestamp, the representation stored in every created_at column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


@dataclass
class QueryResult:
    """Standardized query result with metadata"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    row_count: int = 0
    columns: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0
    error_message: Optional[str] = None


class DatabaseConnectionPool:
    """Thread-safe SQLite connection pool"""

    def __init__(self, db_path: Path, max_connections: int = 10, timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.max_connections = max_connections
        self.timeout = timeout
        self._pool: List[sqlite3.Connection] = []
        self._pool_lock = threading.Lock()
        self._created_connections = 0
        self.logger = logging.getLogger(self.__class__.__name__)

        # Ensure database directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new configured database connection"""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout,
            check_same_thread=False
        )

        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.execute("PRAGMA temp_store = MEMORY")
        # SQLite's own LIKE only folds ASCII
        conn.create_function("casefold", 1, _casefold, deterministic=True)

        return conn

    @contextmanager
    def get_connection(self):
        """Get a connection from the pool"""
        conn = None
        temp_connection = False
        try:
            with self._pool_lock:
                if self._pool:
                    conn = self._pool.pop()
                elif self._created_connections < self.max_connections:
                    conn = self._create_connection()
                    self._created_connections += 1

            if conn is None:
                # Pool exhausted, create temporary connection
                conn = self._create_connection()
                temp_connection = True

            yield conn

        except Exception as e:
            self.logger.error(f"Database error: {e}")
            if conn is not None:
                try:
                    conn.rollback()
                except sqlite3.Error:
                    pass
            raise
        finally:
            if conn is not None:
                if temp_connection:
                    conn.close()
                else:
                    with self._pool_lock:
                        if len(self._pool) < self.max_connections:
                            self._pool.append(conn)
                        else:
                            conn.close()
                            self._created_connections -= 1

    def close_all(self):
        """Close all connections in the pool"""
        with self._pool_lock:
            for conn in self._pool:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    self.logger.warning(f"Error closing connection: {e}")
            self._pool.clear()
            self._created_connections = 0

    def get_pool_stats(self) -> Dict[str, int]:
        """Get connection pool statistics for monitoring"""
        with self._pool_lock:
            return {
                'pool_size': len(self._pool),
                'created_connections': self._created_connections,
                'max_connections': self.max_connections,
                'available': len(self._pool),
                'in_use': self._created_connections - len(self._pool)
            }


class DatabaseManager:
    """
    Main database manager
    Owns the connection pool and the schema of the enforcement tables
    """

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or config.database.path)
        self.pool = DatabaseConnectionPool(
            self.db_path,
            max_connections=config.database.max_connections,
            timeout=config.database.connection_timeout
        )

        self.logger = logging.getLogger(self.__class__.__name__)

        self.initialize_database()

    def initialize_database(self):
        """Initialize database schema"""
        try:
            with self.pool.get_connection() as conn:
                statement_count = 0
                for statement in get_schema_sql().split(';'):
                    statement = statement.strip()
                    if statement:
                        conn.execute(statement)
                        statement_count += 1

                conn.commit()
                self.logger.info(f"Database schema initialized successfully ({statement_count} statements executed)")

        except Exception as e:
            self.logger.error(f"Failed to initialize database: {e}", exc_info=True)
            raise

    def execute_query(self, query: str, params: Optional[Tuple] = None) -> QueryResult:
        """Execute a raw SQL query with standardized result handling"""
        start_time = time.time()

        try:
            with self.pool.get_connection() as conn:
                cursor = conn.execute(query, params or ())
                columns = [desc[0] for desc in cursor.description] if cursor.description else []
                rows = cursor.fetchall()
                data = [dict(zip(columns, row)) for row in rows]
                conn.commit()

                return QueryResult(
                    success=True,
                    data=data,
                    row_count=len(data),
                    columns=columns,
                    execution_time_ms=(time.time() - start_time) * 1000
                )

        except Exception as e:
            error_msg = f"Query failed: {str(e)}"
            self.logger.error(error_msg)

            return QueryResult(
                success=False,
                error_message=error_msg,
                execution_time_ms=(time.time() - start_time) * 1000
            )

    def get_table_stats(self) -> Dict[str, Dict[str, Any]]:
        """Row counts per enforcement table"""
        stats = {}
        for table_name in get_table_names():
            result = self.execute_query(f"SELECT COUNT(*) AS count FROM {table_name}")
            stats[table_name] = {
                'exists': result.success,
                'row_count': result.data[0]['count'] if result.success and result.data else 0
            }
        return stats

    def close(self):
        """Close all database connections and cleanup resources"""
        try:
            self.pool.close_all()
            self.logger.info("Database manager closed - all connections released")
        except Exception as e:
            self.logger.error(f"Error closing database manager: {e}", exc_info=True)


_db_manager: Optional[DatabaseManager] = None
_db_manager_lock = threading.Lock()


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance, creating it on first use"""
    global _db_manager
    with _db_manager_lock:
        if _db_manager is None:
            _db_manager = DatabaseManager()
        return _db_manager
