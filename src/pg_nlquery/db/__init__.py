"""Database helpers for pg-nlquery."""

from pg_nlquery.db.connection import (
    DatabaseConnectionError,
    HealthcheckResult,
    check_postgres_health,
    connect_readonly,
)
from pg_nlquery.db.execute import QueryExecutionError, QueryResult, run_readonly_query
from pg_nlquery.db.introspect import IntrospectionError, harvest_schema

__all__ = [
    "DatabaseConnectionError",
    "HealthcheckResult",
    "IntrospectionError",
    "QueryExecutionError",
    "QueryResult",
    "check_postgres_health",
    "connect_readonly",
    "harvest_schema",
    "run_readonly_query",
]
