"""PostgreSQL read-only connections and health checks."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import psycopg

APPLICATION_NAME = "pg-nlquery"

logger = logging.getLogger(__name__)


class DatabaseConnectionError(RuntimeError):
    """Raised when a PostgreSQL connection or health check fails."""


@dataclass(frozen=True)
class HealthcheckResult:
    """Information returned by a successful PostgreSQL health check."""

    current_database: str
    current_user: str
    server_version: str
    transaction_read_only: bool
    has_postgis: bool


@contextmanager
def connect_readonly(
    postgres_dsn: str,
    *,
    statement_timeout_ms: int = 30_000,
) -> Iterator[psycopg.Connection]:
    """Open a PostgreSQL session that defaults to read-only transactions."""
    options = (
        "-c default_transaction_read_only=on "
        f"-c statement_timeout={int(statement_timeout_ms)}"
    )
    try:
        with psycopg.connect(
            postgres_dsn,
            connect_timeout=5,
            application_name=APPLICATION_NAME,
            options=options,
        ) as conn:
            yield conn
    except psycopg.OperationalError as exc:
        raise DatabaseConnectionError(
            f"Could not connect to PostgreSQL with provided DSN: {exc}"
        ) from exc


def check_postgres_health(postgres_dsn: str) -> HealthcheckResult:
    """Verify connectivity, read-only mode and PostGIS availability."""
    try:
        with connect_readonly(postgres_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT
                      current_database(),
                      current_user,
                      current_setting('server_version'),
                      current_setting('transaction_read_only'),
                      EXISTS (SELECT 1 FROM pg_extension WHERE extname = 'postgis')
                    """
                )
                row = cur.fetchone()
    except DatabaseConnectionError:
        raise
    except psycopg.Error as exc:
        raise DatabaseConnectionError(f"PostgreSQL health check failed: {exc}") from exc

    if row is None:
        raise DatabaseConnectionError("PostgreSQL health check returned no data.")

    current_database, current_user, server_version, read_only, has_postgis = row
    transaction_read_only = read_only == "on"
    if not transaction_read_only:
        raise DatabaseConnectionError(
            "Connected successfully but session is not read-only."
        )

    logger.debug("Healthcheck ok for database %s", current_database)
    return HealthcheckResult(
        current_database=current_database,
        current_user=current_user,
        server_version=server_version,
        transaction_read_only=transaction_read_only,
        has_postgis=bool(has_postgis),
    )
