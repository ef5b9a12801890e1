"""SQL assembly, parsing and validation utilities."""

from pg_nlquery.sql.builder import (
    SQLBuildError,
    distance_in_meters,
    qualified_name,
    quote_ident,
    quote_literal,
    validate_number,
)
from pg_nlquery.sql.parser import SQLParseError, format_sql, parse_postgres_sql
from pg_nlquery.sql.validator import (
    SQLValidationError,
    SQLValidationResult,
    ensure_valid_sql,
    validate_sql,
)

__all__ = [
    "SQLBuildError",
    "distance_in_meters",
    "qualified_name",
    "quote_ident",
    "quote_literal",
    "validate_number",
    "SQLParseError",
    "format_sql",
    "parse_postgres_sql",
    "SQLValidationError",
    "SQLValidationResult",
    "validate_sql",
    "ensure_valid_sql",
]
