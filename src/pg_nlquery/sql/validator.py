"""Inspect generated SQL against read-only rules and a schema model."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlglot import exp

from pg_nlquery.schema.model import SchemaModel
from pg_nlquery.sql.parser import SQLParseError, parse_postgres_sql
from pg_nlquery.sql.rules import CATALOG_SCHEMAS, READ_ROOT_TYPES, WRITE_STATEMENT_TYPES


class SQLValidationError(RuntimeError):
    """Raised when SQL fails validation guardrails."""


@dataclass(frozen=True)
class SQLValidationResult:
    """Structured SQL validation result."""

    is_valid: bool
    sql: str
    normalized_sql: str
    tables_used: list[str] = field(default_factory=list)
    violations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "sql": self.sql,
            "normalized_sql": self.normalized_sql,
            "tables_used": list(self.tables_used),
            "violations": list(self.violations),
        }


def _relation_index(schema: SchemaModel) -> dict[str, set[str]]:
    """Map lower-cased relation name to the lower-cased schemas holding it."""
    index: dict[str, set[str]] = {}
    for relation in (*schema.tables, *schema.views):
        index.setdefault(relation.name.lower(), set()).add(relation.schema.lower())
    return index


def _cte_names(expression: exp.Expression) -> set[str]:
    return {
        cte.alias_or_name.lower()
        for cte in expression.find_all(exp.CTE)
        if cte.alias_or_name
    }


def _resolve_relation(
    table: exp.Table,
    index: dict[str, set[str]],
    *,
    default_schema: str,
) -> tuple[str | None, str | None]:
    table_name = table.name.lower()
    schema_name = table.db.lower()

    if not table_name:
        return None, "Encountered table reference with empty name."
    if schema_name in CATALOG_SCHEMAS:
        return f"{schema_name}.{table_name}", None

    holders = index.get(table_name, set())
    if schema_name:
        if schema_name in holders:
            return f"{schema_name}.{table_name}", None
        return None, f"Table '{schema_name}.{table_name}' is not present in the schema."

    if not holders:
        return None, f"Table '{table_name}' is not present in the schema."
    if len(holders) == 1:
        return f"{next(iter(holders))}.{table_name}", None
    if default_schema.lower() in holders:
        return f"{default_schema.lower()}.{table_name}", None
    return (
        None,
        "Unqualified table reference is ambiguous for "
        f"'{table_name}' across schemas {', '.join(sorted(holders))}.",
    )


def validate_sql(
    sql: str,
    schema: SchemaModel,
    *,
    default_schema: str = "public",
) -> SQLValidationResult:
    """Check that ``sql`` is a single read-only query over known relations."""
    try:
        expression = parse_postgres_sql(sql)
    except SQLParseError as exc:
        return SQLValidationResult(
            is_valid=False,
            sql=sql,
            normalized_sql=sql,
            violations=[str(exc)],
        )

    violations: list[str] = []
    if not isinstance(expression, READ_ROOT_TYPES):
        violations.append("Only SELECT query forms are allowed.")

    write_nodes = {
        node.key.upper()
        for node_type in WRITE_STATEMENT_TYPES
        for node in expression.find_all(node_type)
    }
    if write_nodes:
        violations.append(
            "Forbidden SQL statement(s) detected: " + ", ".join(sorted(write_nodes))
        )

    index = _relation_index(schema)
    cte_names = _cte_names(expression)
    tables_used: list[str] = []
    for table in expression.find_all(exp.Table):
        if not table.db and table.name.lower() in cte_names:
            continue
        fqn, error = _resolve_relation(table, index, default_schema=default_schema)
        if error:
            violations.append(error)
        elif fqn not in tables_used:
            tables_used.append(fqn)

    return SQLValidationResult(
        is_valid=not violations,
        sql=sql,
        normalized_sql=expression.sql(dialect="postgres", pretty=True),
        tables_used=sorted(tables_used),
        violations=violations,
    )


def ensure_valid_sql(
    sql: str,
    schema: SchemaModel,
    *,
    default_schema: str = "public",
) -> SQLValidationResult:
    """Validate SQL and raise when violations are present."""
    result = validate_sql(sql, schema, default_schema=default_schema)
    if not result.is_valid:
        raise SQLValidationError("\n".join(f"- {item}" for item in result.violations))
    return result
