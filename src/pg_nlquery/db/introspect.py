"""PostgreSQL schema harvesting into the engine's schema model."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import psycopg

from pg_nlquery.db.connection import DatabaseConnectionError, connect_readonly
from pg_nlquery.db.queries import (
    COLUMNS_QUERY,
    FUNCTIONS_QUERY,
    GEOMETRY_COLUMNS_QUERY,
    POSTGIS_QUERY,
    TABLES_QUERY,
    VERSION_QUERY,
    VIEWS_QUERY,
)
from pg_nlquery.schema.model import (
    ColumnInfo,
    FunctionInfo,
    SchemaModel,
    TableInfo,
    ViewInfo,
)

GEOMETRY_DATA_TYPES = ("USER-DEFINED", "geometry", "geography")

logger = logging.getLogger(__name__)


class IntrospectionError(RuntimeError):
    """Raised when schema harvesting fails."""


@dataclass
class _RelationColumns:
    columns: list[ColumnInfo] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)


def _default_target_schemas(default_schema: str) -> list[str]:
    system = {"pg_catalog", "information_schema"}
    targets = {default_schema.strip() or "public"}
    return sorted(targets - system)


def _collect_columns(
    rows: list[tuple],
    geometry_info: dict[tuple[str, str, str], tuple[str, int]],
) -> dict[tuple[str, str], list[ColumnInfo]]:
    relations: dict[tuple[str, str], _RelationColumns] = {}
    for (
        schema_name,
        table_name,
        column_name,
        data_type,
        is_nullable,
        is_pk,
        is_fk,
        fk_table,
        fk_column,
        comment,
    ) in rows:
        entry = relations.setdefault((schema_name, table_name), _RelationColumns())
        # Constraint joins repeat a column once per constraint it belongs to.
        if column_name in entry.seen:
            continue
        entry.seen.add(column_name)

        is_geometry = data_type in GEOMETRY_DATA_TYPES
        geometry_type, srid = "", 0
        if is_geometry:
            geometry_type, srid = geometry_info.get(
                (schema_name, table_name, column_name), ("", 0)
            )
        entry.columns.append(
            ColumnInfo(
                name=column_name,
                data_type=data_type,
                is_nullable=bool(is_nullable),
                is_primary_key=bool(is_pk),
                is_foreign_key=bool(is_fk),
                fk_table=fk_table or "",
                fk_column=fk_column or "",
                comment=comment or "",
                is_geometry=is_geometry,
                geometry_type=(geometry_type or "").upper(),
                srid=int(srid or 0),
            )
        )
    return {key: value.columns for key, value in relations.items()}


def harvest_schema(
    postgres_dsn: str,
    service_name: str,
    default_schema: str = "public",
    include_schemas: list[str] | None = None,
) -> SchemaModel:
    """Harvest tables, views, functions and geometry metadata from PostgreSQL."""
    target_schemas = (
        sorted({schema.strip() for schema in include_schemas if schema.strip()})
        if include_schemas
        else _default_target_schemas(default_schema)
    )
    if not target_schemas:
        raise IntrospectionError("No target schemas selected for harvesting.")

    params = {"schemas": target_schemas}
    try:
        with connect_readonly(postgres_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(POSTGIS_QUERY)
                row = cur.fetchone()
                has_postgis = bool(row and row[0])

                cur.execute(VERSION_QUERY)
                row = cur.fetchone()
                version = str(row[0]) if row else ""

                cur.execute(TABLES_QUERY, params)
                table_rows = cur.fetchall()

                geometry_info: dict[tuple[str, str, str], tuple[str, int]] = {}
                if has_postgis:
                    cur.execute(GEOMETRY_COLUMNS_QUERY, params)
                    for schema_name, table_name, column_name, geom_type, srid in cur.fetchall():
                        geometry_info[(schema_name, table_name, column_name)] = (
                            geom_type,
                            srid,
                        )

                cur.execute(COLUMNS_QUERY, params)
                columns = _collect_columns(cur.fetchall(), geometry_info)

                cur.execute(VIEWS_QUERY, params)
                view_rows = cur.fetchall()

                cur.execute(FUNCTIONS_QUERY, params)
                function_rows = cur.fetchall()
    except DatabaseConnectionError as exc:
        raise IntrospectionError(str(exc)) from exc
    except psycopg.Error as exc:
        raise IntrospectionError(f"Schema harvesting query failed: {exc}") from exc

    tables = tuple(
        TableInfo(
            schema=schema_name,
            name=table_name,
            columns=tuple(columns.get((schema_name, table_name), [])),
            comment=comment or "",
        )
        for schema_name, table_name, comment in table_rows
    )
    views = tuple(
        ViewInfo(
            schema=schema_name,
            name=view_name,
            columns=tuple(columns.get((schema_name, view_name), [])),
            comment=comment or "",
            definition=definition or "",
        )
        for schema_name, view_name, comment, definition in view_rows
    )
    functions = tuple(
        FunctionInfo(
            schema=schema_name,
            name=function_name,
            return_type=return_type or "",
            arguments=arguments or "",
            comment=comment or "",
        )
        for schema_name, function_name, return_type, arguments, comment in function_rows
    )

    logger.info(
        "Harvested %d tables, %d views, %d functions from %s",
        len(tables),
        len(views),
        len(functions),
        ", ".join(target_schemas),
    )
    return SchemaModel(
        service_name=service_name,
        tables=tables,
        views=views,
        functions=functions,
        has_spatial_extension=has_postgis,
        version=version,
    )
