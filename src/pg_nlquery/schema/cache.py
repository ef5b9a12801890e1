"""Schema cache persistence and refresh routines."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pg_nlquery.db.introspect import IntrospectionError, harvest_schema
from pg_nlquery.schema.model import (
    ColumnInfo,
    FunctionInfo,
    SchemaModel,
    TableInfo,
    ViewInfo,
)

CACHE_FORMAT_VERSION = "2.0"

logger = logging.getLogger(__name__)


class CacheError(RuntimeError):
    """Raised when schema cache operations fail."""


@dataclass(frozen=True)
class CachedSchema:
    """Versioned schema cache representation."""

    cache_format_version: str
    generated_at: str
    schema: SchemaModel

    def to_dict(self) -> dict[str, object]:
        return {
            "cache_format_version": self.cache_format_version,
            "generated_at": self.generated_at,
            **self.schema.to_dict(),
        }


def _now_iso() -> str:
    return datetime.now(tz=UTC).replace(microsecond=0).isoformat()


def _string(payload: dict[str, Any], key: str, where: str, *, required: bool = False) -> str:
    value = payload.get(key, None if required else "")
    if value is None and not required:
        return ""
    if not isinstance(value, str) or (required and not value.strip()):
        raise CacheError(f"{where} has invalid '{key}'.")
    return value


def _flag(payload: dict[str, Any], key: str, where: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise CacheError(f"{where} has invalid '{key}'.")
    return value


def _parse_columns(payload: Any, where: str) -> tuple[ColumnInfo, ...]:
    if payload is None:
        return ()
    if not isinstance(payload, list):
        raise CacheError(f"{where} has invalid 'columns'.")

    columns: list[ColumnInfo] = []
    for item in payload:
        if not isinstance(item, dict):
            raise CacheError(f"{where} has an invalid column entry.")
        name = _string(item, "name", where, required=True)
        column_where = f"Column '{where}.{name}'"
        srid = item.get("srid", 0)
        if not isinstance(srid, int) or isinstance(srid, bool):
            raise CacheError(f"{column_where} has invalid 'srid'.")
        columns.append(
            ColumnInfo(
                name=name,
                data_type=_string(item, "data_type", column_where, required=True),
                is_nullable=_flag(item, "is_nullable", column_where, True),
                is_primary_key=_flag(item, "is_primary_key", column_where, False),
                is_foreign_key=_flag(item, "is_foreign_key", column_where, False),
                fk_table=_string(item, "fk_table", column_where),
                fk_column=_string(item, "fk_column", column_where),
                comment=_string(item, "comment", column_where),
                is_geometry=_flag(item, "is_geometry", column_where, False),
                geometry_type=_string(item, "geometry_type", column_where),
                srid=srid,
            )
        )
    return tuple(columns)


def _parse_relations(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = payload.get(key, [])
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise CacheError(f"Cached schema has invalid '{key}' structure.")
    return items


def _parse_schema(payload: dict[str, Any]) -> SchemaModel:
    service_name = payload.get("service_name")
    if not isinstance(service_name, str) or not service_name.strip():
        raise CacheError("Cached schema is missing a valid 'service_name' field.")

    tables: list[TableInfo] = []
    for item in _parse_relations(payload, "tables"):
        schema_name = _string(item, "schema", "Table entry", required=True)
        name = _string(item, "name", f"Table in '{schema_name}'", required=True)
        where = f"Table '{schema_name}.{name}'"
        tables.append(
            TableInfo(
                schema=schema_name,
                name=name,
                columns=_parse_columns(item.get("columns"), f"{schema_name}.{name}"),
                comment=_string(item, "comment", where),
            )
        )

    views: list[ViewInfo] = []
    for item in _parse_relations(payload, "views"):
        schema_name = _string(item, "schema", "View entry", required=True)
        name = _string(item, "name", f"View in '{schema_name}'", required=True)
        where = f"View '{schema_name}.{name}'"
        views.append(
            ViewInfo(
                schema=schema_name,
                name=name,
                columns=_parse_columns(item.get("columns"), f"{schema_name}.{name}"),
                comment=_string(item, "comment", where),
                definition=_string(item, "definition", where),
            )
        )

    functions: list[FunctionInfo] = []
    for item in _parse_relations(payload, "functions"):
        schema_name = _string(item, "schema", "Function entry", required=True)
        name = _string(item, "name", f"Function in '{schema_name}'", required=True)
        where = f"Function '{schema_name}.{name}'"
        functions.append(
            FunctionInfo(
                schema=schema_name,
                name=name,
                return_type=_string(item, "return_type", where),
                arguments=_string(item, "arguments", where),
                comment=_string(item, "comment", where),
            )
        )

    has_spatial = payload.get("has_spatial_extension", False)
    if not isinstance(has_spatial, bool):
        raise CacheError("Cached schema has invalid 'has_spatial_extension'.")

    return SchemaModel(
        service_name=service_name,
        tables=tuple(tables),
        views=tuple(views),
        functions=tuple(functions),
        has_spatial_extension=has_spatial,
        version=_string(payload, "version", "Cached schema"),
        cached_at=_string(payload, "cached_at", "Cached schema"),
    )


def save_schema_cache(cache_path: Path, schema: SchemaModel) -> CachedSchema:
    """Persist a schema model to cache JSON with format metadata."""
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CacheError(f"Failed to create cache directory: {exc}") from exc

    generated_at = _now_iso()
    if not schema.cached_at:
        schema = replace(schema, cached_at=generated_at)
    cached = CachedSchema(
        cache_format_version=CACHE_FORMAT_VERSION,
        generated_at=generated_at,
        schema=schema,
    )
    try:
        cache_path.write_text(
            json.dumps(cached.to_dict(), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise CacheError(f"Failed to write schema cache file: {exc}") from exc
    logger.info("Saved schema cache for %s to %s", schema.service_name, cache_path)
    return cached


def load_schema_cache(cache_path: Path) -> CachedSchema:
    """Load and validate cached schema JSON."""
    if not cache_path.exists():
        raise CacheError(f"Schema cache file does not exist: {cache_path}")

    try:
        payload = json.loads(cache_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CacheError(f"Schema cache file is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise CacheError(f"Failed to read schema cache file: {exc}") from exc

    if not isinstance(payload, dict):
        raise CacheError("Schema cache payload root must be a JSON object.")

    cache_format_version = payload.get("cache_format_version")
    if cache_format_version != CACHE_FORMAT_VERSION:
        raise CacheError(
            "Unsupported schema cache format version: "
            f"{cache_format_version!r}. Expected {CACHE_FORMAT_VERSION!r}."
        )

    generated_at = payload.get("generated_at")
    if not isinstance(generated_at, str) or not generated_at.strip():
        raise CacheError("Schema cache is missing a valid 'generated_at' value.")

    return CachedSchema(
        cache_format_version=cache_format_version,
        generated_at=generated_at,
        schema=_parse_schema(payload),
    )


def refresh_schema_cache(
    postgres_dsn: str,
    cache_path: Path,
    service_name: str,
    default_schema: str = "public",
    include_schemas: list[str] | None = None,
) -> CachedSchema:
    """Harvest the PostgreSQL schema and persist the local cache."""
    try:
        schema = harvest_schema(
            postgres_dsn=postgres_dsn,
            service_name=service_name,
            default_schema=default_schema,
            include_schemas=include_schemas,
        )
    except IntrospectionError as exc:
        raise CacheError(str(exc)) from exc

    return save_schema_cache(cache_path=cache_path, schema=schema)
