"""Immutable schema model consumed by the query engine."""

from __future__ import annotations

from dataclasses import dataclass

POLYGON_TYPES = ("POLYGON", "MULTIPOLYGON")
LINE_TYPES = ("LINESTRING", "MULTILINESTRING")


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    is_foreign_key: bool = False
    fk_table: str = ""
    fk_column: str = ""
    comment: str = ""
    is_geometry: bool = False
    geometry_type: str = ""
    srid: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "data_type": self.data_type,
            "is_nullable": self.is_nullable,
            "is_primary_key": self.is_primary_key,
            "is_foreign_key": self.is_foreign_key,
            "fk_table": self.fk_table,
            "fk_column": self.fk_column,
            "comment": self.comment,
            "is_geometry": self.is_geometry,
            "geometry_type": self.geometry_type,
            "srid": self.srid,
        }


@dataclass(frozen=True)
class TableInfo:
    schema: str
    name: str
    columns: tuple[ColumnInfo, ...] = ()
    comment: str = ""

    @property
    def fqn(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def geometry_columns(self) -> tuple[ColumnInfo, ...]:
        return tuple(column for column in self.columns if column.is_geometry)

    def to_dict(self) -> dict[str, object]:
        return {
            "schema": self.schema,
            "name": self.name,
            "comment": self.comment,
            "columns": [column.to_dict() for column in self.columns],
        }


@dataclass(frozen=True)
class ViewInfo:
    schema: str
    name: str
    columns: tuple[ColumnInfo, ...] = ()
    comment: str = ""
    definition: str = ""

    @property
    def fqn(self) -> str:
        return f"{self.schema}.{self.name}"

    def to_dict(self) -> dict[str, object]:
        return {
            "schema": self.schema,
            "name": self.name,
            "comment": self.comment,
            "definition": self.definition,
            "columns": [column.to_dict() for column in self.columns],
        }


@dataclass(frozen=True)
class FunctionInfo:
    schema: str
    name: str
    return_type: str
    arguments: str
    comment: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "schema": self.schema,
            "name": self.name,
            "return_type": self.return_type,
            "arguments": self.arguments,
            "comment": self.comment,
        }


@dataclass(frozen=True)
class SchemaModel:
    """Harvested description of one database service.

    Instances are never mutated; a re-harvest produces a new model which the
    engine swaps in as a whole.
    """

    service_name: str
    tables: tuple[TableInfo, ...] = ()
    views: tuple[ViewInfo, ...] = ()
    functions: tuple[FunctionInfo, ...] = ()
    has_spatial_extension: bool = False
    version: str = ""
    cached_at: str = ""

    @property
    def table_count(self) -> int:
        return len(self.tables)

    @property
    def geometry_tables(self) -> tuple[TableInfo, ...]:
        return tuple(table for table in self.tables if table.geometry_columns)

    def get_table(self, schema: str, name: str) -> TableInfo | None:
        for table in self.tables:
            if table.schema == schema and table.name == name:
                return table
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "service_name": self.service_name,
            "has_spatial_extension": self.has_spatial_extension,
            "version": self.version,
            "cached_at": self.cached_at,
            "tables": [table.to_dict() for table in self.tables],
            "views": [view.to_dict() for view in self.views],
            "functions": [function.to_dict() for function in self.functions],
        }
