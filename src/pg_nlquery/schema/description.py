"""Plain-text schema description used as predictor context and in the CLI."""

from __future__ import annotations

from pg_nlquery.schema.model import ColumnInfo, SchemaModel


def _describe_column(column: ColumnInfo) -> str:
    line = f"    - {column.name} ({column.data_type})"
    if column.is_primary_key:
        line += " [PK]"
    if column.is_foreign_key:
        line += f" [FK -> {column.fk_table}.{column.fk_column}]"
    if column.is_geometry:
        geometry_type = column.geometry_type or "GEOMETRY"
        if column.srid:
            line += f" [GEOMETRY: {geometry_type}, SRID: {column.srid}]"
        else:
            line += f" [GEOMETRY: {geometry_type}]"
    if column.comment:
        line += f" - {column.comment}"
    return line


def describe_schema(schema: SchemaModel | None) -> str:
    """Render tables, columns and views as an indented text listing."""
    if schema is None:
        return ""

    lines = ["DATABASE SCHEMA:", "================", ""]
    if schema.has_spatial_extension:
        lines.extend(["PostGIS is installed - spatial queries are supported.", ""])

    lines.append("TABLES:")
    for table in schema.tables:
        header = f"- {table.fqn}"
        if table.comment:
            header += f" ({table.comment})"
        lines.append(header)
        lines.extend(_describe_column(column) for column in table.columns)
        lines.append("")

    if schema.views:
        lines.append("VIEWS:")
        for view in schema.views:
            header = f"- {view.fqn}"
            if view.comment:
                header += f" ({view.comment})"
            lines.append(header)
        lines.append("")

    return "\n".join(lines) + "\n"
