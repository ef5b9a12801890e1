"""Read-only guardrails applied when inspecting SQL."""

from __future__ import annotations

from sqlglot import exp


def _optional_exp(name: str) -> type[exp.Expression] | None:
    candidate = getattr(exp, name, None)
    if isinstance(candidate, type) and issubclass(candidate, exp.Expression):
        return candidate
    return None


_WRITE_NODE_NAMES = (
    "Insert",
    "Update",
    "Delete",
    "Merge",
    "Drop",
    "Alter",
    "Create",
    # Older sqlglot releases call this TruncateTable.
    "Truncate",
    "TruncateTable",
    "Grant",
    "Revoke",
    "Command",
)

WRITE_STATEMENT_TYPES: tuple[type[exp.Expression], ...] = tuple(
    node_type
    for node_type in (_optional_exp(name) for name in _WRITE_NODE_NAMES)
    if node_type is not None
)

READ_ROOT_TYPES: tuple[type[exp.Expression], ...] = (
    exp.Query,
    exp.Select,
    exp.Union,
    exp.Intersect,
    exp.Except,
)

# Generated table-info queries read these; they never appear in a harvest.
CATALOG_SCHEMAS = frozenset({"information_schema", "pg_catalog"})
