"""Command-line entrypoint for pg-nlquery."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import TYPE_CHECKING, Callable

from pg_nlquery import __version__

if TYPE_CHECKING:
    from pg_nlquery.config import Settings
    from pg_nlquery.engine.core import QueryEngine

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
EXIT_COMMANDS = frozenset({"exit", "quit", "\\q"})


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-nlquery",
        description=(
            "Turn natural-language questions into PostgreSQL queries using "
            "schema-aware pattern matching."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        help="Override LOG_LEVEL.",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser(
        "config-check",
        help="Validate environment configuration for pg-nlquery.",
    )
    subparsers.add_parser(
        "healthcheck",
        help="Check PostgreSQL connectivity with a read-only session.",
    )
    harvest_parser = subparsers.add_parser(
        "harvest-schema",
        help="Harvest PostgreSQL metadata into the local schema cache.",
    )
    harvest_parser.add_argument(
        "--schema",
        action="append",
        default=None,
        help="Schema(s) to harvest. Repeat the flag to include multiple schemas.",
    )
    subparsers.add_parser(
        "show-cache",
        help="Show metadata from the local schema cache file.",
    )
    subparsers.add_parser(
        "describe-schema",
        help="Print the cached schema as descriptive text.",
    )
    find_parser = subparsers.add_parser(
        "find-table",
        help="Resolve a table name (exact, partial or plural) in the cached schema.",
    )
    find_parser.add_argument("name", help="Table name to look up.")
    match_parser = subparsers.add_parser(
        "match-tables",
        help="Score keywords against table names, comments and columns.",
    )
    match_parser.add_argument("keywords", nargs="+", help="Keywords to match.")
    generate_parser = subparsers.add_parser(
        "generate-sql",
        help="Generate SQL for a natural-language question.",
    )
    generate_parser.add_argument("question", help="Natural language question.")
    generate_parser.add_argument(
        "--no-predictor",
        action="store_true",
        help="Skip the learned predictor and use pattern rules only.",
    )
    generate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as a JSON payload.",
    )
    generate_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print the generated SQL.",
    )
    validate_parser = subparsers.add_parser(
        "validate-sql",
        help="Check a SQL statement against read-only rules and the cached schema.",
    )
    validate_parser.add_argument("sql", help="SQL statement to validate.")
    repl_parser = subparsers.add_parser(
        "repl",
        help="Interactive question loop with conversation context.",
    )
    repl_parser.add_argument(
        "--execute",
        action="store_true",
        help="Run generated SQL against PostgreSQL and print the rows.",
    )
    repl_parser.add_argument(
        "--no-predictor",
        action="store_true",
        help="Skip the learned predictor and use pattern rules only.",
    )
    return parser


def _build_engine(settings: Settings, *, use_predictor: bool) -> QueryEngine:
    from pg_nlquery.engine.core import QueryEngine
    from pg_nlquery.predictor import create_predictor
    from pg_nlquery.schema.cache import load_schema_cache

    cached = load_schema_cache(settings.schema_cache_path)
    predictor = create_predictor(settings) if use_predictor else None
    return QueryEngine(
        cached.schema,
        predictor=predictor,
        predictor_enabled=use_predictor and settings.predictor_enabled,
        min_confidence=settings.predictor_min_confidence,
    )


def _print_cache_summary(cached, cache_path) -> None:
    schema = cached.schema
    print(f"- cache_path: {cache_path}")
    print(f"- cache_format_version: {cached.cache_format_version}")
    print(f"- generated_at: {cached.generated_at}")
    print(f"- service_name: {schema.service_name}")
    print(f"- server_version: {schema.version or '(unknown)'}")
    print(f"- postgis: {'yes' if schema.has_spatial_extension else 'no'}")
    print(f"- tables: {schema.table_count}")
    print(f"- views: {len(schema.views)}")
    print(f"- functions: {len(schema.functions)}")


def _config_check(args: argparse.Namespace, settings: Settings) -> int:
    redacted = "***" if settings.openai_api_key else "(not set)"
    print("Configuration loaded successfully:")
    print(f"- POSTGRES_DSN: {settings.postgres_dsn or '(not set)'}")
    print(f"- OPENAI_API_KEY: {redacted}")
    print(f"- OPENAI_MODEL: {settings.openai_model}")
    print(f"- SCHEMA_CACHE_PATH: {settings.schema_cache_path}")
    print(f"- DEFAULT_SCHEMA: {settings.default_schema}")
    print(f"- SERVICE_NAME: {settings.service_name}")
    print(f"- PREDICTOR_ENABLED: {settings.predictor_enabled}")
    print(f"- PREDICTOR_MIN_CONFIDENCE: {settings.predictor_min_confidence}")
    print(f"- DEFAULT_ROW_LIMIT: {settings.default_row_limit}")
    print(f"- LOG_LEVEL: {settings.log_level}")
    return 0


def _healthcheck(args: argparse.Namespace, settings: Settings) -> int:
    from pg_nlquery.db.connection import DatabaseConnectionError, check_postgres_health

    settings.validate_database_requirements()
    try:
        result = check_postgres_health(settings.postgres_dsn)
    except DatabaseConnectionError as exc:
        print(f"Healthcheck failed:\n{exc}", file=sys.stderr)
        return 1

    print("PostgreSQL healthcheck succeeded:")
    print(f"- database: {result.current_database}")
    print(f"- user: {result.current_user}")
    print(f"- server_version: {result.server_version}")
    print(f"- transaction_read_only: {result.transaction_read_only}")
    print(f"- postgis: {'yes' if result.has_postgis else 'no'}")
    return 0


def _harvest_schema(args: argparse.Namespace, settings: Settings) -> int:
    from pg_nlquery.schema.cache import CacheError, refresh_schema_cache

    settings.validate_database_requirements()
    try:
        cached = refresh_schema_cache(
            postgres_dsn=settings.postgres_dsn,
            cache_path=settings.schema_cache_path,
            service_name=settings.service_name,
            default_schema=settings.default_schema,
            include_schemas=args.schema,
        )
    except CacheError as exc:
        print(f"Schema harvest failed:\n{exc}", file=sys.stderr)
        return 1

    print("Schema harvest succeeded:")
    _print_cache_summary(cached, settings.schema_cache_path)
    return 0


def _show_cache(args: argparse.Namespace, settings: Settings) -> int:
    from pg_nlquery.schema.cache import load_schema_cache

    cached = load_schema_cache(settings.schema_cache_path)
    print("Schema cache loaded:")
    _print_cache_summary(cached, settings.schema_cache_path)
    return 0


def _describe_schema(args: argparse.Namespace, settings: Settings) -> int:
    engine = _build_engine(settings, use_predictor=False)
    print(engine.describe_schema(), end="")
    return 0


def _find_table(args: argparse.Namespace, settings: Settings) -> int:
    engine = _build_engine(settings, use_predictor=False)
    table = engine.find_table(args.name)
    if table is None:
        print(f"No table matches '{args.name}'.", file=sys.stderr)
        return 1

    print(table.fqn)
    for column in table.columns:
        print(f"- {column.name} ({column.data_type})")
    return 0


def _match_tables(args: argparse.Namespace, settings: Settings) -> int:
    engine = _build_engine(settings, use_predictor=False)
    matches = engine.find_matches(args.keywords)
    print("Matched tables:")
    if not matches:
        print("- (none)")
        return 0

    for match in matches:
        kind = match.match_kind.value if match.match_kind else "-"
        print(
            f"- {match.table.fqn} score={match.score:.3f} "
            f"kind={kind} on={match.entity_name}"
        )
    return 0


def _generate_sql(args: argparse.Namespace, settings: Settings) -> int:
    from pg_nlquery.sql.parser import format_sql

    engine = _build_engine(settings, use_predictor=not args.no_predictor)
    result = engine.generate(args.question)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
        return 0 if result.ok else 1
    if not result.ok:
        print(f"SQL generation failed:\n{result.error}", file=sys.stderr)
        return 1

    print(f"-- matcher: {result.matcher}")
    print(format_sql(result.sql) if args.pretty else result.sql)
    return 0


def _validate_sql(args: argparse.Namespace, settings: Settings) -> int:
    from pg_nlquery.schema.cache import load_schema_cache
    from pg_nlquery.sql.validator import validate_sql

    cached = load_schema_cache(settings.schema_cache_path)
    validation = validate_sql(
        args.sql,
        cached.schema,
        default_schema=settings.default_schema,
    )
    if not validation.is_valid:
        print("SQL validation failed:")
        for violation in validation.violations:
            print(f"- {violation}")
        return 1

    print("SQL validation succeeded:")
    print(
        "- tables_used: "
        f"{', '.join(validation.tables_used) if validation.tables_used else '(none)'}"
    )
    print("\nNormalized SQL:")
    print(validation.normalized_sql)
    return 0


def _print_rows(result) -> None:
    print(" | ".join(result.columns))
    for row in result.rows:
        print(" | ".join("NULL" if value is None else str(value) for value in row))
    suffix = " (truncated)" if result.truncated else ""
    print(f"({result.row_count} rows{suffix})")


def _repl(args: argparse.Namespace, settings: Settings) -> int:
    from pg_nlquery.db.execute import QueryExecutionError, run_readonly_query
    from pg_nlquery.engine.context import ConversationHistory, ConversationTurn

    if args.execute:
        settings.validate_database_requirements()
    engine = _build_engine(settings, use_predictor=not args.no_predictor)
    history = ConversationHistory()
    print(f"pg-nlquery {__version__} (predictor: {engine.predictor_status()})")
    print("Type a question, 'clear' to reset context, or 'exit' to quit.")

    while True:
        try:
            line = input("nlquery> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        if not line:
            continue
        if line.lower() in EXIT_COMMANDS:
            return 0
        if line.lower() == "clear":
            history.clear()
            print("Conversation context cleared.")
            continue

        result = engine.generate(line, context=history.render_context())
        if not result.ok:
            print(f"Error: {result.error}", file=sys.stderr)
            history.append(ConversationTurn(user_query=line))
            continue

        print(result.sql)
        row_count = None
        if args.execute:
            try:
                rows = run_readonly_query(
                    settings.postgres_dsn,
                    result.sql,
                    max_rows=settings.default_row_limit,
                )
            except QueryExecutionError as exc:
                print(f"Query failed:\n{exc}", file=sys.stderr)
            else:
                _print_rows(rows)
                row_count = rows.row_count
        history.append(
            ConversationTurn(user_query=line, generated_sql=result.sql, row_count=row_count)
        )


COMMANDS: dict[str, Callable[[argparse.Namespace, "Settings"], int]] = {
    "config-check": _config_check,
    "healthcheck": _healthcheck,
    "harvest-schema": _harvest_schema,
    "show-cache": _show_cache,
    "describe-schema": _describe_schema,
    "find-table": _find_table,
    "match-tables": _match_tables,
    "generate-sql": _generate_sql,
    "validate-sql": _validate_sql,
    "repl": _repl,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        from pg_nlquery.config import ConfigError, load_settings
        from pg_nlquery.schema.cache import CacheError
    except ModuleNotFoundError:
        print(
            "Runtime dependencies are missing. "
            "Install project dependencies first (pip install -e .).",
            file=sys.stderr,
        )
        return 2

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2
    configure_logging(args.log_level or settings.log_level)

    try:
        return COMMANDS[args.command](args, settings)
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2
    except CacheError as exc:
        print(f"Schema cache read failed:\n{exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
