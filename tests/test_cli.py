import pytest

from pg_nlquery.cli import main
from pg_nlquery.schema.cache import save_schema_cache


@pytest.fixture
def cache_env(tmp_path, monkeypatch, shop_schema):
    path = tmp_path / "schema_cache.json"
    save_schema_cache(path, shop_schema)
    monkeypatch.setenv("SCHEMA_CACHE_PATH", str(path))
    monkeypatch.delenv("POSTGRES_DSN", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return path


def test_generate_sql_prints_statement(cache_env, capsys):
    """generate-sql prints the matcher and SQL"""
    exit_code = main(["generate-sql", "how many users"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "-- matcher: count" in out
    assert 'SELECT COUNT(*) AS count FROM "public"."users"' in out


def test_generate_sql_failure_exit_code(cache_env, capsys):
    """Unanswerable questions exit with 1 and explain on stderr"""
    exit_code = main(["generate-sql", "hi there"])

    assert exit_code == 1
    assert "Could not generate SQL for: hi there" in capsys.readouterr().err


def test_find_table_and_match_tables(cache_env, capsys):
    """Lookup commands resolve names against the cached schema"""
    assert main(["find-table", "user"]) == 0
    assert "public.users" in capsys.readouterr().out

    assert main(["find-table", "invoices"]) == 1

    assert main(["match-tables", "orders"]) == 0
    assert "- public.orders score=1.000 kind=exact on=orders" in capsys.readouterr().out

    assert main(["match-tables", "email"]) == 0
    assert "- public.users score=0.850 kind=exact on=email" in capsys.readouterr().out


def test_validate_sql_command(cache_env, capsys):
    """validate-sql reports violations with exit code 1"""
    assert main(["validate-sql", "SELECT * FROM users"]) == 0
    assert main(["validate-sql", "SELECT * FROM invoices"]) == 1
    assert "invoices" in capsys.readouterr().out


def test_missing_cache_is_a_runtime_error(tmp_path, monkeypatch, capsys):
    """Commands that need the cache fail with exit code 1 without it"""
    monkeypatch.setenv("SCHEMA_CACHE_PATH", str(tmp_path / "absent.json"))

    assert main(["describe-schema"]) == 1
    assert "Schema cache read failed" in capsys.readouterr().err


def test_database_commands_need_a_dsn(cache_env, capsys):
    """healthcheck without POSTGRES_DSN is a configuration error"""
    assert main(["healthcheck"]) == 2
    assert "POSTGRES_DSN" in capsys.readouterr().err


def test_invalid_configuration_exit_code(monkeypatch, capsys):
    """Bad environment values exit with 2"""
    monkeypatch.setenv("DEFAULT_ROW_LIMIT", "zero")

    assert main(["config-check"]) == 2
    assert "DEFAULT_ROW_LIMIT" in capsys.readouterr().err


def test_repl_keeps_context(cache_env, monkeypatch, capsys):
    """The repl answers each line and stops on exit"""
    lines = iter(["how many users", "show tables", "exit"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(lines))

    assert main(["repl", "--no-predictor"]) == 0

    out = capsys.readouterr().out
    assert 'SELECT COUNT(*) AS count FROM "public"."users"' in out
    assert "column_count" in out
