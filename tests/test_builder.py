import pytest

from conftest import make_table
from pg_nlquery.sql import builder
from pg_nlquery.sql.builder import SQLBuildError


def test_identifiers_are_quoted_and_schema_qualified():
    """Table references are always "schema"."table" with quotes doubled"""
    table = make_table('odd"name', schema="sales")

    assert builder.qualified_name(table) == '"sales"."odd""name"'
    assert builder.quote_literal("o'brien") == "'o''brien'"


def test_select_all_uses_default_limit():
    """Plain selects are capped at 50 rows"""
    table = make_table("users")

    assert builder.select_all(table) == 'SELECT * FROM "public"."users" LIMIT 50'
    assert builder.select_all(table, "7").endswith("LIMIT 7")


@pytest.mark.parametrize("value", ["10; DROP TABLE users", "-1", "1e3", "", "５", "٥٠"])
def test_non_numeric_limits_are_rejected(value):
    """Only digit strings can become a LIMIT"""
    with pytest.raises(SQLBuildError):
        builder.select_all(make_table("users"), value)


def test_distance_conversion():
    """km and miles become multiplication expressions, metres pass through"""
    assert builder.distance_in_meters("1", "km") == "1 * 1000"
    assert builder.distance_in_meters("2.5", "mi") == "2.5 * 1609.34"
    assert builder.distance_in_meters("300", "m") == "300"

    with pytest.raises(SQLBuildError):
        builder.distance_in_meters("3", "ft")


def test_row_counts_per_table():
    """Every table contributes one UNION ALL branch, biggest first"""
    tables = [make_table("users"), make_table("orders")]

    sql = builder.row_counts_per_table(tables, limit=10)

    assert sql == (
        "SELECT 'public.users' AS table_name, COUNT(*) AS row_count "
        'FROM "public"."users" UNION ALL '
        "SELECT 'public.orders' AS table_name, COUNT(*) AS row_count "
        'FROM "public"."orders" ORDER BY row_count DESC LIMIT 10'
    )
    assert builder.row_counts_per_table([]) is None


def test_union_sampled_rows_splits_the_row_cap():
    """Each branch gets a share of 100 rows but never fewer than 10"""
    two = builder.union_sampled_rows([make_table("a"), make_table("b")])
    many = builder.union_sampled_rows([make_table(f"t{index}") for index in range(20)])

    assert two.count("LIMIT 50)") == 2
    assert many.count("LIMIT 10)") == 20


def test_match_summary_formats_percentages():
    """Scores are rendered as whole percentages next to the match source"""
    sql = builder.match_summary([(make_table("users"), 0.55, "users")])

    assert "'55%' AS match_score" in sql
    assert "'users' AS matched_on" in sql
    assert builder.match_summary([]) is None
