"""SQL queries used by PostgreSQL schema harvesting."""

POSTGIS_QUERY = """
SELECT EXISTS (
  SELECT 1 FROM pg_extension WHERE extname = 'postgis'
);
"""

VERSION_QUERY = "SELECT version();"

TABLES_QUERY = """
SELECT
  t.table_schema,
  t.table_name,
  COALESCE(
    obj_description(
      (quote_ident(t.table_schema) || '.' || quote_ident(t.table_name))::regclass
    ),
    ''
  ) AS table_comment
FROM information_schema.tables AS t
WHERE t.table_type = 'BASE TABLE'
  AND t.table_schema = ANY(%(schemas)s)
ORDER BY t.table_schema, t.table_name;
"""

COLUMNS_QUERY = """
SELECT
  c.table_schema,
  c.table_name,
  c.column_name,
  c.data_type,
  c.is_nullable = 'YES' AS is_nullable,
  COALESCE(tc.constraint_type = 'PRIMARY KEY', false) AS is_pk,
  COALESCE(tc.constraint_type = 'FOREIGN KEY', false) AS is_fk,
  COALESCE(ccu.table_name, '') AS fk_table,
  COALESCE(ccu.column_name, '') AS fk_column,
  COALESCE(
    col_description(
      (quote_ident(c.table_schema) || '.' || quote_ident(c.table_name))::regclass,
      c.ordinal_position
    ),
    ''
  ) AS column_comment
FROM information_schema.columns AS c
LEFT JOIN information_schema.key_column_usage AS kcu
  ON c.table_schema = kcu.table_schema
  AND c.table_name = kcu.table_name
  AND c.column_name = kcu.column_name
LEFT JOIN information_schema.table_constraints AS tc
  ON kcu.constraint_name = tc.constraint_name
  AND kcu.table_schema = tc.table_schema
LEFT JOIN information_schema.constraint_column_usage AS ccu
  ON tc.constraint_name = ccu.constraint_name
  AND tc.constraint_type = 'FOREIGN KEY'
WHERE c.table_schema = ANY(%(schemas)s)
ORDER BY c.table_schema, c.table_name, c.ordinal_position;
"""

GEOMETRY_COLUMNS_QUERY = """
SELECT
  f_table_schema,
  f_table_name,
  f_geometry_column,
  type,
  srid
FROM geometry_columns
WHERE f_table_schema = ANY(%(schemas)s);
"""

VIEWS_QUERY = """
SELECT
  v.table_schema,
  v.table_name,
  COALESCE(
    obj_description(
      (quote_ident(v.table_schema) || '.' || quote_ident(v.table_name))::regclass
    ),
    ''
  ) AS view_comment,
  COALESCE(v.view_definition, '') AS view_definition
FROM information_schema.views AS v
WHERE v.table_schema = ANY(%(schemas)s)
ORDER BY v.table_schema, v.table_name;
"""

FUNCTIONS_QUERY = """
SELECT
  n.nspname AS function_schema,
  p.proname AS function_name,
  pg_get_function_result(p.oid) AS return_type,
  pg_get_function_arguments(p.oid) AS arguments,
  COALESCE(obj_description(p.oid), '') AS function_comment
FROM pg_proc AS p
JOIN pg_namespace AS n
  ON p.pronamespace = n.oid
WHERE n.nspname = ANY(%(schemas)s)
  AND p.prokind = 'f'
ORDER BY n.nspname, p.proname
LIMIT 500;
"""
