import json

import pytest

from pg_nlquery.schema import cache as cache_module
from pg_nlquery.schema.cache import (
    CACHE_FORMAT_VERSION,
    CacheError,
    load_schema_cache,
    refresh_schema_cache,
    save_schema_cache,
)
from pg_nlquery.db.introspect import IntrospectionError
from pg_nlquery.schema.model import FunctionInfo, ViewInfo


def test_save_then_load_preserves_the_schema(tmp_path, spatial_schema):
    """A saved cache loads back into an identical schema model"""
    schema = spatial_schema.__class__(
        service_name=spatial_schema.service_name,
        tables=spatial_schema.tables,
        views=(ViewInfo(schema="public", name="main_roads", comment="Primary roads"),),
        functions=(FunctionInfo("public", "road_len", "double precision", "integer"),),
        has_spatial_extension=True,
        version="PostgreSQL 16.2",
    )
    path = tmp_path / "nested" / "cache.json"

    saved = save_schema_cache(path, schema)
    loaded = load_schema_cache(path)

    assert saved.schema.cached_at
    assert loaded.cache_format_version == CACHE_FORMAT_VERSION
    assert loaded.schema == saved.schema
    assert loaded.schema.tables[0].geometry_columns[0].geometry_type == "LINESTRING"


def test_missing_cache_file(tmp_path):
    """Loading a cache that was never written is a CacheError"""
    with pytest.raises(CacheError, match="does not exist"):
        load_schema_cache(tmp_path / "missing.json")


def test_invalid_json(tmp_path):
    """Corrupt files are reported, not parsed"""
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CacheError, match="not valid JSON"):
        load_schema_cache(path)


def test_unsupported_version(tmp_path, shop_schema):
    """Caches from another format version are rejected"""
    path = tmp_path / "cache.json"
    save_schema_cache(path, shop_schema)
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["cache_format_version"] = "1.0"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(CacheError, match="Unsupported schema cache format version"):
        load_schema_cache(path)


def test_malformed_column_entry(tmp_path, shop_schema):
    """Structural problems inside tables are caught"""
    path = tmp_path / "cache.json"
    save_schema_cache(path, shop_schema)
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["tables"][0]["columns"][0]["is_nullable"] = "yes"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(CacheError, match="is_nullable"):
        load_schema_cache(path)


def test_refresh_wraps_harvest_errors(tmp_path, monkeypatch):
    """Harvest failures surface as CacheError"""

    def failing_harvest(**kwargs):
        raise IntrospectionError("connection refused")

    monkeypatch.setattr(cache_module, "harvest_schema", failing_harvest)

    with pytest.raises(CacheError, match="connection refused"):
        refresh_schema_cache("postgresql://x", tmp_path / "cache.json", "svc")


def test_refresh_writes_harvested_schema(tmp_path, monkeypatch, shop_schema):
    """A successful harvest is written to the cache path"""
    calls = []

    def fake_harvest(**kwargs):
        calls.append(kwargs)
        return shop_schema

    monkeypatch.setattr(cache_module, "harvest_schema", fake_harvest)
    path = tmp_path / "cache.json"

    cached = refresh_schema_cache("postgresql://x", path, "shop", include_schemas=["sales"])

    assert path.exists()
    assert cached.schema.tables == shop_schema.tables
    assert calls[0]["include_schemas"] == ["sales"]
    assert calls[0]["service_name"] == "shop"
