import pytest

from pg_nlquery.schema.model import ColumnInfo, SchemaModel, TableInfo


def make_table(name, columns=(), *, schema="public", comment=""):
    return TableInfo(
        schema=schema,
        name=name,
        columns=tuple(
            column if isinstance(column, ColumnInfo) else ColumnInfo(name=column, data_type="text")
            for column in columns
        ),
        comment=comment,
    )


def geometry_column(name, geometry_type, srid=4326):
    return ColumnInfo(
        name=name,
        data_type="USER-DEFINED",
        is_geometry=True,
        geometry_type=geometry_type,
        srid=srid,
    )


# Users and orders: the basic relational schema used by most engine tests
@pytest.fixture
def shop_schema():
    return SchemaModel(
        service_name="shop",
        tables=(
            make_table("users", ("id", "name", "email")),
            make_table("orders", ("id", "user_id", "total")),
        ),
    )


@pytest.fixture
def customers_schema():
    return SchemaModel(
        service_name="crm",
        tables=(make_table("customers", ("id", "name")),),
    )


# PostGIS-enabled schema with one line table and one polygon table
@pytest.fixture
def spatial_schema():
    return SchemaModel(
        service_name="gis",
        has_spatial_extension=True,
        tables=(
            make_table("roads", ("id", "name", geometry_column("geom", "LINESTRING"))),
            make_table("parcels", ("id", geometry_column("boundary", "MULTIPOLYGON"))),
        ),
    )


@pytest.fixture
def transit_schema():
    return SchemaModel(
        service_name="transit",
        tables=(
            make_table("users", ("id", "name", "email")),
            make_table("bus_stops", ("id", "stop_name")),
            make_table("train_stops", ("id", "stop_name", "platform")),
        ),
    )
