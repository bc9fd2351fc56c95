import sqlite3

import pytest

from adapters.sqlite import SQLiteAdapter, _split_declared_type
from agent.executor import execute_safe_query
from bootstrap.sample_data import seed_sample_data
from schema.formatter import format_schema
from schema.introspector.service import IntrospectionError, introspect_schema


def test_split_declared_type():
    assert _split_declared_type("VARCHAR(100)") == ("VARCHAR", 100)
    assert _split_declared_type("decimal(10,2)") == ("DECIMAL", 10)
    assert _split_declared_type("INTEGER") == ("INTEGER", 0)
    assert _split_declared_type("") == ("", 0)


def test_introspect_seeded_database(seeded_adapter):
    schema = introspect_schema(seeded_adapter)
    assert schema.table_names() == ["orders", "products", "users"]

    users = {col.name: col for col in schema.tables["users"].columns}
    assert users["id"].primary_key is True
    assert users["name"].type_name == "VARCHAR"
    assert users["name"].size == 100
    assert users["name"].nullable is False
    assert users["age"].nullable is True

    orders = {col.name: col for col in schema.tables["orders"].columns}
    assert orders["user_id"].foreign_key_targets == ["users.id"]
    assert orders["product_id"].foreign_key_targets == ["products.id"]
    assert orders["quantity"].foreign_key_targets == []


def test_introspect_excludes_views(seeded_adapter, sqlite_settings):
    conn = sqlite3.connect(sqlite_settings.sqlite_db_path)
    try:
        conn.execute("CREATE VIEW big_orders AS SELECT * FROM orders WHERE total_amount > 100")
        conn.commit()
    finally:
        conn.close()
    assert "big_orders" not in introspect_schema(seeded_adapter).table_names()


def test_introspect_formats_to_annotated_text(seeded_adapter):
    text = format_schema(introspect_schema(seeded_adapter))
    assert "orders (\n  id INTEGER [PK],\n  user_id INTEGER [FK->users.id]," in text


def test_introspect_wraps_catalog_failures(sqlite_adapter, monkeypatch):
    def broken(conn):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(sqlite_adapter, "list_tables", broken)
    with pytest.raises(IntrospectionError, match="database is locked"):
        introspect_schema(sqlite_adapter)


def test_introspect_skips_tables_without_columns(sqlite_adapter, monkeypatch):
    seed_sample_data(sqlite_adapter)
    original = sqlite_adapter.columns

    def columns(conn, table_name):
        return [] if table_name == "products" else original(conn, table_name)

    monkeypatch.setattr(sqlite_adapter, "columns", columns)
    assert introspect_schema(sqlite_adapter).table_names() == ["orders", "users"]


def test_seed_is_idempotent(sqlite_adapter):
    assert seed_sample_data(sqlite_adapter) is True
    assert seed_sample_data(sqlite_adapter) is False
    _columns, rows = sqlite_adapter.execute_query("SELECT COUNT(*) FROM orders", timeout_ms=1000)
    assert rows[0][0] == 6


def test_execute_join_on_sample_data(seeded_adapter):
    result = execute_safe_query(
        "SELECT u.name, o.total_amount FROM users u JOIN orders o ON o.user_id = u.id WHERE u.id = 1 ORDER BY o.id;",
        adapter=seeded_adapter,
        timeout_ms=1000,
    )
    assert result.success is True
    assert result.rows == [
        {"name": "John Doe", "total_amount": 999.99},
        {"name": "John Doe", "total_amount": 349.99},
    ]


def test_sqlite_adapter_reads_db_path_from_source_config(tmp_path, sqlite_settings):
    db_path = tmp_path / "other" / "alt.db"
    adapter = SQLiteAdapter(source_config={"db_path": str(db_path)}, settings=sqlite_settings)
    adapter.execute_script(["CREATE TABLE records (id INTEGER PRIMARY KEY, country TEXT)"])
    assert db_path.exists()
    assert introspect_schema(adapter).table_names() == ["records"]
