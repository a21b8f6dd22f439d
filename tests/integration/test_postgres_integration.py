import os
import uuid

import pytest

from sqlquill import Connection


def _require_postgres_connection():
    try:
        import psycopg  # noqa: F401
    except ImportError:
        pytest.skip("psycopg driver not installed")
    dsn = os.getenv("SQLQUILL_POSTGRES_DSN")
    if not dsn:
        pytest.skip("SQLQUILL_POSTGRES_DSN not set; skipping Postgres integration test")
    try:
        return Connection(dsn)
    except Exception as exc:  # pragma: no cover - environment dependent
        pytest.skip(f"Cannot connect to Postgres for integration test: {exc}")


def test_postgres_roundtrip():
    connection = _require_postgres_connection()
    table = f"quill_pg_integration_{uuid.uuid4().hex[:8]}"
    tricky = "it's 100% \\ fine"
    try:
        connection.query("CREATE TABLE %n (id SERIAL PRIMARY KEY, name TEXT, active BOOLEAN)", table)
        connection.insert(table, {"name": tricky, "active": True}).execute()
        assert connection.insert_id() == 1

        with connection.transaction():
            connection.query("UPDATE %n SET %a WHERE id = %i", table, {"active": False}, 1)

        row = connection.select("name", "active").from_(table).where({"id": 1}).fetch()
        assert row[0] == tricky
        assert row[1] is False
    finally:
        try:
            connection.query("DROP TABLE IF EXISTS %n", table)
        except Exception:
            pass
        connection.disconnect()
