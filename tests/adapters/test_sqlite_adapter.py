import logging

import pytest

from sqlquill.adapters import AdapterConnectionError, AdapterExecutionError, ConnectionConfig, SQLiteAdapter


def test_sqlite_adapter_executes_queries(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig.from_dsn(f"sqlite:///{tmp_path / 'test.db'}"))
    adapter.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT)")
    cursor = adapter.execute("INSERT INTO items (name) VALUES (?)", ("apple",))
    assert adapter.affected_rows(cursor) == 1
    assert adapter.last_insert_id(cursor) == 1

    row = adapter.execute("SELECT name FROM items").fetchone()
    assert row["name"] == "apple"
    adapter.close()


def test_literal_percent_without_params():
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig.from_dsn("sqlite:///:memory:"))
    assert adapter.execute("SELECT '100%'").fetchone()[0] == "100%"
    adapter.close()


def test_sqlite_transactions(tmp_path):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig.from_dsn(f"sqlite:///{tmp_path / 'tx.db'}"))
    adapter.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT)")
    adapter.begin()
    adapter.execute("INSERT INTO items (name) VALUES ('a')")
    adapter.rollback()
    assert adapter.execute("SELECT COUNT(*) FROM items").fetchone()[0] == 0

    adapter.begin()
    adapter.execute("INSERT INTO items (name) VALUES ('b')")
    adapter.commit()
    assert adapter.execute("SELECT COUNT(*) FROM items").fetchone()[0] == 1
    adapter.close()


def test_errors_and_state():
    adapter = SQLiteAdapter()
    with pytest.raises(AdapterConnectionError):
        adapter.execute("SELECT 1")
    adapter.connect(ConnectionConfig.from_dsn("sqlite://"))
    with pytest.raises(AdapterExecutionError):
        adapter.execute("SELECT * FROM nowhere")
    adapter.close()
    adapter.close()
    assert not adapter.is_connected


def test_slow_queries_log_warnings(caplog):
    adapter = SQLiteAdapter(slow_query_ms=0)
    adapter.connect(ConnectionConfig.from_dsn("sqlite:///:memory:"))
    caplog.set_level(logging.DEBUG, logger=adapter.logger.name)
    adapter.execute("SELECT 1")
    assert any(record.levelno == logging.WARNING and record.sql == "SELECT 1" for record in caplog.records)
    adapter.close()
