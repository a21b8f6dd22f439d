import pytest

from sqlquill import Connection
from sqlquill.hooks import HookDispatcher
from sqlquill.transaction import TransactionError


@pytest.fixture
def conn(tmp_path):
    connection = Connection(f"sqlite:///{tmp_path / 'tx.db'}", hooks=HookDispatcher())
    connection.native_query("CREATE TABLE items (name TEXT)")
    yield connection
    connection.disconnect()


def names(connection):
    return [row["name"] for row in connection.fetch_all("SELECT name FROM items ORDER BY name")]


def test_rollback_discards_changes(conn):
    conn.begin()
    conn.query("INSERT INTO items VALUES (%s)", "a")
    conn.rollback()
    assert names(conn) == []


def test_commit_persists_changes(conn):
    conn.begin()
    conn.query("INSERT INTO items VALUES (%s)", "a")
    conn.commit()
    assert names(conn) == ["a"]


def test_nested_begin_uses_savepoints(conn):
    conn.begin()
    conn.query("INSERT INTO items VALUES (%s)", "a")
    conn.begin()
    conn.query("INSERT INTO items VALUES (%s)", "b")
    conn.rollback()
    conn.commit()
    assert names(conn) == ["a"]


def test_named_savepoints(conn):
    conn.begin()
    conn.begin("before_b")
    conn.query("INSERT INTO items VALUES (%s)", "b")
    conn.begin()
    conn.query("INSERT INTO items VALUES (%s)", "c")
    conn.rollback("before_b")
    conn.query("INSERT INTO items VALUES (%s)", "d")
    conn.commit()
    assert names(conn) == ["d"]


def test_savepoint_requires_transaction(conn):
    with pytest.raises(TransactionError):
        conn.begin("orphan")
    with pytest.raises(TransactionError):
        conn.commit()
    conn.begin()
    with pytest.raises(TransactionError):
        conn.rollback("unknown")
    conn.rollback()


def test_transaction_context_manager(conn):
    with pytest.raises(RuntimeError):
        with conn.transaction():
            conn.query("INSERT INTO items VALUES (%s)", "lost")
            raise RuntimeError("boom")
    assert names(conn) == []

    with conn.transaction():
        conn.query("INSERT INTO items VALUES (%s)", "kept")
        with pytest.raises(ValueError):
            with conn.transaction():
                conn.query("INSERT INTO items VALUES (%s)", "inner")
                raise ValueError("inner failure")
    assert names(conn) == ["kept"]
