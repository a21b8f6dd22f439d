import pytest

from sqlquill.dialects import PostgresDialect


def test_postgres_literals():
    dialect = PostgresDialect()
    assert dialect.escape_bool(True) == "TRUE"
    assert dialect.escape_bool(False) == "FALSE"
    assert dialect.escape_binary(b"\x00\x10") == "'\\x0010'::bytea"
    assert dialect.escape_text("it's") == "'it''s'"
    assert dialect.escape_text("a\\b") == "'a\\b'"


def test_postgres_rejects_nul_in_text():
    with pytest.raises(ValueError):
        PostgresDialect().escape_text("a\x00b")


def test_postgres_capabilities():
    dialect = PostgresDialect()
    assert dialect.capabilities.supports_returning is True
    assert dialect.capabilities.native_boolean is True
    assert dialect.limit_clause(None, 5) == "OFFSET 5"
