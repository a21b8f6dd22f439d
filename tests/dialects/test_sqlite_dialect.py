from datetime import date, datetime, time, timedelta, timezone

from sqlquill.dialects import SQLiteDialect


def test_sqlite_dialect_quotes_identifiers():
    dialect = SQLiteDialect()
    assert dialect.quote_identifier('user"name') == '"user""name"'
    assert dialect.format_identifier("main.users") == '"main"."users"'
    assert dialect.format_identifier("u.*") == '"u".*'
    assert dialect.format_identifier("*") == "*"


def test_sqlite_limit_clause():
    dialect = SQLiteDialect()
    assert dialect.limit_clause(10, None) == "LIMIT 10"
    assert dialect.limit_clause(None, 5) == "LIMIT -1 OFFSET 5"
    assert dialect.limit_clause(10, 5) == "LIMIT 10 OFFSET 5"
    assert dialect.apply_limit("SELECT 1", 3, None) == "SELECT 1 LIMIT 3"
    assert dialect.apply_limit("SELECT 1", None, None) == "SELECT 1"


def test_sqlite_literals():
    dialect = SQLiteDialect()
    assert dialect.escape_text("it's") == "'it''s'"
    assert dialect.escape_binary(b"\x01\xff") == "X'01ff'"
    assert dialect.escape_bool(True) == "1"
    assert dialect.escape_bool(False) == "0"


def test_sqlite_like_pattern_escapes_wildcards():
    dialect = SQLiteDialect()
    assert dialect.escape_like("50%_off", 0) == "'%50\\%\\_off%' ESCAPE '\\'"
    assert dialect.escape_like("ab", 1) == "'ab%' ESCAPE '\\'"
    assert dialect.escape_like("ab", -1) == "'%ab' ESCAPE '\\'"


def test_sqlite_temporal_formats():
    dialect = SQLiteDialect()
    assert dialect.format_date(date(2024, 1, 2)) == "'2024-01-02'"
    assert dialect.format_datetime(datetime(2024, 1, 2, 3, 4, 5)) == "'2024-01-02 03:04:05'"
    assert dialect.format_datetime(datetime(2024, 1, 2, 3, 4, 5, 123)) == "'2024-01-02 03:04:05.000123'"
    assert dialect.format_time(time(1, 2, 3)) == "'01:02:03'"


def test_aware_datetimes_are_written_in_utc():
    dialect = SQLiteDialect()
    aware = datetime(2020, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=5)))
    assert dialect.format_datetime(aware) == "'2020-01-01 07:00:00'"
    assert dialect.format_datetime(datetime(2020, 1, 1, 12, tzinfo=timezone.utc)) == "'2020-01-01 12:00:00'"
