from sqlquill.utils import format_sql


def test_format_sql_breaks_before_major_keywords():
    sql = "SELECT * FROM t WHERE a = 1 ORDER BY a LIMIT 5"
    assert format_sql(sql) == "SELECT *\nFROM t\nWHERE a = 1\nORDER BY a\nLIMIT 5"


def test_format_sql_leaves_quoted_text_alone():
    sql = "select * from t where a = 'select from' and \"where\" = 1"
    assert format_sql(sql) == "SELECT *\nFROM t\nWHERE a = 'select from' and \"where\" = 1"


def test_format_sql_joins():
    sql = "SELECT * FROM a LEFT   JOIN b ON a.id = b.a_id"
    assert format_sql(sql) == "SELECT *\nFROM a\nLEFT JOIN b ON a.id = b.a_id"
