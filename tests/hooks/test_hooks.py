import pytest

from sqlquill import Connection
from sqlquill.adapters import AdapterExecutionError
from sqlquill.hooks import HookDispatcher, QueryEvent


@pytest.mark.parametrize(
    "sql, event",
    [
        ("  select 1", QueryEvent.SELECT),
        ("(SELECT 1) UNION (SELECT 2)", QueryEvent.SELECT),
        ("INSERT INTO t VALUES (1)", QueryEvent.INSERT),
        ("REPLACE INTO t VALUES (1)", QueryEvent.INSERT),
        ("UPDATE t SET a = 1", QueryEvent.UPDATE),
        ("DELETE FROM t", QueryEvent.DELETE),
        ("CREATE TABLE t (id INTEGER)", QueryEvent.QUERY),
    ],
)
def test_events_are_classified_by_leading_command(sql, event):
    assert QueryEvent.from_sql(sql) is event


def test_dispatcher_filters_by_event():
    dispatcher = HookDispatcher()
    calls = []
    dispatcher.register("after_query", lambda event, **ctx: calls.append(("any", event)))
    dispatcher.register("after_query", lambda event, **ctx: calls.append(("select", event)), event=QueryEvent.SELECT)

    dispatcher.fire("after_query", QueryEvent.INSERT, sql="INSERT")
    dispatcher.fire("after_query", QueryEvent.SELECT, sql="SELECT")
    assert calls == [
        ("any", QueryEvent.INSERT),
        ("any", QueryEvent.SELECT),
        ("select", QueryEvent.SELECT),
    ]


def test_unregister_and_clear():
    dispatcher = HookDispatcher()
    calls = []

    def handler(event, **ctx):
        calls.append(event)

    dispatcher.register("before_query", handler)
    dispatcher.register("before_query", handler, event=QueryEvent.DELETE)
    dispatcher.unregister("before_query", handler)
    dispatcher.fire("before_query", QueryEvent.DELETE)
    assert calls == []

    dispatcher.register("before_query", handler)
    dispatcher.clear()
    dispatcher.fire("before_query", QueryEvent.DELETE)
    assert calls == []


def test_unknown_hook_is_rejected():
    with pytest.raises(ValueError):
        HookDispatcher().register("after_commit", lambda event, **ctx: None)


def test_connection_fires_query_hooks():
    dispatcher = HookDispatcher()
    seen = []
    dispatcher.register("before_query", lambda event, **ctx: seen.append(("before", event, ctx["sql"])))
    dispatcher.register(
        "after_query",
        lambda event, **ctx: seen.append(("after", event, ctx["affected_rows"] if ctx["sql"] else None)),
    )
    dispatcher.register("query_failed", lambda event, **ctx: seen.append(("failed", event, type(ctx["error"]))))

    connection = Connection("sqlite:///:memory:", hooks=dispatcher)
    assert seen == [("before", QueryEvent.CONNECT, None), ("after", QueryEvent.CONNECT, None)]
    seen.clear()

    connection.native_query("CREATE TABLE t (id INTEGER)")
    connection.query("INSERT INTO t VALUES (%i)", 1)
    assert seen[-2:] == [
        ("before", QueryEvent.INSERT, "INSERT INTO t VALUES (1)"),
        ("after", QueryEvent.INSERT, 1),
    ]

    seen.clear()
    with pytest.raises(AdapterExecutionError):
        connection.query("SELECT * FROM missing")
    assert seen == [
        ("before", QueryEvent.SELECT, "SELECT * FROM missing"),
        ("failed", QueryEvent.SELECT, AdapterExecutionError),
    ]
    connection.disconnect()


def test_transaction_hooks_carry_savepoints():
    dispatcher = HookDispatcher()
    events = []
    dispatcher.register("after_query", lambda event, **ctx: events.append((event, ctx.get("savepoint"))))
    connection = Connection("sqlite:///:memory:", hooks=dispatcher)
    events.clear()

    connection.begin()
    connection.begin("inner")
    connection.commit("inner")
    connection.rollback()
    assert events == [
        (QueryEvent.BEGIN, None),
        (QueryEvent.BEGIN, "inner"),
        (QueryEvent.COMMIT, "inner"),
        (QueryEvent.ROLLBACK, None),
    ]
    connection.disconnect()
