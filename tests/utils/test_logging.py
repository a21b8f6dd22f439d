import logging

from sqlquill.utils import get_logger, time_call
from sqlquill.utils.logging import CorrelationIdFilter, get_correlation_id, set_correlation_id


def test_get_logger_namespaces_under_package():
    assert get_logger("connection").name == "sqlquill.connection"
    assert logging.getLogger("sqlquill").handlers


def test_correlation_id_filter_tags_records():
    token = set_correlation_id("req-42")
    assert get_correlation_id() == token == "req-42"

    record = logging.LogRecord("sqlquill.test", logging.INFO, __file__, 1, "msg", None, None)
    assert CorrelationIdFilter().filter(record) is True
    assert record.correlation_id == "req-42"


def test_time_call_reports_elapsed_time(caplog):
    logger = get_logger("tests.timing")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit", logger, sql="SELECT 1", threshold_ms=10_000) as timer:
        pass
    assert timer.elapsed_ms >= 0
    record = caplog.records[-1]
    assert record.levelno == logging.DEBUG
    assert record.sql == "SELECT 1"
    assert record.getMessage().startswith("unit took")


def test_time_call_warns_when_slow(caplog):
    logger = get_logger("tests.timing")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("slow", logger, threshold_ms=0):
        pass
    assert caplog.records[-1].levelno == logging.WARNING
