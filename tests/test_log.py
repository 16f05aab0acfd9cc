import logging

import pytest

from xkit import log
from xkit.log import LogMessage, NoopLogger, PrettyLogger


@pytest.fixture
def pretty(caplog):
    logger = logging.getLogger("xkit.tests.pretty")
    caplog.set_level(logging.DEBUG, logger="xkit.tests.pretty")
    return PrettyLogger(logger)


@pytest.mark.parametrize(
    "method, level",
    [
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
    ],
)
def test_pretty_logger_levels(pretty, caplog, method, level):
    getattr(pretty, method)(LogMessage("hello"))
    assert [record.levelno for record in caplog.records] == [level]
    assert "hello" in caplog.records[0].getMessage()


def test_pretty_logger_renders_details_and_data(pretty, caplog):
    pretty.info(LogMessage("saved", details="row written", data={"table": "users"}))
    text = caplog.records[0].getMessage()
    assert "saved" in text
    assert "row written" in text
    assert "table=users" in text


def test_noop_logger_emits_nothing(caplog):
    caplog.set_level(logging.DEBUG)
    noop = NoopLogger()
    noop.info(LogMessage("a"))
    noop.debug(LogMessage("b"))
    noop.warn(LogMessage("c"))
    noop.error(LogMessage("d"))
    assert caplog.records == []


def test_current_logger_is_shared():
    first = log.current_logger()
    assert log.current_logger() is first
    assert isinstance(first, PrettyLogger)


def test_module_level_formatting(caplog):
    caplog.set_level(logging.DEBUG, logger="xkit")
    log.debugf("value %d of %s", 7, "items")
    log.warn_string("careful")
    messages = [(record.levelno, record.getMessage()) for record in caplog.records]
    assert (logging.DEBUG, "value 7 of items") in messages
    assert (logging.WARNING, "careful") in messages


def test_format_without_args_keeps_percent(caplog):
    caplog.set_level(logging.DEBUG, logger="xkit")
    log.errorf("100% done")
    assert [record.getMessage() for record in caplog.records] == ["100% done"]


def test_structured_module_functions(caplog):
    caplog.set_level(logging.DEBUG, logger="xkit")
    log.info(LogMessage("started", data={"id": "1"}))
    log.error(LogMessage("failed"))
    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.ERROR]
    assert "id=1" in caplog.records[0].getMessage()