from __future__ import annotations

import logging

from past_sales_import.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    setup_logging,
)


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert first.name == LOGGER_NAME
    assert len(first.handlers) == 1
    assert first.propagate is False


def test_labeled_output(capsys):
    logger = setup_logging()
    logger.info("starting")
    logger.warning("careful")
    logger.error("broken")
    log_summary("total=1 successful=1")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO starting", "WARN careful", "ERROR broken", "SUMMARY total=1 successful=1"]


def test_module_loggers_propagate_into_package_logger(capsys):
    setup_logging()
    logging.getLogger("past_sales_import.services.commit").info("Successfully imported 3 records")
    assert capsys.readouterr().out == "INFO Successfully imported 3 records\n"


def test_get_logger_configures_on_first_use():
    assert get_logger().name == LOGGER_NAME


def test_formatter_labels():
    formatter = LabeledFormatter()
    record = logging.LogRecord("x", SUMMARY_LEVEL, __file__, 1, "done", None, None)
    assert formatter.format(record) == "SUMMARY done"
