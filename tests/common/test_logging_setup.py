"""Tests for logging setup and structured formatting."""

import json
import logging
import sys

import pytest

from treepack.common import LogContext, LoggingConfig, setup_logging, setup_logging_from_config
from treepack.common.logging import DetailedFormatter, SimpleFormatter, StructuredFormatter


@pytest.fixture
def root_logger():
    """Root logger restored after the test."""
    logger = logging.getLogger()
    handlers = logger.handlers[:]
    level = logger.level
    yield logger
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def _record(message="Listed 9 entries", **attrs):
    record = logging.LogRecord(
        name="treepack.archiver.reader",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Test formatter output."""

    def test_structured_formatter_emits_json(self):
        output = json.loads(StructuredFormatter().format(_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "treepack.archiver.reader"
        assert output["message"] == "Listed 9 entries"
        assert "timestamp" in output

    def test_structured_formatter_includes_extra_fields(self):
        record = _record(extra_fields={"format": "zip", "archive": "rc.zip"})

        output = json.loads(StructuredFormatter().format(record))

        assert output["format"] == "zip"
        assert output["archive"] == "rc.zip"

    def test_structured_formatter_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(exc_info=sys.exc_info())

        output = json.loads(StructuredFormatter().format(record))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "boom"

    def test_simple_formatter(self):
        assert SimpleFormatter().format(_record()) == "INFO     | treepack.archiver.reader | Listed 9 entries"

    def test_detailed_formatter(self):
        assert "treepack.archiver.reader:" in DetailedFormatter().format(_record())


class TestSetupLogging:
    """Test root logger configuration."""

    def test_console_handler(self, root_logger):
        setup_logging(level="debug", format="detailed")

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, DetailedFormatter)

    def test_unknown_format_falls_back_to_simple(self, root_logger):
        setup_logging(format="fancy")

        assert isinstance(root_logger.handlers[0].formatter, SimpleFormatter)

    def test_file_handler_writes_json(self, root_logger, tmp_path):
        log_file = tmp_path / "logs" / "treepack.log"

        setup_logging_from_config(LoggingConfig(level="INFO", file=str(log_file)))
        logging.getLogger("treepack.test").info("written to file")
        for handler in root_logger.handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "written to file"


class TestLogContext:
    """Test context fields on records."""

    def test_fields_attached_inside_context(self):
        logger = logging.getLogger("treepack.test")

        with LogContext(logger, archive="rc.zip"):
            record = logging.getLogRecordFactory()(
                "treepack.test", logging.INFO, __file__, 1, "inside", (), None
            )

        assert record.extra_fields == {"archive": "rc.zip"}

    def test_factory_restored_after_context(self):
        factory = logging.getLogRecordFactory()

        with LogContext(logging.getLogger("treepack.test"), archive="rc.zip"):
            pass

        assert logging.getLogRecordFactory() is factory
