"""Tests for logging helpers."""

import io
import logging

import pytest

from connectedness_monitor.core.exceptions import NumericalInstabilityError, WindowComputationError
from connectedness_monitor.utils import LogContext, ProgressLogger, get_logger, setup_logging
from connectedness_monitor.utils.logging import PACKAGE_LOGGER, QUIET_LOGGERS, log_exception


@pytest.fixture
def restore_logging():
    """Put back the root handlers replaced by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    for name in (PACKAGE_LOGGER,) + QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestSetupLogging:

    def test_quietens_dependency_loggers(self, restore_logging):
        setup_logging(level=logging.DEBUG)

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG

    def test_quiet_mode(self, restore_logging):
        setup_logging(level=logging.DEBUG, quiet=True)

        assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING

    def test_run_log_keeps_debug_records(self, restore_logging, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(log_file=log_file, quiet=True)

        get_logger("windows").debug("window 3 done")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "window 3 done" in text
        assert "MainProcess connectedness_monitor.windows" in text


class TestLogException:

    def test_includes_cause_chain(self, caplog):
        try:
            try:
                raise NumericalInstabilityError("Granger causality test", "window contains non-finite values")
            except NumericalInstabilityError as e:
                raise WindowComputationError(7, str(e)) from e
        except WindowComputationError as e:
            with caplog.at_level(logging.ERROR):
                log_exception(logging.getLogger("test"), e, "Run failed")

        record = caplog.records[-1]
        assert record.getMessage().startswith("Run failed: ")
        assert "Caused by:" in record.getMessage()
        assert "Granger causality test" in record.getMessage()
        assert record.exc_info[0] is WindowComputationError


class TestProgressLogger:

    def test_reports_in_steps(self):
        stream = io.StringIO()
        progress = ProgressLogger(logging.getLogger("test"), description="Windows",
                                  update_step=0.25, stream=stream)

        for fraction in [0.1, 0.3, 0.4, 0.6, 1.0]:
            progress(fraction)

        assert stream.getvalue().count("\r") == 3
        assert stream.getvalue().endswith("Windows... 100%")
        assert progress.fraction == 1.0

    def test_clamps_fraction(self):
        progress = ProgressLogger(logging.getLogger("test"), stream=io.StringIO())
        progress.update(1.7)
        assert progress.fraction == 1.0

    def test_finish_logs(self, caplog):
        progress = ProgressLogger(logging.getLogger("test"), stream=io.StringIO())

        with caplog.at_level(logging.INFO):
            progress.finish("Computed 10 windows")

        assert "Computed 10 windows" in caplog.text


class TestLogContext:

    def test_logs_completion(self, caplog):
        with caplog.at_level(logging.INFO):
            with LogContext(logging.getLogger("test"), "Aggregating") as context:
                pass

        assert "Aggregating completed" in caplog.text
        assert context.elapsed >= 0.0

    def test_does_not_suppress(self, caplog):
        with pytest.raises(ValueError):
            with LogContext(logging.getLogger("test"), "Aggregating"):
                raise ValueError("boom")

        assert "Aggregating failed" in caplog.text


def test_get_logger_prefixes_package():
    assert get_logger("windows").name == "connectedness_monitor.windows"
    assert get_logger("connectedness_monitor.cli").name == "connectedness_monitor.cli"
    assert get_logger("connectedness_monitor_extras").name == "connectedness_monitor.connectedness_monitor_extras"
