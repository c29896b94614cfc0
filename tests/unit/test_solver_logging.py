#!/usr/bin/env python3
"""
Unit tests for the nlsolve logging utilities.

Includes the thread-safety check for concurrent logger creation.
"""

import logging
import threading

import pytest

import colorlog

from nlsolve.utils.solver_logging import (
    LoggedOperation,
    configure_logging,
    get_logger,
    log_solver_completion,
    log_solver_configuration,
    log_solver_progress,
)
from nlsolve.utils.solver_logging.logger import SolverFormatter, SolverLogger


def _record(message="hello", level=logging.INFO):
    return logging.LogRecord("nlsolve.test", level, __file__, 10, message, None, None)


@pytest.mark.unit
class TestGetLogger:
    """Test logger creation and configuration."""

    def test_same_name_same_logger(self):
        assert get_logger("nlsolve.test.same") is get_logger("nlsolve.test.same")

    def test_logger_setup(self):
        logger = get_logger("nlsolve.test.setup")

        assert logger.propagate is False
        assert len(logger.handlers) == 1

    def test_default_name_is_calling_module(self):
        assert get_logger().name == __name__

    def test_concurrent_creation_single_handler(self):
        name = "nlsolve.test.concurrent"
        loggers = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            loggers.append(get_logger(name))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(logger) for logger in loggers}) == 1
        assert len(loggers[0].handlers) == 1

    def test_configure_to_file(self, temp_directory):
        log_file = temp_directory / "logs" / "solve.log"
        try:
            configure_logging(level="DEBUG", log_to_file=True, log_file_path=log_file, use_colors=False)
            logger = get_logger("nlsolve.test.file")
            logger.debug("written to file")
            for handler in logger.handlers:
                handler.flush()

            assert len(logger.handlers) == 2
            assert "written to file" in log_file.read_text()
        finally:
            configure_logging()

        assert SolverLogger._log_file_path is None
        assert len(get_logger("nlsolve.test.file").handlers) == 1


@pytest.mark.unit
class TestSolverFormatter:
    """Test plain and colored formatting."""

    def test_plain(self):
        text = SolverFormatter(use_colors=False).format(_record())

        assert "nlsolve.test" in text
        assert "INFO" in text
        assert text.endswith("hello")
        assert "\x1b[" not in text

    def test_colored(self):
        formatter = SolverFormatter(use_colors=True)

        assert isinstance(formatter.colored_formatter, colorlog.ColoredFormatter)
        assert "hello" in formatter.format(_record())

    def test_location(self):
        text = SolverFormatter(include_location=True).format(_record())
        assert ":10]" in text


@pytest.mark.unit
class TestLogHelpers:
    """Test the structured logging helpers."""

    def test_progress_verbose(self, log_capture):
        records = log_capture("nlsolve.test.progress")
        logger = get_logger("nlsolve.test.progress")

        log_solver_progress(logger, "Picard", 1, 5.0, 5.0, verbose=True)

        assert [r.getMessage() for r in records] == [
            "Picard: iteration 1",
            "    solution change (L2 norm): 5 (100%)",
        ]
        assert all(r.levelno == logging.INFO for r in records)

    def test_progress_quiet_uses_debug(self, log_capture):
        records = log_capture("nlsolve.test.quiet")
        logger = get_logger("nlsolve.test.quiet")

        log_solver_progress(logger, "Picard", 2, 2.5, 7.5, verbose=False)

        # Loggers run at INFO by default
        assert records == []

    def test_completion(self, log_capture):
        records = log_capture("nlsolve.test.completion")
        logger = get_logger("nlsolve.test.completion")

        log_solver_completion(logger, "Picard", 3, 0.0, 0.01, "CONVERGED")

        assert records[0].getMessage() == "Picard completed - Status: CONVERGED"
        assert "3 iterations" in records[1].getMessage()

    def test_configuration_at_info(self, log_capture):
        records = log_capture("nlsolve.test.configuration")
        logger = get_logger("nlsolve.test.configuration")

        log_solver_configuration(
            logger,
            "Picard",
            {"tolerance": 1e-6, "anderson": {"enabled": True}},
            problem_info={"num_dofs": 4},
            level=logging.INFO,
        )

        messages = [r.getMessage() for r in records]
        assert messages[0] == "=== Picard Configuration ==="
        assert "  tolerance: 1e-06" in messages
        assert "  anderson: 1 parameters" in messages
        assert "  num_dofs: 4" in messages

    def test_logged_operation(self, log_capture):
        records = log_capture("nlsolve.test.operation")
        logger = get_logger("nlsolve.test.operation")

        with LoggedOperation(logger, "assembly") as op:
            pass

        assert op.duration is not None
        assert records[0].getMessage() == "Starting assembly"
        assert records[1].getMessage().startswith("Completed assembly")

    def test_logged_operation_failure(self, log_capture):
        records = log_capture("nlsolve.test.failure")
        logger = get_logger("nlsolve.test.failure")

        with pytest.raises(RuntimeError), LoggedOperation(logger, "assembly"):
            raise RuntimeError("boom")

        assert records[-1].levelno == logging.ERROR
        assert "boom" in records[-1].getMessage()
