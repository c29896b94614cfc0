"""
Logging infrastructure for nlsolve.

Provides structured logging with configurable levels, formatting and color
support for monitoring nonlinear solves.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

import colorlog

LOG_FORMAT = "%(asctime)s - %(name)-20s - %(levelname)-8s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SolverFormatter(logging.Formatter):
    """Formatter for nlsolve log records, optionally colored through colorlog."""

    def __init__(self, use_colors: bool = False, include_location: bool = False):
        self.use_colors = use_colors
        self.include_location = include_location

        format_str = LOG_FORMAT
        if self.include_location:
            format_str += " [%(filename)s:%(lineno)d]"

        if self.use_colors:
            self.colored_formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + format_str,
                datefmt=DATE_FORMAT,
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )

        super().__init__(format_str, datefmt=DATE_FORMAT)

    def format(self, record):
        if self.use_colors:
            return self.colored_formatter.format(record)
        return super().format(record)


class SolverLogger:
    """
    Central logging registry for nlsolve.

    Thread Safety:
        Logger creation uses double-checked locking, so concurrent calls to
        get_logger() never attach duplicate handlers.
    """

    _instance = None
    _lock: ClassVar[threading.Lock] = threading.Lock()
    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _log_level = logging.INFO
    _log_to_file = False
    _log_file_path: Path | None = None
    _use_colors = True
    _include_location = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def configure(
        cls,
        level: str | int = "INFO",
        log_to_file: bool = False,
        log_file_path: str | Path | None = None,
        use_colors: bool = True,
        include_location: bool = False,
    ):
        """
        Configure global logging settings for nlsolve.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_to_file: Whether to log to file
            log_file_path: Path to log file (optional)
            use_colors: Use colored terminal output
            include_location: Include file location in log messages
        """
        with cls._lock:
            if isinstance(level, str):
                cls._log_level = getattr(logging, level.upper())
            else:
                cls._log_level = level

            cls._log_to_file = log_to_file
            cls._use_colors = use_colors
            cls._include_location = include_location

            if log_to_file:
                if log_file_path is None:
                    log_dir = Path.cwd() / "logs"
                    log_dir.mkdir(exist_ok=True)
                    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                    cls._log_file_path = log_dir / f"nlsolve_{timestamp}.log"
                else:
                    cls._log_file_path = Path(log_file_path)
                    cls._log_file_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls._log_file_path = None

            for logger in cls._loggers.values():
                cls._setup_logger(logger)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get or create a logger for the specified module.

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            Configured logger instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        with cls._lock:
            if name not in cls._loggers:
                logger = logging.getLogger(name)
                if not logger.handlers:
                    cls._setup_logger(logger)
                cls._loggers[name] = logger

        return cls._loggers[name]

    @classmethod
    def _setup_logger(cls, logger: logging.Logger):
        """Configure individual logger with current settings."""
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(cls._log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            SolverFormatter(use_colors=cls._use_colors, include_location=cls._include_location)
        )
        console_handler.setLevel(cls._log_level)
        logger.addHandler(console_handler)

        if cls._log_to_file and cls._log_file_path:
            file_handler = logging.FileHandler(cls._log_file_path)
            # File logs never carry color codes
            file_handler.setFormatter(SolverFormatter(use_colors=False, include_location=cls._include_location))
            file_handler.setLevel(cls._log_level)
            logger.addHandler(file_handler)

        logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger for the current module.

    Args:
        name: Logger name (if None, uses calling module name)

    Returns:
        Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "nlsolve")
        else:
            name = "nlsolve"

    return SolverLogger.get_logger(name)


def configure_logging(**kwargs):
    """
    Configure global logging settings.

    Keyword Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to file
        log_file_path: Path to log file
        use_colors: Use colored terminal output
        include_location: Include file location in messages
    """
    SolverLogger.configure(**kwargs)


def log_solver_start(logger: logging.Logger, solver_name: str, config: dict[str, Any]):
    """Log solver initialization with configuration."""
    logger.info(f"Initializing {solver_name}")
    logger.debug(f"Solver configuration: {config}")


def log_solver_progress(
    logger: logging.Logger,
    solver_name: str,
    iteration: int,
    change_norm: float,
    solution_norm: float,
    verbose: bool = True,
):
    """Log one iteration: absolute and relative solution change."""
    level = logging.INFO if verbose else logging.DEBUG
    if not logger.isEnabledFor(level):
        return
    if solution_norm > 0:
        percent = change_norm / solution_norm * 100.0
    else:
        percent = 0.0 if change_norm == 0 else float("inf")
    logger.log(level, f"{solver_name}: iteration {iteration}")
    logger.log(level, f"    solution change (L2 norm): {change_norm:g} ({percent:g}%)")


def log_solver_completion(
    logger: logging.Logger,
    solver_name: str,
    iterations: int,
    final_error: float,
    execution_time: float,
    status: str,
):
    """Log solver completion with summary."""
    logger.info(f"{solver_name} completed - Status: {status}")
    logger.info(f"Final results: {iterations} iterations, error: {final_error:.2e}, time: {execution_time:.3f}s")


def log_solver_configuration(
    logger: logging.Logger,
    solver_name: str,
    config: dict[str, Any],
    problem_info: dict[str, Any] | None = None,
    level: int = logging.DEBUG,
):
    """Log solver parameters and optional problem information."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, f"=== {solver_name} Configuration ===")

    for key, value in config.items():
        if isinstance(value, int | float | str | bool):
            logger.log(level, f"  {key}: {value}")
        elif isinstance(value, dict):
            logger.log(level, f"  {key}: {len(value)} parameters")
        else:
            logger.log(level, f"  {key}: {type(value).__name__}")

    if problem_info:
        logger.log(level, "=== Problem Information ===")
        for key, value in problem_info.items():
            logger.log(level, f"  {key}: {value}")


def log_convergence_analysis(
    logger: logging.Logger,
    error_history: list[float],
    final_iterations: int,
    tolerance: float,
    converged: bool,
):
    """Log detailed convergence analysis."""
    logger.info("=== Convergence Analysis ===")
    logger.info(f"  Final status: {'CONVERGED' if converged else 'NOT CONVERGED'}")
    logger.info(f"  Iterations: {final_iterations}")
    logger.info(f"  Target tolerance: {tolerance:.2e}")

    if error_history:
        initial_error = error_history[0]
        final_error = error_history[-1]
        logger.info(f"  Initial error: {initial_error:.2e}")
        logger.info(f"  Final error: {final_error:.2e}")

        if len(error_history) > 1 and final_error > 0:
            logger.info(f"  Error reduction: {initial_error / final_error:.2e}x")

        if len(error_history) > 2:
            ratios = [
                error_history[i + 1] / error_history[i] for i in range(len(error_history) - 1) if error_history[i] > 0
            ]
            if ratios:
                logger.info(f"  Average convergence rate: {sum(ratios) / len(ratios):.4f}")


class LoggedOperation:
    """Context manager for logging timed operations."""

    def __init__(self, logger: logging.Logger, operation_name: str, log_level: int = logging.INFO):
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: float | None = None
        self.duration: float | None = None

    def __enter__(self):
        self.logger.log(self.log_level, f"Starting {self.operation_name}")
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - (self.start_time or 0)

        if exc_type is None:
            self.logger.log(self.log_level, f"Completed {self.operation_name} in {self.duration:.3f}s")
        else:
            self.logger.error(f"Failed {self.operation_name} after {self.duration:.3f}s: {exc_val}")

        return False
