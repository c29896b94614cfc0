"""
Logging utilities for nlsolve.

Usage:
    >>> from nlsolve.utils.solver_logging import configure_logging, get_logger
    >>> logger = get_logger(__name__)
    >>> configure_logging(level="DEBUG")
    >>> logger.info("Starting computation...")
"""

from __future__ import annotations

from .logger import (
    LoggedOperation,
    SolverFormatter,
    SolverLogger,
    configure_logging,
    get_logger,
    log_convergence_analysis,
    log_solver_completion,
    log_solver_configuration,
    log_solver_progress,
    log_solver_start,
)

__all__ = [
    # Core logging
    "configure_logging",
    "get_logger",
    # Structured logging helpers
    "log_convergence_analysis",
    "log_solver_completion",
    "log_solver_configuration",
    "log_solver_progress",
    "log_solver_start",
    # Classes
    "LoggedOperation",
    "SolverFormatter",
    "SolverLogger",
]
