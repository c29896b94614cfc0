"""
nlsolve utilities.

Organization:
- exceptions: Structured solver exceptions
- solver_logging/: Logging configuration and structured helpers
- numerical/: Dense LU, vector history and Anderson mixing
- solver_result: Result object returned by every solve
"""

from .exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    DivergenceError,
    InternalStateError,
    LinearSolveError,
    NonlinearSolverError,
    NumericalInstabilityError,
    SingularMatrixError,
    SolveInProgressError,
)
from .solver_logging import configure_logging, get_logger
from .solver_result import NonlinearSolverResult

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "DivergenceError",
    "InternalStateError",
    "LinearSolveError",
    "NonlinearSolverError",
    "NonlinearSolverResult",
    "NumericalInstabilityError",
    "SingularMatrixError",
    "SolveInProgressError",
    "configure_logging",
    "get_logger",
]
