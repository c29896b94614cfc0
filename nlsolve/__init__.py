"""
nlsolve: iterative solvers for nonlinear discretized systems.

Drives repeated linear solves of ``A(x) x = b(x)`` toward a fixed point,
with optional Anderson acceleration, pluggable convergence criteria and
hooks for observing or stopping a solve.

Quick Start:
    >>> import numpy as np
    >>> from nlsolve import AlgebraicProblem, PicardConfig, PicardSolver
    >>> problem = AlgebraicProblem(1, np.eye(1), lambda x: 0.5 * x + 5.0)
    >>> result = PicardSolver(problem).solve(config=PicardConfig(tolerance=1e-6))
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nlsolve")
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0-dev"

from nlsolve.alg.nonlinear import (
    ConvergenceMonitor,
    ConvergenceState,
    NonlinearMatrixSolver,
    ParameterChannels,
    PicardSolver,
)
from nlsolve.backends import DirectLinearSolver, IterativeLinearSolver, create_linear_solver
from nlsolve.config import (
    AndersonConfig,
    LoggingConfig,
    NonlinearSolverConfig,
    PicardConfig,
    SolverConfig,
    ToleranceType,
    load_solver_config,
    save_solver_config,
)
from nlsolve.core import AlgebraicProblem, AssembledSystem, LinearSolveResult, ReuseScheme
from nlsolve.hooks import SolverHooks
from nlsolve.utils.exceptions import (
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
from nlsolve.utils.solver_logging import configure_logging, get_logger
from nlsolve.utils.solver_result import NonlinearSolverResult

__all__ = [
    "AlgebraicProblem",
    "AndersonConfig",
    "AssembledSystem",
    "ConfigurationError",
    "ConvergenceMonitor",
    "ConvergenceState",
    "DimensionMismatchError",
    "DirectLinearSolver",
    "DivergenceError",
    "InternalStateError",
    "IterativeLinearSolver",
    "LinearSolveError",
    "LinearSolveResult",
    "LoggingConfig",
    "NonlinearMatrixSolver",
    "NonlinearSolverConfig",
    "NonlinearSolverError",
    "NonlinearSolverResult",
    "NumericalInstabilityError",
    "ParameterChannels",
    "PicardConfig",
    "PicardSolver",
    "ReuseScheme",
    "SingularMatrixError",
    "SolveInProgressError",
    "SolverConfig",
    "SolverHooks",
    "ToleranceType",
    "__version__",
    "configure_logging",
    "create_linear_solver",
    "get_logger",
    "load_solver_config",
    "save_solver_config",
]
