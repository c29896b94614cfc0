"""
Convergence state machine for nonlinear matrix solvers.

The solver records its per-iteration measurements in ``ParameterChannels``
and asks a ``ConvergenceMonitor`` once per iteration which
``ConvergenceState`` the solve is in.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from nlsolve.config.solver_config import ToleranceType

if TYPE_CHECKING:
    from nlsolve.config.solver_config import NonlinearSolverConfig


class ConvergenceState(Enum):
    """Outcome of one convergence evaluation."""

    NOT_CONVERGED = "not_converged"
    CONVERGED = "converged"
    ABOVE_MAX_ITERATIONS = "above_max_iterations"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not ConvergenceState.NOT_CONVERGED


@dataclass
class ParameterChannels:
    """
    Measurements recorded during one solve.

    Attributes:
        iteration: Current iteration, 1 for the initial step
        vec_in_memory: Occupancy of the acceleration history
        solution_norms: Norm of every raw iterate, the initial guess first
        solution_change_norms: Norm of the change made by each iteration
        residual_norms: Residual norm of the linear system at each iterate
        linear_solve_failed: Whether the last linear solve reported failure
    """

    iteration: int = 1
    vec_in_memory: int = 0
    solution_norms: list[float] = field(default_factory=list)
    solution_change_norms: list[float] = field(default_factory=list)
    residual_norms: list[float] = field(default_factory=list)
    linear_solve_failed: bool = False

    def latest_norms_finite(self) -> bool:
        latest = [
            values[-1]
            for values in (self.solution_norms, self.solution_change_norms, self.residual_norms)
            if values
        ]
        return all(math.isfinite(v) for v in latest)


def relative_change(change_norm: float, solution_norm: float) -> float:
    """Change relative to the solution norm; 0/0 is treated as no change."""
    if solution_norm > 0:
        return change_norm / solution_norm
    return 0.0 if change_norm == 0 else math.inf


class ConvergenceMonitor:
    """
    Evaluates the convergence state of a solve.

    The order of checks is fixed: an error wins over convergence, and
    convergence on the last permitted iteration wins over the iteration cap.
    """

    def __init__(self, config: NonlinearSolverConfig):
        self.config = config

    def criterion_value(self, channels: ParameterChannels) -> float | None:
        """Quantity compared against the tolerance, None before it is measurable."""
        tolerance_type = self.config.tolerance_type

        if tolerance_type in (ToleranceType.SOLUTION_CHANGE_RELATIVE, ToleranceType.SOLUTION_CHANGE_ABSOLUTE):
            if not channels.solution_change_norms:
                return None
            change = channels.solution_change_norms[-1]
            if tolerance_type is ToleranceType.SOLUTION_CHANGE_ABSOLUTE:
                return change
            return relative_change(change, channels.solution_norms[-1])

        if not channels.residual_norms:
            return None
        residual = channels.residual_norms[-1]
        if tolerance_type is ToleranceType.RESIDUAL_NORM_ABSOLUTE:
            return residual
        return relative_change(residual, channels.residual_norms[0])

    def is_converged(self, channels: ParameterChannels) -> bool:
        value = self.criterion_value(channels)
        if value is None:
            return False
        if value == 0:
            return True
        return value < self.config.tolerance

    def evaluate(self, channels: ParameterChannels) -> ConvergenceState:
        if channels.linear_solve_failed or not channels.latest_norms_finite():
            return ConvergenceState.ERROR
        if channels.iteration >= self.config.min_iterations and self.is_converged(channels):
            return ConvergenceState.CONVERGED
        if channels.iteration >= self.config.max_iterations:
            return ConvergenceState.ABOVE_MAX_ITERATIONS
        return ConvergenceState.NOT_CONVERGED
