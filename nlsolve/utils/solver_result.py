"""
Standardized result objects for nlsolve solvers.

A ``NonlinearSolverResult`` is produced on every terminal path of a solve,
successful or not, so the iterate history is never lost to an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlsolve.alg.nonlinear.convergence import ConvergenceState


@dataclass
class NonlinearSolverResult:
    """
    Result of one nonlinear solve.

    Attributes:
        solution: Final accepted iterate (a fresh array owned by the caller)
        iterations: Number of iterations performed, the initial step included
        converged: Whether the convergence criterion was met
        state: Convergence state of the last evaluated iteration (None if the
            solve stopped before the first evaluation)
        aborted: Whether a hook stopped the iteration
        solution_norms: L2 norm of every raw iterate, initial guess first
        solution_change_norms: L2 norm of the change produced by each iteration
        residual_norms: Residual norm of the linear system at each iterate
        anderson_coefficients: Last set of mixing coefficients, if any
        solver_name: Name of the solver that produced the result
        execution_time: Wall-clock duration of the solve in seconds
        metadata: Additional solver-specific information
    """

    solution: NDArray
    iterations: int
    converged: bool
    state: ConvergenceState | None = None
    aborted: bool = False
    solution_norms: list[float] = field(default_factory=list)
    solution_change_norms: list[float] = field(default_factory=list)
    residual_norms: list[float] = field(default_factory=list)
    anderson_coefficients: NDArray | None = None
    solver_name: str = "Unknown Solver"
    execution_time: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def final_change_norm(self) -> float:
        """Get the last recorded solution change norm."""
        return float(self.solution_change_norms[-1]) if self.solution_change_norms else float("inf")

    @property
    def final_relative_change(self) -> float:
        """Get the last solution change relative to the norm of that iterate."""
        if not self.solution_change_norms:
            return float("inf")
        change = self.solution_change_norms[-1]
        norm = self.solution_norms[-1] if self.solution_norms else 0.0
        if norm > 0:
            return float(change / norm)
        return 0.0 if change == 0 else float("inf")

    @property
    def convergence_rate(self) -> float | None:
        """Average ratio of consecutive change norms, None with fewer than two."""
        history = self.solution_change_norms
        ratios = [history[i + 1] / history[i] for i in range(len(history) - 1) if history[i] > 0]
        if not ratios:
            return None
        return float(np.mean(ratios))

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "solution": self.solution,
            "iterations": self.iterations,
            "converged": self.converged,
            "state": self.state.name if self.state is not None else None,
            "aborted": self.aborted,
            "solution_norms": list(self.solution_norms),
            "solution_change_norms": list(self.solution_change_norms),
            "residual_norms": list(self.residual_norms),
            "anderson_coefficients": self.anderson_coefficients,
            "solver_name": self.solver_name,
            "execution_time": self.execution_time,
            "final_change_norm": self.final_change_norm,
            "final_relative_change": self.final_relative_change,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        if self.converged:
            status = "SUCCESS:"
        elif self.aborted:
            status = "ABORTED:"
        else:
            status = "WARNING:"
        time_str = f", {self.execution_time:.3f}s" if self.execution_time else ""

        return (
            f"NonlinearSolverResult({self.solver_name}: {status} "
            f"{self.iterations} iters, change={self.final_change_norm:.2e}{time_str})"
        )
