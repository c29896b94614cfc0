"""
Base Hooks System for nlsolve solvers

This module provides the core hooks architecture that allows users
to observe and stop nonlinear solves without subclassing the solver.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlsolve.alg.nonlinear.convergence import ConvergenceState, ParameterChannels
    from nlsolve.utils.solver_result import NonlinearSolverResult


@dataclass
class IterationState:
    """
    Snapshot handed to every hook call.

    ``solution`` is the solver's accepted iterate; hooks must not modify it.
    ``convergence_state`` is None until the first evaluation has run.
    """

    iteration: int
    solution: NDArray
    channels: ParameterChannels
    solver_name: str
    convergence_state: ConvergenceState | None = None

    @property
    def change_norm(self) -> float | None:
        changes = self.channels.solution_change_norms
        return changes[-1] if changes else None

    @property
    def solution_norm(self) -> float | None:
        norms = self.channels.solution_norms
        return norms[-1] if norms else None

    @property
    def residual_norm(self) -> float | None:
        residuals = self.channels.residual_norms
        return residuals[-1] if residuals else None

    @property
    def relative_change(self) -> float | None:
        from nlsolve.alg.nonlinear.convergence import relative_change

        if self.change_norm is None:
            return None
        return relative_change(self.change_norm, self.solution_norm or 0.0)


class SolverHooks(ABC):
    """
    Base class for solver customization hooks.

    Override any method to customize solver behavior. All methods
    are optional - only implement what you need. Returning False from
    a step method stops the solve; the result is then marked aborted.
    Any other return value, None included, continues.

    Example:
        class MyHook(SolverHooks):
            def on_step_end(self, state):
                print(f"Iteration {state.iteration}: change={state.change_norm}")

        solver.solve(hooks=MyHook())
    """

    def on_initialization(self, state: IterationState) -> None:
        """
        Called once per solve after the initial guess is in place.

        Args:
            state: State holding the initial guess, no norms recorded yet
        """

    def on_initial_step_end(self, state: IterationState) -> bool:
        """
        Called after the initial step if it did not end the solve.

        Returns:
            False to stop the solve
        """
        return True

    def on_step_begin(self, state: IterationState) -> bool:
        """
        Called before each main-loop iteration assembles its system.

        Returns:
            False to stop the solve
        """
        return True

    def on_step_end(self, state: IterationState) -> bool:
        """
        Called after each main-loop iteration that did not end the solve.

        Use this for:
        - Progress monitoring
        - Custom stopping criteria
        - Intermediate iterate inspection

        Returns:
            False to stop the solve
        """
        return True

    def on_finish(self, result: NonlinearSolverResult) -> None:
        """
        Called once on every terminal path, failures included.

        Args:
            result: Finalized solver result
        """
