"""
Debugging and Analysis Hooks

Ready-to-use hooks for recording and analyzing solver behavior.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import numpy as np

from nlsolve.utils.solver_logging import get_logger, log_convergence_analysis

from .base import SolverHooks

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlsolve.utils.solver_result import NonlinearSolverResult

    from .base import IterationState


class IterateRecorderHook(SolverHooks):
    """
    Records every accepted iterate, the initial guess first.

    Example:
        recorder = IterateRecorderHook()
        result = solver.solve(hooks=recorder)
        trajectory = recorder.as_array()
    """

    def __init__(self):
        self.iterates: list[NDArray] = []
        self.iterations: list[int] = []

    def _record(self, iteration: int, solution: NDArray) -> None:
        self.iterates.append(np.array(solution, copy=True))
        self.iterations.append(iteration)

    def on_initialization(self, state: IterationState) -> None:
        self.iterates = []
        self.iterations = []
        self._record(0, state.solution)

    def on_initial_step_end(self, state: IterationState) -> bool:
        self._record(state.iteration, state.solution)
        return True

    def on_step_end(self, state: IterationState) -> bool:
        self._record(state.iteration, state.solution)
        return True

    def on_finish(self, result: NonlinearSolverResult) -> None:
        # The terminal iteration skips on_step_end
        if not self.iterations or result.iterations > self.iterations[-1]:
            self._record(result.iterations, result.solution)

    def as_array(self) -> NDArray:
        return np.vstack(self.iterates) if self.iterates else np.empty((0, 0))


class ConvergenceAnalysisHook(SolverHooks):
    """
    Logs a convergence analysis of the solution change norms when a solve ends.

    Example:
        result = solver.solve(hooks=ConvergenceAnalysisHook(tolerance=1e-6))
    """

    def __init__(self, tolerance: float = 1e-3, logger_name: str = "nlsolve.analysis"):
        self.tolerance = tolerance
        self.logger = get_logger(logger_name)
        self.iteration_times: list[float] = []
        self._last_time: float | None = None

    def on_initialization(self, state: IterationState) -> None:
        self.iteration_times = []
        self._last_time = time.time()

    def _tick(self) -> None:
        now = time.time()
        if self._last_time is not None:
            self.iteration_times.append(now - self._last_time)
        self._last_time = now

    def on_initial_step_end(self, state: IterationState) -> bool:
        self._tick()
        return True

    def on_step_end(self, state: IterationState) -> bool:
        self._tick()
        return True

    def on_finish(self, result: NonlinearSolverResult) -> None:
        self._tick()
        log_convergence_analysis(
            self.logger,
            result.solution_change_norms,
            result.iterations,
            self.tolerance,
            result.converged,
        )
        if self.iteration_times:
            self.logger.info(f"  Average iteration time: {np.mean(self.iteration_times):.3e}s")
