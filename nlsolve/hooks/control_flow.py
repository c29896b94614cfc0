"""
Control Flow Hooks

Hooks that stop a solve cooperatively at an iteration boundary. A stop is
not an error: the solver finalizes normally and returns a result with
``aborted=True``.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from nlsolve.utils.solver_logging import get_logger

from .base import SolverHooks

if TYPE_CHECKING:
    from collections.abc import Callable

    from .base import IterationState

logger = get_logger(__name__)


class ConditionalStopHook(SolverHooks):
    """
    Hook that stops the solve when a user-defined condition holds.

    Conditions are checked after the initial step and after every main-loop
    iteration, highest priority first.

    Example:
        stop_hook = ConditionalStopHook(lambda state: state.iteration >= 5, "Enough iterations")

        stop_hook.add_condition(
            lambda state: state.residual_norm is not None and state.residual_norm < 1e-10,
            "Residual below 1e-10",
            priority=1,
        )
    """

    def __init__(
        self,
        condition: Callable[[IterationState], bool] | None = None,
        reason: str = "Stop condition met",
    ):
        self.conditions: list[dict[str, Any]] = []
        self.stop_reason: str | None = None
        if condition is not None:
            self.add_condition(condition, reason)

    def add_condition(
        self, condition: Callable[[IterationState], bool], reason: str = "Stop condition met", priority: int = 0
    ):
        """Add a stopping condition."""
        self.conditions.append({"condition": condition, "reason": reason, "priority": priority})
        self.conditions.sort(key=lambda x: x["priority"], reverse=True)

    def _check(self, state: IterationState) -> bool:
        for cond in self.conditions:
            if cond["condition"](state):
                self.stop_reason = cond["reason"]
                logger.info(f"Stopping at iteration {state.iteration}: {cond['reason']}")
                return False
        return True

    def on_initialization(self, state: IterationState) -> None:
        self.stop_reason = None

    def on_initial_step_end(self, state: IterationState) -> bool:
        return self._check(state)

    def on_step_end(self, state: IterationState) -> bool:
        return self._check(state)


class WatchdogHook(SolverHooks):
    """
    Hook that stops a solve which runs too long or blows up.

    Args:
        max_wall_time: Seconds after on_initialization before the solve is stopped
        divergence_threshold: Stop once the solution norm exceeds this value

    Example:
        watchdog = WatchdogHook(max_wall_time=30.0, divergence_threshold=1e8)
        result = solver.solve(hooks=watchdog)
    """

    def __init__(self, max_wall_time: float | None = None, divergence_threshold: float | None = None):
        self.max_wall_time = max_wall_time
        self.divergence_threshold = divergence_threshold
        self.start_time: float | None = None
        self.stop_reason: str | None = None

    def on_initialization(self, state: IterationState) -> None:
        self.start_time = time.time()
        self.stop_reason = None

    def _check(self, state: IterationState) -> bool:
        if self.max_wall_time is not None and self.start_time is not None:
            elapsed = time.time() - self.start_time
            if elapsed > self.max_wall_time:
                self.stop_reason = f"wall time {elapsed:.3f}s exceeded limit {self.max_wall_time:.3f}s"
                logger.warning(f"Watchdog: {self.stop_reason}")
                return False

        norm = state.solution_norm
        if self.divergence_threshold is not None and norm is not None and norm > self.divergence_threshold:
            self.stop_reason = f"solution norm {norm:.2e} > threshold {self.divergence_threshold:.2e}"
            logger.warning(f"Watchdog: {self.stop_reason}")
            return False

        return True

    def on_initial_step_end(self, state: IterationState) -> bool:
        return self._check(state)

    def on_step_begin(self, state: IterationState) -> bool:
        return self._check(state)

    def on_step_end(self, state: IterationState) -> bool:
        return self._check(state)
