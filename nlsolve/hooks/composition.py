"""
Hook Composition System

Utilities for combining hooks and adapting plain callables into hooks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import SolverHooks

if TYPE_CHECKING:
    from collections.abc import Callable

    from nlsolve.utils.solver_result import NonlinearSolverResult

    from .base import IterationState


class MultiHook(SolverHooks):
    """
    Compose multiple hooks into one.

    Every hook runs on every call; the solve continues only if all of them
    agree.

    Example:
        combined = MultiHook(IterateRecorderHook(), WatchdogHook(max_wall_time=60.0))
        result = solver.solve(hooks=combined)
    """

    def __init__(self, *hooks: SolverHooks):
        self.hooks = list(hooks)

    def add_hook(self, hook: SolverHooks) -> None:
        """Add a hook to the composition."""
        self.hooks.append(hook)

    def remove_hook(self, hook: SolverHooks) -> bool:
        """Remove a hook from the composition. Returns True if found and removed."""
        try:
            self.hooks.remove(hook)
            return True
        except ValueError:
            return False

    def on_initialization(self, state: IterationState) -> None:
        for hook in self.hooks:
            hook.on_initialization(state)

    def on_initial_step_end(self, state: IterationState) -> bool:
        results = [hook.on_initial_step_end(state) for hook in self.hooks]
        return all(r is not False for r in results)

    def on_step_begin(self, state: IterationState) -> bool:
        results = [hook.on_step_begin(state) for hook in self.hooks]
        return all(r is not False for r in results)

    def on_step_end(self, state: IterationState) -> bool:
        results = [hook.on_step_end(state) for hook in self.hooks]
        return all(r is not False for r in results)

    def on_finish(self, result: NonlinearSolverResult) -> None:
        for hook in self.hooks:
            hook.on_finish(result)


class ConditionalHook(SolverHooks):
    """
    Execute hook only when condition is met.

    ``on_finish`` always runs.

    Example:
        # Only record every 10th iteration
        every_10th = ConditionalHook(IterateRecorderHook(), lambda state: state.iteration % 10 == 0)
    """

    def __init__(self, hook: SolverHooks, condition: Callable[[IterationState], bool]):
        self.hook = hook
        self.condition = condition

    def on_initialization(self, state: IterationState) -> None:
        if self.condition(state):
            self.hook.on_initialization(state)

    def on_initial_step_end(self, state: IterationState) -> bool:
        if self.condition(state):
            return self.hook.on_initial_step_end(state)
        return True

    def on_step_begin(self, state: IterationState) -> bool:
        if self.condition(state):
            return self.hook.on_step_begin(state)
        return True

    def on_step_end(self, state: IterationState) -> bool:
        if self.condition(state):
            return self.hook.on_step_end(state)
        return True

    def on_finish(self, result: NonlinearSolverResult) -> None:
        self.hook.on_finish(result)


class CallbackHook(SolverHooks):
    """
    Hook built from plain callables.

    Step callbacks may return None, which counts as "continue".

    Example:
        norms = []
        hook = CallbackHook(on_step_end=lambda state: norms.append(state.change_norm))
    """

    def __init__(
        self,
        on_initialization: Callable[[IterationState], None] | None = None,
        on_initial_step_end: Callable[[IterationState], bool | None] | None = None,
        on_step_begin: Callable[[IterationState], bool | None] | None = None,
        on_step_end: Callable[[IterationState], bool | None] | None = None,
        on_finish: Callable[[NonlinearSolverResult], None] | None = None,
    ):
        self._on_initialization = on_initialization
        self._on_initial_step_end = on_initial_step_end
        self._on_step_begin = on_step_begin
        self._on_step_end = on_step_end
        self._on_finish = on_finish

    @staticmethod
    def _proceed(callback, state) -> bool:
        if callback is None:
            return True
        return callback(state) is not False

    def on_initialization(self, state: IterationState) -> None:
        if self._on_initialization is not None:
            self._on_initialization(state)

    def on_initial_step_end(self, state: IterationState) -> bool:
        return self._proceed(self._on_initial_step_end, state)

    def on_step_begin(self, state: IterationState) -> bool:
        return self._proceed(self._on_step_begin, state)

    def on_step_end(self, state: IterationState) -> bool:
        return self._proceed(self._on_step_end, state)

    def on_finish(self, result: NonlinearSolverResult) -> None:
        if self._on_finish is not None:
            self._on_finish(result)
