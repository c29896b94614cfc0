"""
Hooks System for nlsolve

This module provides the hooks pattern for observing and stopping solver
runs without subclassing the solver.

Basic Usage:
    from nlsolve.hooks import IterateRecorderHook

    recorder = IterateRecorderHook()
    result = solver.solve(hooks=recorder)

Advanced Usage:
    from nlsolve.hooks import MultiHook, WatchdogHook

    combined = MultiHook(IterateRecorderHook(), WatchdogHook(max_wall_time=10.0))
    result = solver.solve(hooks=combined)
"""

from .base import IterationState, SolverHooks
from .composition import CallbackHook, ConditionalHook, MultiHook
from .control_flow import ConditionalStopHook, WatchdogHook
from .debug import ConvergenceAnalysisHook, IterateRecorderHook

__all__ = [
    "CallbackHook",
    "ConditionalHook",
    "ConditionalStopHook",
    "ConvergenceAnalysisHook",
    "IterateRecorderHook",
    "IterationState",
    "MultiHook",
    "SolverHooks",
    "WatchdogHook",
]
