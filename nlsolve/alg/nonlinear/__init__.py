"""
Nonlinear matrix solvers: shared iteration control and the Picard strategy.
"""

from .base_nonlinear import NonlinearMatrixSolver
from .convergence import ConvergenceMonitor, ConvergenceState, ParameterChannels
from .picard_solver import PicardSolver

__all__ = [
    "ConvergenceMonitor",
    "ConvergenceState",
    "NonlinearMatrixSolver",
    "ParameterChannels",
    "PicardSolver",
]
