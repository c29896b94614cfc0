"""
Solver algorithms for nlsolve.
"""

from .nonlinear import ConvergenceState, NonlinearMatrixSolver, PicardSolver

__all__ = ["ConvergenceState", "NonlinearMatrixSolver", "PicardSolver"]
