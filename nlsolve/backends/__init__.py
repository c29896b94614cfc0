"""
Linear-solve backends for nlsolve.
"""

from .linear_solvers import DirectLinearSolver, IterativeLinearSolver, create_linear_solver

__all__ = ["DirectLinearSolver", "IterativeLinearSolver", "create_linear_solver"]
