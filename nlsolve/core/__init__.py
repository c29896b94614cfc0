"""
Core collaborator interfaces and the algebraic reference problem.
"""

from .algebraic_problem import AlgebraicProblem
from .protocols import AssembledSystem, DiscreteProblem, LinearMatrixSolver, LinearSolveResult, ReuseScheme

__all__ = [
    "AlgebraicProblem",
    "AssembledSystem",
    "DiscreteProblem",
    "LinearMatrixSolver",
    "LinearSolveResult",
    "ReuseScheme",
]
