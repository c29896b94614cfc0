"""
Numerical utilities for nlsolve.

Submodules:
- dense_linalg: LU factorization and solves for small dense systems
- vector_history: Fixed-capacity ring buffer of solution vectors
- anderson_acceleration: Anderson mixing of the last iterates
"""

from nlsolve.utils.numerical.anderson_acceleration import (
    AndersonAccelerator,
    calculate_anderson_coefficients,
    create_anderson_accelerator,
    mix_history,
)
from nlsolve.utils.numerical.dense_linalg import lu_factorize, lu_solve, solve_dense
from nlsolve.utils.numerical.vector_history import VectorHistory

__all__ = [
    "AndersonAccelerator",
    "VectorHistory",
    "calculate_anderson_coefficients",
    "create_anderson_accelerator",
    "lu_factorize",
    "lu_solve",
    "mix_history",
    "solve_dense",
]
