"""
Algebraic discrete problem.

A ready-made ``DiscreteProblem`` for systems given directly as matrices and
vectors, or as callables of the current iterate for ``A(x) x = b(x)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
import scipy.sparse as sp

from nlsolve.utils.exceptions import DimensionMismatchError

from .protocols import AssembledSystem

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import NDArray


class AlgebraicProblem:
    """
    Discrete problem defined by a matrix and right-hand side.

    Args:
        num_dofs: Problem dimension
        matrix: Dense array, scipy.sparse matrix, or callable ``x -> matrix``
        rhs: Vector or callable ``x -> vector``
        dtype: Scalar type of the right-hand side

    Example:
        >>> # x = 0.5 x + 5 written as (1) x = 0.5 x + 5
        >>> problem = AlgebraicProblem(1, np.eye(1), lambda x: 0.5 * x + 5.0)
    """

    def __init__(
        self,
        num_dofs: int,
        matrix: NDArray | sp.spmatrix | Callable[[NDArray], Any],
        rhs: NDArray | Callable[[NDArray], NDArray],
        dtype=np.float64,
    ):
        if num_dofs < 1:
            raise ValueError(f"num_dofs must be >= 1, got {num_dofs}")
        self.num_dofs = int(num_dofs)
        self.dtype = np.dtype(dtype)
        self._matrix = matrix
        self._rhs = rhs
        self.structure_changed = True
        self.matrix_assemblies = 0
        self.rhs_assemblies = 0

    def get_num_dofs(self) -> int:
        return self.num_dofs

    def set_matrix(self, matrix) -> None:
        """Replace the matrix; the next assembly starts from scratch."""
        self._matrix = matrix
        self.structure_changed = True

    def set_rhs(self, rhs) -> None:
        self._rhs = rhs

    def _evaluate_matrix(self, coeff_vec: NDArray):
        matrix = self._matrix(coeff_vec) if callable(self._matrix) else self._matrix
        if not sp.issparse(matrix):
            matrix = np.atleast_2d(np.asarray(matrix))
        if matrix.shape != (self.num_dofs, self.num_dofs):
            raise DimensionMismatchError(
                array_name="matrix",
                provided_shape=matrix.shape,
                expected_shape=(self.num_dofs, self.num_dofs),
                solver_name=type(self).__name__,
            )
        return matrix

    def _evaluate_rhs(self, coeff_vec: NDArray) -> NDArray:
        rhs = self._rhs(coeff_vec) if callable(self._rhs) else self._rhs
        rhs = np.array(rhs, dtype=np.result_type(self.dtype, np.asarray(rhs).dtype), copy=True).ravel()
        if rhs.shape != (self.num_dofs,):
            raise DimensionMismatchError(
                array_name="rhs",
                provided_shape=rhs.shape,
                expected_shape=(self.num_dofs,),
                solver_name=type(self).__name__,
            )
        return rhs

    def assemble(self, coeff_vec: NDArray, rhs_only: bool = False) -> AssembledSystem:
        rhs = self._evaluate_rhs(coeff_vec)
        self.rhs_assemblies += 1
        if rhs_only:
            return AssembledSystem(matrix=None, rhs=rhs)
        matrix = self._evaluate_matrix(coeff_vec)
        self.matrix_assemblies += 1
        return AssembledSystem(matrix=matrix, rhs=rhs)

    def __repr__(self) -> str:
        return f"AlgebraicProblem(num_dofs={self.num_dofs}, dtype={self.dtype})"
