"""
Small dense linear solves via LU factorization with partial pivoting.

Used for the Anderson mixing system, whose size is the history length, so
everything here works on plain dense ``numpy`` arrays through
``scipy.linalg``. Singular systems are reported as ``SingularMatrixError``
instead of silently producing inf/NaN.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING

import numpy as np
import scipy.linalg

from nlsolve.utils.exceptions import DimensionMismatchError, SingularMatrixError

if TYPE_CHECKING:
    from numpy.typing import NDArray

LUFactorization = tuple["NDArray", "NDArray"]


def _first_singular_pivot(lu: NDArray, scale: float) -> int | None:
    """Index of the first pivot that is zero relative to the matrix scale."""
    n = lu.shape[0]
    diag = np.abs(np.diag(lu))
    threshold = np.finfo(lu.dtype).eps * n * scale
    small = np.flatnonzero(~(diag > threshold))
    return int(small[0]) if small.size else None


def lu_factorize(matrix: NDArray) -> LUFactorization:
    """
    Factorize a square matrix as P A = L U.

    Args:
        matrix: Square (n, n) array, real or complex

    Returns:
        ``(lu, piv)`` in the packed form of ``scipy.linalg.lu_factor``

    Raises:
        DimensionMismatchError: If the matrix is not square
        SingularMatrixError: If a pivot vanishes (relative to machine precision)
    """
    a = np.atleast_2d(np.asarray(matrix))
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise DimensionMismatchError(
            array_name="matrix",
            provided_shape=a.shape,
            expected_shape=(a.shape[0], a.shape[0]),
            solver_name="DenseLU",
            context="LU factorization needs a square matrix",
        )

    n = a.shape[0]
    scale = float(np.max(np.abs(a))) if a.size else 0.0
    if not np.isfinite(scale):
        raise SingularMatrixError(matrix_size=n)

    # scipy only warns on exactly zero pivots; the check below covers those too
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", scipy.linalg.LinAlgWarning)
        lu, piv = scipy.linalg.lu_factor(a, check_finite=False)

    pivot = _first_singular_pivot(lu, scale)
    if pivot is not None:
        raise SingularMatrixError(matrix_size=n, pivot_index=pivot)

    return lu, piv


def lu_solve(factorization: LUFactorization, rhs: NDArray) -> NDArray:
    """
    Solve A x = rhs given the factorization from ``lu_factorize``.

    Args:
        factorization: ``(lu, piv)`` pair
        rhs: Right-hand side of length n

    Returns:
        Solution vector x
    """
    lu, _ = factorization
    b = np.asarray(rhs)
    if b.shape[0] != lu.shape[0]:
        raise DimensionMismatchError(
            array_name="rhs",
            provided_shape=b.shape,
            expected_shape=(lu.shape[0],),
            solver_name="DenseLU",
        )
    return scipy.linalg.lu_solve(factorization, b, check_finite=False)


def solve_dense(matrix: NDArray, rhs: NDArray) -> NDArray:
    """Factorize and solve in one call."""
    return lu_solve(lu_factorize(matrix), rhs)
