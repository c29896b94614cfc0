"""
Linear matrix solvers.

Reference implementations of the ``LinearMatrixSolver`` protocol on top of
scipy:
- DirectLinearSolver: sparse LU (SuperLU) or dense LU, with the
  factorization cached between calls
- IterativeLinearSolver: GMRES, BiCGSTAB or CG warm-started from the
  current iterate

Failures are reported through ``LinearSolveResult(success=False)``; the
nonlinear solver decides what that means for the iteration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from nlsolve.core.protocols import LinearSolveResult, ReuseScheme
from nlsolve.utils.exceptions import SingularMatrixError
from nlsolve.utils.numerical.dense_linalg import lu_factorize, lu_solve
from nlsolve.utils.solver_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)


class DirectLinearSolver:
    """
    Direct solver with factorization reuse.

    A new factorization is computed when asked to create the structure from
    scratch or when nothing is cached yet; under
    ``ReuseScheme.REUSE_FACTORIZATION_COMPLETELY`` the cached factors are
    applied to the new right-hand side.

    Example:
        >>> solver = DirectLinearSolver()
        >>> result = solver.solve(A, b)
        >>> result = solver.solve(A, b2, reuse_scheme=ReuseScheme.REUSE_FACTORIZATION_COMPLETELY)
        >>> solver.factorization_count
        1
    """

    name = "direct"

    def __init__(self):
        self._factorization: Any = None
        self._is_sparse = False
        self._factor_dtype = np.dtype(np.float64)
        self._shape: tuple[int, int] | None = None
        self.factorization_count = 0
        self.solve_count = 0

    def reset(self) -> None:
        """Forget the cached factorization."""
        self._factorization = None
        self._shape = None

    @property
    def has_factorization(self) -> bool:
        return self._factorization is not None

    def _factorize(self, matrix) -> None:
        self._factorization = None
        if sp.issparse(matrix):
            csc = sp.csc_matrix(matrix)
            self._factorization = spla.splu(csc)
            self._factor_dtype = csc.dtype
            self._is_sparse = True
        else:
            self._factorization = lu_factorize(np.asarray(matrix))
            self._is_sparse = False
        self._shape = matrix.shape
        self.factorization_count += 1

    def _apply(self, rhs: NDArray) -> NDArray:
        if not self._is_sparse:
            return lu_solve(self._factorization, rhs)
        lu = self._factorization
        if np.iscomplexobj(rhs) and not np.issubdtype(self._factor_dtype, np.complexfloating):
            return lu.solve(np.ascontiguousarray(rhs.real)) + 1j * lu.solve(np.ascontiguousarray(rhs.imag))
        return lu.solve(np.asarray(rhs, dtype=np.result_type(self._factor_dtype, rhs.dtype)))

    def solve(
        self,
        matrix: Any,
        rhs: NDArray,
        initial_guess: NDArray | None = None,
        reuse_scheme: ReuseScheme = ReuseScheme.CREATE_STRUCTURE_FROM_SCRATCH,
    ) -> LinearSolveResult:
        reuse = (
            reuse_scheme is ReuseScheme.REUSE_FACTORIZATION_COMPLETELY
            and self._factorization is not None
            and (matrix is None or matrix.shape == self._shape)
        )
        try:
            if not reuse:
                if matrix is None:
                    return LinearSolveResult(success=False, message="no matrix given and no factorization cached")
                self._factorize(matrix)
            solution = self._apply(np.asarray(rhs))
        except (RuntimeError, SingularMatrixError) as e:
            # splu raises RuntimeError("Factor is exactly singular")
            self.reset()
            logger.debug(f"Direct solve failed: {e}")
            return LinearSolveResult(success=False, message=str(e).splitlines()[0])

        self.solve_count += 1
        if not np.all(np.isfinite(solution)):
            return LinearSolveResult(success=False, solution=solution, message="non-finite solution")
        return LinearSolveResult(success=True, solution=solution)


class IterativeLinearSolver:
    """
    Krylov solver from scipy.sparse.linalg.

    Args:
        method: "gmres", "bicgstab" or "cg"
        rtol: Relative tolerance of the Krylov iteration
        atol: Absolute tolerance of the Krylov iteration
        maxiter: Iteration cap (scipy default when None)
    """

    name = "iterative"

    def __init__(
        self,
        method: Literal["gmres", "bicgstab", "cg"] = "gmres",
        rtol: float = 1e-10,
        atol: float = 0.0,
        maxiter: int | None = None,
    ):
        if method not in ("gmres", "bicgstab", "cg"):
            raise ValueError(f"Unknown solver method: {method}")
        self.method = method
        self.rtol = rtol
        self.atol = atol
        self.maxiter = maxiter
        self._last_matrix: Any = None
        self.solve_count = 0

    def solve(
        self,
        matrix: Any,
        rhs: NDArray,
        initial_guess: NDArray | None = None,
        reuse_scheme: ReuseScheme = ReuseScheme.CREATE_STRUCTURE_FROM_SCRATCH,
    ) -> LinearSolveResult:
        if matrix is None:
            matrix = self._last_matrix
        if matrix is None:
            return LinearSolveResult(success=False, message="no matrix given")
        self._last_matrix = matrix

        krylov = {"gmres": spla.gmres, "bicgstab": spla.bicgstab, "cg": spla.cg}[self.method]
        x, info = krylov(matrix, rhs, x0=initial_guess, rtol=self.rtol, atol=self.atol, maxiter=self.maxiter)
        self.solve_count += 1

        if info > 0:
            return LinearSolveResult(
                success=False, solution=x, message=f"{self.method} did not converge in {info} iterations"
            )
        if info < 0:
            return LinearSolveResult(success=False, solution=x, message=f"{self.method} breakdown (info={info})")
        return LinearSolveResult(success=True, solution=x)


def create_linear_solver(kind: str = "direct", **kwargs) -> DirectLinearSolver | IterativeLinearSolver:
    """
    Create a linear solver by name.

    Args:
        kind: "direct", or one of the Krylov methods "gmres", "bicgstab", "cg"
        **kwargs: Passed to the solver constructor

    Returns:
        Linear solver instance
    """
    if kind == "direct":
        return DirectLinearSolver(**kwargs)
    if kind in ("gmres", "bicgstab", "cg"):
        return IterativeLinearSolver(method=kind, **kwargs)
    raise ValueError(f"Unknown linear solver kind: {kind!r}")
