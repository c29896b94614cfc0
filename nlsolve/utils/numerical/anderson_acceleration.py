"""
Anderson Acceleration for Picard iteration.

Anderson acceleration (also known as Anderson mixing) accelerates a
fixed-point iteration by replacing the newest iterate with an affine
combination of the last few iterates, chosen so that the combined
increment is as small as possible in the least-squares sense.

With history ``h_0 .. h_{k-1}`` (oldest first) and increments
``r_i = h_{i+1} - h_i``, the first ``k - 2`` coefficients solve the normal
equations

    M[i, j] = sum (r_n - r_i) (r_n - r_j),   rhs[i] = sum r_n (r_n - r_i),

with ``n = k - 2``, and the last coefficient closes the affine sum. The mixed
vector applies the damping parameter ``beta`` to the increments only.

References:
- Anderson, D. G. (1965). Iterative procedures for nonlinear integral equations.
  Journal of the ACM, 12(4), 547-560.
- Walker, H. F., & Ni, P. (2011). Anderson acceleration for fixed-point iterations.
  SIAM Journal on Numerical Analysis, 49(4), 1715-1735.
"""

from __future__ import annotations

import numbers
from typing import TYPE_CHECKING, Any

import numpy as np

from nlsolve.utils.exceptions import ConfigurationError, SingularMatrixError, validate_parameter_value
from nlsolve.utils.numerical.dense_linalg import solve_dense
from nlsolve.utils.numerical.vector_history import VectorHistory
from nlsolve.utils.solver_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)


def _stacked(history: VectorHistory | NDArray) -> NDArray:
    if isinstance(history, VectorHistory):
        return history.as_array()
    return np.atleast_2d(np.asarray(history))


def calculate_anderson_coefficients(history: VectorHistory | NDArray, regularization: float = 0.0) -> NDArray:
    """
    Compute the affine mixing coefficients for a full history.

    Args:
        history: ``k >= 2`` vectors, oldest first, as a VectorHistory or a
            ``(k, dim)`` array
        regularization: Tikhonov term added to the diagonal of the normal matrix

    Returns:
        ``k - 1`` coefficients summing to one

    Note:
        A singular normal matrix (e.g. collinear increments) falls back to the
        minimum-norm least-squares solution of the same equations.
    """
    H = _stacked(history)
    k = H.shape[0]
    if k < 2:
        raise ValueError(f"Anderson mixing needs at least 2 vectors, got {k}")

    n = k - 2
    if n == 0:
        return np.ones(1, dtype=H.dtype)

    R = np.diff(H, axis=0)
    D = R[n] - R[:n]
    matrix = D @ D.T
    rhs = D @ R[n]
    if regularization > 0:
        matrix = matrix + regularization * np.eye(n)

    try:
        partial = solve_dense(matrix, rhs)
    except SingularMatrixError as e:
        logger.warning(f"Singular Anderson mixing system ({n}x{n}), using least-squares coefficients")
        logger.debug(str(e))
        partial = np.linalg.lstsq(matrix, rhs, rcond=None)[0]

    return np.append(partial, 1.0 - np.sum(partial))


def mix_history(history: VectorHistory | NDArray, coefficients: NDArray, beta: float = 1.0) -> NDArray:
    """
    Combine the history with the given coefficients.

    Computes ``sum_j c_{j-1} h_j - (1 - beta) c_{j-1} (h_j - h_{j-1})`` for
    ``j = 1 .. k-1``.
    """
    H = _stacked(history)
    c = np.asarray(coefficients)
    if c.shape[0] != H.shape[0] - 1:
        raise ValueError(f"Expected {H.shape[0] - 1} coefficients, got {c.shape[0]}")
    mixed = c @ H[1:]
    if beta != 1.0:
        mixed = mixed - (1.0 - beta) * (c @ np.diff(H, axis=0))
    return mixed


class AndersonAccelerator:
    """
    Anderson acceleration state for one Picard solve.

    The accelerator owns a VectorHistory of capacity
    ``num_last_vectors_used``. ``start`` seeds it with the initial iterate;
    every ``update`` pushes a raw iterate and, once the history is full,
    returns the mixed vector instead of the raw one.

    Attributes:
        num_last_vectors_used: History capacity (at least 2)
        beta: Damping parameter in (0, 1] (1 = no damping)
        regularization: Tikhonov regularization of the mixing system (0 = none)
    """

    def __init__(self, num_last_vectors_used: int = 3, beta: float = 1.0, regularization: float = 0.0):
        validate_parameter_value(
            num_last_vectors_used,
            "num_last_vectors_used",
            numbers.Integral,
            (2, float("inf")),
            solver_name="AndersonAccelerator",
        )
        validate_parameter_value(
            regularization, "regularization", numbers.Real, (0, float("inf")), solver_name="AndersonAccelerator"
        )
        if not 0 < beta <= 1:
            raise ConfigurationError(
                parameter_name="beta",
                provided_value=beta,
                valid_range=(0, 1),
                solver_name="AndersonAccelerator",
            )

        self.num_last_vectors_used = int(num_last_vectors_used)
        self.beta = beta
        self.regularization = regularization

        self.history = VectorHistory(self.num_last_vectors_used)
        self.last_coefficients: NDArray | None = None
        self.mix_count = 0

    @property
    def vec_in_memory(self) -> int:
        return len(self.history)

    def start(self, initial_vector: NDArray) -> None:
        """Clear the history and seed it with the initial iterate."""
        self.reset()
        self.history.push(initial_vector)

    def update(self, new_vector: NDArray) -> NDArray:
        """
        Record a raw iterate and return the vector to accept.

        Args:
            new_vector: Raw iterate produced by the last linear solve

        Returns:
            The mixed vector when the history is full, otherwise ``new_vector``
        """
        self.history.push(new_vector)
        if not self.history.is_full():
            return new_vector
        if not np.all(np.isfinite(new_vector)):
            # Leave the non-finite iterate for the convergence check to report
            return new_vector

        self.last_coefficients = self.compute_coefficients()
        self.mix_count += 1
        return self.mix(self.last_coefficients)

    def compute_coefficients(self) -> NDArray:
        return calculate_anderson_coefficients(self.history, self.regularization)

    def mix(self, coefficients: NDArray) -> NDArray:
        return mix_history(self.history, coefficients, self.beta)

    def reset(self):
        """Reset accelerator state (clear history)."""
        self.history.clear()
        self.last_coefficients = None
        self.mix_count = 0

    def get_convergence_info(self) -> dict[str, Any]:
        """Get acceleration statistics."""
        return {
            "mix_count": self.mix_count,
            "vec_in_memory": self.vec_in_memory,
            "num_last_vectors_used": self.num_last_vectors_used,
            "beta": self.beta,
            "last_coefficients": None if self.last_coefficients is None else self.last_coefficients.copy(),
        }


def create_anderson_accelerator(
    num_last_vectors_used: int = 3,
    beta: float = 1.0,
    regularization: float = 0.0,
) -> AndersonAccelerator:
    """
    Create Anderson accelerator with sensible defaults.

    Args:
        num_last_vectors_used: History capacity (default: 3)
        beta: Damping parameter (default: 1.0 = no damping)
        regularization: Tikhonov regularization (default: 0.0 = exact formula)

    Returns:
        Configured AndersonAccelerator instance
    """
    return AndersonAccelerator(
        num_last_vectors_used=num_last_vectors_used,
        beta=beta,
        regularization=regularization,
    )
