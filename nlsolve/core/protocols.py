"""
Collaborator Protocols for nlsolve

The nonlinear solver never assembles or factorizes anything itself. It talks
to a discrete problem (which assembles ``A(x)`` and ``b(x)``) and to a linear
matrix solver (which solves ``A y = b``). These protocols use duck typing -
any object that implements these methods will work, regardless of
inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from numpy.typing import NDArray


class ReuseScheme(Enum):
    """How much of a previous factorization the linear solver may keep."""

    CREATE_STRUCTURE_FROM_SCRATCH = "create_structure_from_scratch"
    REUSE_FACTORIZATION_COMPLETELY = "reuse_factorization_completely"


@dataclass
class AssembledSystem:
    """
    Output of one assembly.

    ``matrix`` is None when only the right-hand side was requested.
    """

    matrix: Any
    rhs: NDArray


@dataclass
class LinearSolveResult:
    """Outcome of one linear solve; ``solution`` is None on failure."""

    success: bool
    solution: NDArray | None = None
    message: str = ""


@runtime_checkable
class DiscreteProblem(Protocol):
    """
    Protocol for the discretization collaborator.

    ``structure_changed`` is read before every assembly: True forces a full
    matrix assembly. The solver resets it to False after such an assembly.
    """

    structure_changed: bool

    def get_num_dofs(self) -> int:
        """Problem dimension."""
        ...

    def assemble(self, coeff_vec: NDArray, rhs_only: bool = False) -> AssembledSystem:
        """
        Assemble the linear system at the iterate ``coeff_vec``.

        Args:
            coeff_vec: Current iterate
            rhs_only: Skip the matrix and return ``matrix=None``

        Returns:
            Assembled matrix (dense or scipy.sparse) and right-hand side
        """
        ...


@runtime_checkable
class LinearMatrixSolver(Protocol):
    """Protocol for the linear-solve collaborator."""

    def solve(
        self,
        matrix: Any,
        rhs: NDArray,
        initial_guess: NDArray | None = None,
        reuse_scheme: ReuseScheme = ReuseScheme.CREATE_STRUCTURE_FROM_SCRATCH,
    ) -> LinearSolveResult:
        """
        Solve ``matrix @ y = rhs``.

        Under ``REUSE_FACTORIZATION_COMPLETELY`` the solver may skip
        refactorizing and use what it cached from an earlier call.
        """
        ...
