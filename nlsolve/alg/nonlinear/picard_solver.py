"""
Picard (fixed-point) strategy for nonlinear matrix solvers.

Each iteration accepts the solution of ``A(x_k) y = b(x_k)`` as the next
iterate, optionally replaced by the Anderson mixture of the last
``num_last_vectors_used`` iterates.

Example:
    >>> problem = AlgebraicProblem(1, np.eye(1), lambda x: 0.5 * x + 5.0)
    >>> solver = PicardSolver(problem)
    >>> result = solver.solve(np.zeros(1), config=PicardConfig(tolerance=1e-6))
    >>> result.converged
    True
"""

from __future__ import annotations

import numbers
from typing import TYPE_CHECKING, Any

import numpy as np

from nlsolve.config.solver_config import PicardConfig
from nlsolve.utils.exceptions import validate_parameter_value
from nlsolve.utils.numerical.anderson_acceleration import create_anderson_accelerator
from nlsolve.utils.solver_logging import get_logger, log_solver_progress

from .base_nonlinear import NonlinearMatrixSolver

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlsolve.core.protocols import DiscreteProblem, LinearMatrixSolver
    from nlsolve.utils.numerical.anderson_acceleration import AndersonAccelerator

    from .convergence import ParameterChannels

logger = get_logger(__name__)


class PicardSolver(NonlinearMatrixSolver):
    """
    Picard iteration with optional Anderson acceleration.

    Args:
        problem: Discrete problem assembling ``A(x)`` and ``b(x)``
        linear_solver: Linear matrix solver (DirectLinearSolver by default)
        config: Default PicardConfig, overridable per ``solve`` call

    Attributes:
        accelerator: AndersonAccelerator of the running solve, None when
            acceleration is disabled or no solve is running
    """

    solver_name = "Picard"
    config_class = PicardConfig

    def __init__(
        self,
        problem: DiscreteProblem,
        linear_solver: LinearMatrixSolver | None = None,
        config: PicardConfig | None = None,
    ):
        super().__init__(problem, linear_solver, config)
        self.accelerator: AndersonAccelerator | None = None
        self._verbose = True

    def _init_strategy(self, config: PicardConfig, initial_vector: NDArray) -> None:
        self._verbose = config.verbose
        anderson = config.anderson
        # History capacity is checked even with acceleration off
        validate_parameter_value(
            anderson.num_last_vectors_used,
            "num_last_vectors_used",
            numbers.Integral,
            (2, float("inf")),
            solver_name=self.solver_name,
        )
        if not anderson.enabled:
            self.accelerator = None
            return

        self.accelerator = create_anderson_accelerator(
            num_last_vectors_used=anderson.num_last_vectors_used,
            beta=anderson.beta,
            regularization=anderson.regularization,
        )
        self.accelerator.start(initial_vector)
        logger.debug(
            f"{self.solver_name}: Anderson acceleration with {anderson.num_last_vectors_used} vectors, "
            f"beta={anderson.beta}"
        )

    def _update_solution(self, raw_vector: NDArray, channels: ParameterChannels) -> None:
        solution_norm = float(np.linalg.norm(raw_vector))
        change_norm = float(np.linalg.norm(self.sln_vector - raw_vector))
        channels.solution_norms.append(solution_norm)
        channels.solution_change_norms.append(change_norm)

        self.sln_vector = raw_vector
        if self.accelerator is not None:
            self.sln_vector = np.asarray(self.accelerator.update(raw_vector))
            channels.vec_in_memory = self.accelerator.vec_in_memory

        log_solver_progress(
            logger, self.solver_name, channels.iteration, change_norm, solution_norm, verbose=self._verbose
        )

    def _strategy_results(self) -> dict[str, Any]:
        if self.accelerator is None:
            return {}
        info = self.accelerator.get_convergence_info()
        return {
            "anderson_coefficients": info["last_coefficients"],
            "metadata": {"anderson_mix_count": info["mix_count"], "vec_in_memory": info["vec_in_memory"]},
        }

    def _deinit_strategy(self) -> None:
        self.accelerator = None
