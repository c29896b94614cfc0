"""
Base class for nonlinear matrix solvers.

``NonlinearMatrixSolver`` owns everything a strategy has in common: the
iteration loop, the convergence state machine, Jacobian reuse, hook calls
and the finalize sequence that runs on every terminal path. A concrete
strategy decides only what to do with the raw iterate produced by each
linear solve.

One iteration:
    1. assemble ``A(x_k)`` (or only ``b(x_k)`` when the matrix is reusable)
    2. record the residual ``||A(x_k) x_k - b(x_k)||``
    3. solve ``A(x_k) y = b(x_k)`` warm-started from ``x_k``
    4. let the strategy turn ``y`` into the accepted iterate ``x_{k+1}``
    5. evaluate the convergence state
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import numpy as np

from nlsolve.backends.linear_solvers import DirectLinearSolver
from nlsolve.config.solver_config import NonlinearSolverConfig
from nlsolve.core.protocols import ReuseScheme
from nlsolve.hooks.base import IterationState, SolverHooks
from nlsolve.utils.exceptions import (
    ConfigurationError,
    DivergenceError,
    InternalStateError,
    LinearSolveError,
    NonlinearSolverError,
    NumericalInstabilityError,
    SolveInProgressError,
    validate_array_dimensions,
)
from nlsolve.utils.solver_logging import (
    LoggedOperation,
    get_logger,
    log_solver_completion,
    log_solver_configuration,
)
from nlsolve.utils.solver_result import NonlinearSolverResult

from .convergence import ConvergenceMonitor, ConvergenceState, ParameterChannels

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from nlsolve.core.protocols import DiscreteProblem, LinearMatrixSolver

logger = get_logger(__name__)


class NonlinearMatrixSolver(ABC):
    """
    Abstract base class for iterative solvers of ``A(x) x = b(x)``.

    Args:
        problem: Discrete problem assembling the linear system at an iterate
        linear_solver: Linear matrix solver (DirectLinearSolver by default)
        config: Default configuration, overridable per ``solve`` call

    Attributes:
        sln_vector: Last accepted iterate; kept after the solve ends, also on failure
        last_result: Result of the most recent solve
        jacobian_reusable: Whether the cached matrix may be reused by the next
            assembly (only honoured with ``constant_jacobian``)
    """

    solver_name = "Nonlinear"
    config_class: type[NonlinearSolverConfig] = NonlinearSolverConfig
    monitor_class: type[ConvergenceMonitor] = ConvergenceMonitor

    def __init__(
        self,
        problem: DiscreteProblem,
        linear_solver: LinearMatrixSolver | None = None,
        config: NonlinearSolverConfig | None = None,
    ):
        self.problem = problem
        self.linear_solver = linear_solver if linear_solver is not None else DirectLinearSolver()
        self.config = self._coerce_config(config) if config is not None else self.config_class()
        self.config_in_use = self.config

        self.sln_vector: NDArray | None = None
        self.last_result: NonlinearSolverResult | None = None
        self.channels: ParameterChannels | None = None
        self.jacobian_reusable = False

        self._matrix: Any = None
        self._solving = False
        self._finalized = True
        self._hooks: SolverHooks = SolverHooks()
        self._monitor: ConvergenceMonitor | None = None
        self._start_time = 0.0
        self._linear_failure_message = ""
        self._matrix_assemblies = 0
        self._matrix_reuses = 0
        self._linear_solve_time = 0.0

    # Strategy interface

    @abstractmethod
    def _init_strategy(self, config: NonlinearSolverConfig, initial_vector: NDArray) -> None:
        """Allocate per-solve strategy state; raise ConfigurationError for bad settings."""

    @abstractmethod
    def _update_solution(self, raw_vector: NDArray, channels: ParameterChannels) -> None:
        """Record norms for ``raw_vector`` and replace ``self.sln_vector`` with the accepted iterate."""

    def _deinit_strategy(self) -> None:
        """Release per-solve strategy state."""

    def _strategy_results(self) -> dict[str, Any]:
        """Extra result fields contributed by the strategy."""
        return {}

    # Public API

    def invalidate_jacobian(self) -> None:
        """Force the next iteration to assemble and factorize the matrix from scratch."""
        self.jacobian_reusable = False
        self._matrix = None

    @property
    def is_solving(self) -> bool:
        return self._solving

    def solve(
        self,
        initial_guess: NDArray | None = None,
        *,
        config: NonlinearSolverConfig | None = None,
        hooks: SolverHooks | None = None,
    ) -> NonlinearSolverResult:
        """
        Iterate from ``initial_guess`` until a terminal convergence state.

        Args:
            initial_guess: Starting iterate, copied; zeros when None
            config: Configuration for this solve (the solver default when None)
            hooks: Observer/abort hooks

        Returns:
            Result of a converged solve, or of a solve stopped by a hook
            (``aborted=True``)

        Raises:
            SolveInProgressError: If this instance is already solving
            ConfigurationError: If the configuration is invalid
            DivergenceError: If max_iterations is reached without convergence
            LinearSolveError: If the linear solver reports failure
            NumericalInstabilityError: If non-finite norms appear

        Note:
            ``result.iterations`` counts completed iterations. A solve stopped
            by ``on_step_begin`` therefore reports one less than the counter
            the hook saw in ``state.iteration``, since that step never ran.
        """
        if self._solving:
            raise SolveInProgressError(solver_name=self.solver_name)
        self._solving = True
        try:
            solve_config = self._coerce_config(config if config is not None else self.config)
            return self._run(initial_guess, solve_config, hooks or SolverHooks())
        finally:
            self._solving = False

    # Iteration control

    def _coerce_config(self, config: Any) -> NonlinearSolverConfig:
        if isinstance(config, self.config_class):
            return config
        if isinstance(config, dict):
            return self.config_class.model_validate(config)
        raise ConfigurationError(
            parameter_name="config",
            provided_value=config,
            expected_type=self.config_class,
            solver_name=self.solver_name,
        )

    def _initial_vector(self, initial_guess: NDArray | None, dim: int) -> NDArray:
        if initial_guess is None:
            return np.zeros(dim, dtype=getattr(self.problem, "dtype", np.float64))
        guess = np.asarray(initial_guess)
        vector = np.array(guess, dtype=np.result_type(guess.dtype, np.float64), copy=True).ravel()
        validate_array_dimensions(vector, (dim,), "initial_guess", solver_name=self.solver_name)
        return vector

    def _snapshot(self, state: ConvergenceState | None = None) -> IterationState:
        return IterationState(
            iteration=self.channels.iteration,
            solution=self.sln_vector,
            channels=self.channels,
            solver_name=self.solver_name,
            convergence_state=state,
        )

    def _run(self, initial_guess, config: NonlinearSolverConfig, hooks: SolverHooks) -> NonlinearSolverResult:
        dim = self.problem.get_num_dofs()
        x0 = self._initial_vector(initial_guess, dim)
        self._init_strategy(config, x0)

        self.config_in_use = config
        self.channels = ParameterChannels()
        self._monitor = self.monitor_class(config)
        self._hooks = hooks
        self._linear_failure_message = ""
        self._matrix_assemblies = 0
        self._matrix_reuses = 0
        self._linear_solve_time = 0.0
        self._finalized = False
        self.sln_vector = x0
        self._start_time = time.time()

        log_solver_configuration(
            logger,
            self.solver_name,
            config.model_dump(),
            problem_info={"num_dofs": dim, "dtype": str(x0.dtype), "linear_solver": self._linear_solver_name},
        )

        try:
            hooks.on_initialization(self._snapshot())

            # Initial step
            self.channels.solution_norms.append(float(np.linalg.norm(x0)))
            self._iterate(config)
            state = self._monitor.evaluate(self.channels)
            if state is not ConvergenceState.NOT_CONVERGED:
                return self._handle_convergence_state(state, config)
            if hooks.on_initial_step_end(self._snapshot(state)) is False:
                return self._abort("on_initial_step_end", self.channels.iteration, state)
            self.channels.iteration += 1

            # Main loop
            while True:
                if hooks.on_step_begin(self._snapshot(state)) is False:
                    return self._abort("on_step_begin", self.channels.iteration - 1, state)
                self._iterate(config)
                state = self._monitor.evaluate(self.channels)
                if state is not ConvergenceState.NOT_CONVERGED:
                    return self._handle_convergence_state(state, config)
                if hooks.on_step_end(self._snapshot(state)) is False:
                    return self._abort("on_step_end", self.channels.iteration, state)
                self.channels.iteration += 1
        except Exception as e:
            if not self._finalized:
                result = self._finalize(ConvergenceState.ERROR, self.channels.iteration)
                if isinstance(e, NonlinearSolverError) and e.result is None:
                    e.result = result
            raise

    def _iterate(self, config: NonlinearSolverConfig) -> None:
        """One assemble / linear solve / update cycle."""
        channels = self.channels

        if getattr(self.problem, "structure_changed", False):
            self.jacobian_reusable = False
        reuse = self.jacobian_reusable and config.constant_jacobian and self._matrix is not None

        assembled = self.problem.assemble(self.sln_vector, rhs_only=reuse)
        if reuse:
            matrix = self._matrix
            reuse_scheme = ReuseScheme.REUSE_FACTORIZATION_COMPLETELY
            self._matrix_reuses += 1
        else:
            matrix = assembled.matrix
            self._matrix = matrix
            reuse_scheme = ReuseScheme.CREATE_STRUCTURE_FROM_SCRATCH
            self._matrix_assemblies += 1
            if hasattr(self.problem, "structure_changed"):
                self.problem.structure_changed = False
            self.jacobian_reusable = True

        rhs = np.asarray(assembled.rhs).ravel()
        residual = np.asarray(matrix @ self.sln_vector).ravel() - rhs
        channels.residual_norms.append(float(np.linalg.norm(residual)))

        with LoggedOperation(
            logger, f"{self.solver_name}: linear solve ({self._linear_solver_name})", logging.DEBUG
        ) as operation:
            outcome = self.linear_solver.solve(matrix, rhs, self.sln_vector.copy(), reuse_scheme)
        self._linear_solve_time += operation.duration
        if not outcome.success:
            channels.linear_solve_failed = True
            self._linear_failure_message = outcome.message
            logger.debug(f"{self.solver_name}: linear solve failed in iteration {channels.iteration}: {outcome.message}")
            return

        raw = np.asarray(outcome.solution).ravel()
        validate_array_dimensions(
            raw,
            self.sln_vector.shape,
            "linear solve output",
            solver_name=self.solver_name,
            context=f"iteration {channels.iteration}",
        )
        self._update_solution(raw, channels)

    def _handle_convergence_state(
        self, state: ConvergenceState, config: NonlinearSolverConfig
    ) -> NonlinearSolverResult:
        channels = self.channels

        if state is ConvergenceState.CONVERGED:
            result = self._finalize(state, channels.iteration)
            logger.info(f"{self.solver_name}: done")
            return result

        if state is ConvergenceState.ABOVE_MAX_ITERATIONS:
            result = self._finalize(state, channels.iteration)
            final_error = self._monitor.criterion_value(channels)
            error = DivergenceError(
                iterations_used=channels.iteration,
                max_iterations=config.max_iterations,
                final_error=float("inf") if final_error is None else final_error,
                tolerance=config.tolerance,
                solver_name=self.solver_name,
                convergence_history=list(channels.solution_change_norms),
            )
            error.result = result
            raise error

        if state is ConvergenceState.ERROR:
            result = self._finalize(state, channels.iteration)
            if channels.linear_solve_failed:
                error = LinearSolveError(
                    iteration=channels.iteration,
                    reason=self._linear_failure_message or None,
                    solver_name=self.solver_name,
                    linear_solver_name=self._linear_solver_name,
                )
            else:
                error = NumericalInstabilityError(
                    instability_type="non-finite norms",
                    iteration_number=channels.iteration,
                    problematic_values={
                        "solution_norm": channels.solution_norms[-1] if channels.solution_norms else None,
                        "solution_change_norm": (
                            channels.solution_change_norms[-1] if channels.solution_change_norms else None
                        ),
                        "residual_norm": channels.residual_norms[-1] if channels.residual_norms else None,
                    },
                    solver_name=self.solver_name,
                )
            error.result = result
            raise error

        result = self._finalize(ConvergenceState.ERROR, channels.iteration)
        error = InternalStateError(state, solver_name=self.solver_name)
        error.result = result
        raise error

    def _abort(self, hook_point: str, iterations: int, state: ConvergenceState) -> NonlinearSolverResult:
        logger.info(f"{self.solver_name}: aborted by {hook_point} hook after {iterations} iterations")
        return self._finalize(state, iterations, aborted=True, hook_point=hook_point)

    def _finalize(
        self,
        state: ConvergenceState,
        iterations: int,
        aborted: bool = False,
        hook_point: str | None = None,
    ) -> NonlinearSolverResult:
        """Stop the timer, build the result, notify hooks and release per-solve state."""
        self._finalized = True
        execution_time = time.time() - self._start_time
        channels = self.channels

        metadata: dict[str, Any] = {
            "tolerance": self.config_in_use.tolerance,
            "tolerance_type": self.config_in_use.tolerance_type.value,
            "linear_solver": self._linear_solver_name,
            "matrix_assemblies": self._matrix_assemblies,
            "matrix_reuses": self._matrix_reuses,
            "linear_solve_time": self._linear_solve_time,
        }
        if hook_point is not None:
            metadata["aborted_by"] = hook_point
        if self._linear_failure_message:
            metadata["linear_solve_message"] = self._linear_failure_message
        extra = self._strategy_results()
        metadata.update(extra.pop("metadata", {}))

        result = NonlinearSolverResult(
            solution=self.sln_vector.copy(),
            iterations=iterations,
            converged=state is ConvergenceState.CONVERGED,
            state=state,
            aborted=aborted,
            solution_norms=list(channels.solution_norms),
            solution_change_norms=list(channels.solution_change_norms),
            residual_norms=list(channels.residual_norms),
            solver_name=self.solver_name,
            execution_time=execution_time,
            metadata=metadata,
            **extra,
        )
        self.last_result = result

        log_solver_completion(
            logger,
            self.solver_name,
            iterations,
            result.final_change_norm,
            execution_time,
            "ABORTED" if aborted else state.name,
        )

        try:
            self._hooks.on_finish(result)
        finally:
            self._deinit_strategy()
        return result

    @property
    def _linear_solver_name(self) -> str:
        return getattr(self.linear_solver, "name", type(self.linear_solver).__name__)
