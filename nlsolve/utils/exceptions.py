"""
Exception classes for nlsolve with helpful error messages and user guidance.

Every failure of a nonlinear solve surfaces as a subclass of
``NonlinearSolverError`` carrying the solver name, a suggested action, an
error code and diagnostic data. Exceptions raised after a solve has been
finalized also carry the partial result in ``error.result``.
"""

from __future__ import annotations

import numbers
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from .solver_result import NonlinearSolverResult


class NonlinearSolverError(Exception):
    """
    Base exception for nonlinear solver errors with helpful context and suggestions.

    This exception class provides structured error information including:
    - Clear error description
    - Solver context information
    - Suggested actions for resolution
    - Optional diagnostic data
    """

    def __init__(
        self,
        message: str,
        solver_name: str | None = None,
        suggested_action: str | None = None,
        error_code: str | None = None,
        diagnostic_data: dict[str, Any] | None = None,
    ):
        self.solver_name = solver_name or "Unknown Solver"
        self.suggested_action = suggested_action
        self.error_code = error_code
        self.diagnostic_data = diagnostic_data or {}
        self.result: NonlinearSolverResult | None = None

        full_message = f"[{self.solver_name}] {message}"

        if self.suggested_action:
            full_message += f"\nSuggestion: {self.suggested_action}"

        if self.error_code:
            full_message += f"\nError Code: {self.error_code}"

        if self.diagnostic_data:
            full_message += "\nDiagnostic Information:"
            for key, value in self.diagnostic_data.items():
                full_message += f"\n   - {key}: {value}"

        super().__init__(full_message)


class DivergenceError(NonlinearSolverError):
    """Exception raised when the iteration cap is exceeded without convergence."""

    def __init__(
        self,
        iterations_used: int,
        max_iterations: int,
        final_error: float,
        tolerance: float,
        solver_name: str | None = None,
        convergence_history: list[float] | None = None,
    ):
        self.iterations_used = iterations_used
        self.max_iterations = max_iterations

        diagnostic_data = {
            "iterations_used": iterations_used,
            "max_iterations": max_iterations,
            "final_error": f"{final_error:.2e}",
            "required_tolerance": f"{tolerance:.2e}",
            "error_ratio": f"{final_error / tolerance:.1f}x too large",
        }

        if convergence_history:
            diagnostic_data["convergence_trend"] = _analyze_convergence_trend(convergence_history)

        suggested_action = _generate_convergence_suggestions(
            final_error, tolerance, iterations_used, max_iterations, convergence_history
        )

        message = f"Failed to converge after {iterations_used} iterations"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=suggested_action,
            error_code="ABOVE_MAX_ITERATIONS",
            diagnostic_data=diagnostic_data,
        )


class ConfigurationError(NonlinearSolverError):
    """Exception raised when solver configuration is invalid."""

    def __init__(
        self,
        parameter_name: str,
        provided_value: Any,
        expected_type: type | None = None,
        valid_range: tuple | None = None,
        solver_name: str | None = None,
    ):
        self.parameter_name = parameter_name
        self.provided_value = provided_value

        diagnostic_data = {
            "parameter": parameter_name,
            "provided_value": str(provided_value),
            "provided_type": type(provided_value).__name__,
        }

        if expected_type:
            diagnostic_data["expected_type"] = expected_type.__name__

        if valid_range:
            diagnostic_data["valid_range"] = f"[{valid_range[0]}, {valid_range[1]}]"

        suggested_action = _generate_configuration_suggestions(
            parameter_name, provided_value, expected_type, valid_range
        )

        message = f"Invalid configuration for parameter '{parameter_name}'"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=suggested_action,
            error_code="INVALID_CONFIGURATION",
            diagnostic_data=diagnostic_data,
        )


class LinearSolveError(NonlinearSolverError):
    """Exception raised when the linear-solve service reports a failure."""

    def __init__(
        self,
        iteration: int,
        reason: str | None = None,
        solver_name: str | None = None,
        linear_solver_name: str | None = None,
    ):
        self.iteration = iteration
        self.reason = reason

        diagnostic_data: dict[str, Any] = {"iteration": iteration}
        if linear_solver_name:
            diagnostic_data["linear_solver"] = linear_solver_name
        if reason:
            diagnostic_data["reason"] = reason

        super().__init__(
            message=f"Linear solve failed in iteration {iteration}",
            solver_name=solver_name,
            suggested_action=(
                "Check that the assembled matrix is nonsingular, or switch to a direct linear solver"
            ),
            error_code="LINEAR_SOLVE_FAILURE",
            diagnostic_data=diagnostic_data,
        )


class InternalStateError(NonlinearSolverError):
    """Exception raised for a convergence state the iteration controller does not know."""

    def __init__(self, state: Any, solver_name: str | None = None):
        self.state = state
        super().__init__(
            message=f"Unknown convergence state: {state!r}",
            solver_name=solver_name,
            suggested_action="This indicates a bug in the solver; please report it",
            error_code="INTERNAL_STATE",
            diagnostic_data={"state": repr(state)},
        )


class SolveInProgressError(NonlinearSolverError):
    """Exception raised when solve() is re-entered on a solver that is already solving."""

    def __init__(self, solver_name: str | None = None):
        super().__init__(
            message="solve() called while another solve is in progress on this instance",
            solver_name=solver_name,
            suggested_action="Use one solver instance per concurrent solve",
            error_code="SOLVE_IN_PROGRESS",
        )


class DimensionMismatchError(NonlinearSolverError):
    """Exception raised when array dimensions don't match expected values."""

    def __init__(
        self,
        array_name: str,
        provided_shape: tuple,
        expected_shape: tuple,
        solver_name: str | None = None,
        context: str | None = None,
    ):
        diagnostic_data = {
            "array_name": array_name,
            "provided_shape": str(provided_shape),
            "expected_shape": str(expected_shape),
            "dimension_mismatch": _describe_dimension_mismatch(provided_shape, expected_shape),
        }

        if context:
            diagnostic_data["context"] = context

        message = f"Dimension mismatch for {array_name}"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=f"Reshape {array_name} to {expected_shape}",
            error_code="DIMENSION_MISMATCH",
            diagnostic_data=diagnostic_data,
        )


class NumericalInstabilityError(NonlinearSolverError):
    """Exception raised when numerical instability is detected."""

    def __init__(
        self,
        instability_type: str,
        iteration_number: int | None = None,
        problematic_values: dict[str, Any] | None = None,
        solver_name: str | None = None,
    ):
        diagnostic_data: dict[str, Any] = {"instability_type": instability_type}

        if iteration_number is not None:
            diagnostic_data["iteration"] = iteration_number

        if problematic_values:
            diagnostic_data.update(problematic_values)

        suggested_action = _generate_stability_suggestions(instability_type)

        message = f"Numerical instability detected: {instability_type}"

        super().__init__(
            message=message,
            solver_name=solver_name,
            suggested_action=suggested_action,
            error_code="NUMERICAL_INSTABILITY",
            diagnostic_data=diagnostic_data,
        )


class SingularMatrixError(NumericalInstabilityError):
    """Exception raised when a dense LU factorization meets a singular matrix."""

    def __init__(self, matrix_size: int, pivot_index: int | None = None, solver_name: str | None = None):
        self.matrix_size = matrix_size
        self.pivot_index = pivot_index
        values: dict[str, Any] = {"matrix_size": matrix_size}
        if pivot_index is not None:
            values["pivot_index"] = pivot_index
        super().__init__(
            instability_type="singular matrix",
            problematic_values=values,
            solver_name=solver_name or "DenseLU",
        )


# Helper functions for generating specific suggestions


def _analyze_convergence_trend(history: list[float]) -> str:
    """Analyze convergence history to determine trend."""
    if len(history) < 3:
        return "insufficient_data"

    recent = history[-3:]

    if recent[-1] < recent[-2] < recent[-3]:
        return "converging_slowly"
    elif recent[-1] > recent[-2] * 1.1:
        return "diverging"
    elif min(recent) > 0 and max(recent) / min(recent) < 1.1:
        return "stagnating"
    else:
        return "oscillating"


def _generate_convergence_suggestions(
    final_error: float,
    tolerance: float,
    iterations_used: int,
    max_iterations: int,
    history: list[float] | None = None,
) -> str:
    """Generate specific suggestions for convergence issues."""

    error_ratio = final_error / tolerance

    if error_ratio < 2:
        return "Increase max_iterations slightly - very close to convergence"
    elif error_ratio < 10:
        return "Try: 1) Increase max_iterations, 2) Relax tolerance slightly, or 3) Improve initial guess"
    else:
        base_suggestion = "Large error suggests: 1) Check that the fixed-point map is contracting, 2) Improve the initial guess"

        if history and len(history) > 3:
            trend = _analyze_convergence_trend(history)
            if trend == "diverging":
                return base_suggestion + ", 3) Enable Anderson acceleration or reduce beta"
            elif trend == "oscillating":
                return base_suggestion + ", 3) Enable Anderson acceleration with a longer history"

        return base_suggestion


def _generate_configuration_suggestions(
    parameter_name: str,
    provided_value: Any,
    expected_type: type | None,
    valid_range: tuple | None,
) -> str:
    """Generate specific suggestions for configuration errors."""

    suggestions = []

    if expected_type and not isinstance(provided_value, expected_type):
        suggestions.append(f"Convert {parameter_name} to {expected_type.__name__}")

    if valid_range and isinstance(provided_value, (int, float)):
        if provided_value < valid_range[0]:
            suggestions.append(f"Increase {parameter_name} to at least {valid_range[0]}")
        elif provided_value > valid_range[1]:
            suggestions.append(f"Decrease {parameter_name} to at most {valid_range[1]}")

    if "tolerance" in parameter_name.lower() and isinstance(provided_value, (int, float)):
        if provided_value <= 0:
            suggestions.append("Tolerance must be positive")

    if "iteration" in parameter_name.lower() and isinstance(provided_value, (int, float)):
        if provided_value <= 0:
            suggestions.append("Number of iterations must be positive")

    return " | ".join(suggestions) if suggestions else f"Check {parameter_name} value and try again"


def _describe_dimension_mismatch(provided_shape: tuple, expected_shape: tuple) -> str:
    """Describe the specific nature of dimension mismatch."""

    if len(provided_shape) != len(expected_shape):
        return f"Wrong number of dimensions: got {len(provided_shape)}, expected {len(expected_shape)}"

    mismatches = []
    for i, (provided, expected) in enumerate(zip(provided_shape, expected_shape, strict=False)):
        if provided != expected:
            mismatches.append(f"axis {i}: got {provided}, expected {expected}")

    return " | ".join(mismatches)


def _generate_stability_suggestions(instability_type: str) -> str:
    """Generate suggestions for numerical stability issues."""

    if "nan" in instability_type.lower():
        return "Check for: 1) Division by zero in assembly, 2) Invalid initial guess"
    elif "inf" in instability_type.lower():
        return "The iteration is blowing up: check the fixed-point map or enable Anderson acceleration"
    elif "singular" in instability_type.lower():
        return "Consecutive iterates are nearly collinear: reduce num_last_vectors_used or add regularization"
    else:
        return "Check numerical parameters and consider using more stable solver settings"


# Convenience functions for common error scenarios


def validate_array_dimensions(
    array: np.ndarray,
    expected_shape: tuple,
    array_name: str,
    solver_name: str | None = None,
    context: str | None = None,
):
    """Validate that array has expected dimensions."""
    if array.shape != expected_shape:
        raise DimensionMismatchError(
            array_name=array_name,
            provided_shape=array.shape,
            expected_shape=expected_shape,
            solver_name=solver_name,
            context=context,
        )


def validate_parameter_value(
    value: Any,
    parameter_name: str,
    expected_type: type | None = None,
    valid_range: tuple | None = None,
    solver_name: str | None = None,
):
    """Validate parameter value and type (range bounds inclusive)."""
    if expected_type and not isinstance(value, expected_type):
        raise ConfigurationError(
            parameter_name=parameter_name,
            provided_value=value,
            expected_type=expected_type,
            valid_range=valid_range,
            solver_name=solver_name,
        )

    if valid_range and isinstance(value, numbers.Real):
        if not (valid_range[0] <= value <= valid_range[1]):
            raise ConfigurationError(
                parameter_name=parameter_name,
                provided_value=value,
                expected_type=expected_type,
                valid_range=valid_range,
                solver_name=solver_name,
            )
