#!/usr/bin/env python3
"""
Unit tests for NonlinearSolverResult.
"""

import math

import pytest

import numpy as np

from nlsolve.alg.nonlinear.convergence import ConvergenceState
from nlsolve.utils.solver_result import NonlinearSolverResult


def _result(**overrides):
    values = {
        "solution": np.array([10.0]),
        "iterations": 3,
        "converged": True,
        "state": ConvergenceState.CONVERGED,
        "solution_norms": [0.0, 5.0, 7.5, 10.0],
        "solution_change_norms": [5.0, 2.5, 0.0],
        "residual_norms": [5.0, 2.5, 0.0],
        "solver_name": "Picard",
        "execution_time": 0.25,
    }
    values.update(overrides)
    return NonlinearSolverResult(**values)


@pytest.mark.unit
class TestNonlinearSolverResult:
    """Test result properties and serialization."""

    def test_final_change_norm(self):
        assert _result().final_change_norm == 0.0
        assert math.isinf(_result(solution_change_norms=[]).final_change_norm)

    def test_final_relative_change(self):
        result = _result(solution_norms=[0.0, 4.0], solution_change_norms=[1.0])
        assert result.final_relative_change == 0.25

    def test_final_relative_change_zero_solution(self):
        assert _result(solution_norms=[0.0, 0.0], solution_change_norms=[0.0]).final_relative_change == 0.0
        assert math.isinf(_result(solution_norms=[0.0, 0.0], solution_change_norms=[1.0]).final_relative_change)

    def test_convergence_rate(self):
        assert _result(solution_change_norms=[4.0, 2.0, 1.0]).convergence_rate == pytest.approx(0.5)
        assert _result(solution_change_norms=[1.0]).convergence_rate is None

    def test_to_dict(self):
        data = _result().to_dict()

        assert data["state"] == "CONVERGED"
        assert data["iterations"] == 3
        assert data["final_change_norm"] == 0.0
        assert data["solution_change_norms"] == [5.0, 2.5, 0.0]

    def test_defaults(self):
        result = NonlinearSolverResult(solution=np.zeros(2), iterations=0, converged=False)

        assert result.state is None
        assert not result.aborted
        assert result.anderson_coefficients is None
        assert result.metadata == {}
        assert result.to_dict()["state"] is None

    @pytest.mark.parametrize(
        ("overrides", "status"),
        [
            ({}, "SUCCESS:"),
            ({"converged": False, "aborted": True}, "ABORTED:"),
            ({"converged": False, "state": ConvergenceState.ERROR}, "WARNING:"),
        ],
    )
    def test_repr_status(self, overrides, status):
        text = repr(_result(**overrides))

        assert text.startswith(f"NonlinearSolverResult(Picard: {status} 3 iters")
        assert "0.250s" in text
