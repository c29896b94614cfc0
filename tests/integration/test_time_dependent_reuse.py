#!/usr/bin/env python3
"""
Implicit Euler time stepping of the 1D heat equation.

Each time step is one Picard solve of ``(I + dt L) u_{n+1} = u_n``. The
matrix never changes, so with ``constant_jacobian`` it is assembled and
factorized once for the whole run while only the right-hand side moves.
"""

import pytest

import numpy as np
import scipy.sparse as sp

from nlsolve import AlgebraicProblem, DirectLinearSolver, PicardConfig, PicardSolver
from nlsolve.backends import IterativeLinearSolver

N = 20
DT = 1e-3
NUM_STEPS = 10


def _heat_matrix(n=N, dt=DT):
    h = 1.0 / (n + 1)
    laplacian = sp.diags([-np.ones(n - 1), 2.0 * np.ones(n), -np.ones(n - 1)], [-1, 0, 1], format="csc") / h**2
    return sp.identity(n, format="csc") + dt * laplacian


def _initial_condition(n=N):
    x = np.arange(1, n + 1) / (n + 1)
    return np.sin(np.pi * x)


def _decay_factor(n=N, dt=DT):
    """Per-step amplification of the sin(pi x) mode."""
    h = 1.0 / (n + 1)
    eigenvalue = (2.0 - 2.0 * np.cos(np.pi * h)) / h**2
    return 1.0 / (1.0 + dt * eigenvalue)


def _march(solver, problem, u0, num_steps, config):
    u = u0.copy()
    results = []
    for _ in range(num_steps):
        problem.set_rhs(u)
        result = solver.solve(u, config=config)
        results.append(result)
        u = result.solution
    return u, results


@pytest.fixture
def heat_problem():
    return AlgebraicProblem(N, _heat_matrix(), _initial_condition())


@pytest.mark.integration
class TestHeatEquation:
    """Factorization reuse across time steps."""

    def test_single_factorization_for_whole_run(self, heat_problem):
        linear_solver = DirectLinearSolver()
        solver = PicardSolver(heat_problem, linear_solver)
        config = PicardConfig(tolerance=1e-8, constant_jacobian=True)

        u, results = _march(solver, heat_problem, _initial_condition(), NUM_STEPS, config)

        assert all(r.converged for r in results)
        assert all(r.iterations == 2 for r in results)
        assert linear_solver.factorization_count == 1
        assert heat_problem.matrix_assemblies == 1
        assert results[0].metadata["matrix_reuses"] == 1
        assert all(r.metadata["matrix_reuses"] == 2 for r in results[1:])
        np.testing.assert_allclose(u, _initial_condition() * _decay_factor() ** NUM_STEPS, rtol=1e-10)

    def test_matches_direct_time_stepping(self, heat_problem):
        solver = PicardSolver(heat_problem, config=PicardConfig(tolerance=1e-8, constant_jacobian=True))
        u, _ = _march(solver, heat_problem, _initial_condition(), NUM_STEPS, solver.config)

        reference = _initial_condition()
        dense = _heat_matrix().toarray()
        for _ in range(NUM_STEPS):
            reference = np.linalg.solve(dense, reference)

        np.testing.assert_allclose(u, reference, rtol=1e-10)

    def test_refactorization_without_constant_jacobian(self, heat_problem):
        linear_solver = DirectLinearSolver()
        solver = PicardSolver(heat_problem, linear_solver)

        _, results = _march(solver, heat_problem, _initial_condition(), 3, PicardConfig(tolerance=1e-8))

        assert linear_solver.factorization_count == sum(r.iterations for r in results)
        assert heat_problem.matrix_assemblies == linear_solver.factorization_count

    def test_time_step_change_refactorizes_once(self, heat_problem):
        linear_solver = DirectLinearSolver()
        solver = PicardSolver(heat_problem, linear_solver)
        config = PicardConfig(tolerance=1e-8, constant_jacobian=True)

        u, _ = _march(solver, heat_problem, _initial_condition(), 5, config)
        heat_problem.set_matrix(_heat_matrix(dt=2.0 * DT))
        u, _ = _march(solver, heat_problem, u, 5, config)

        assert linear_solver.factorization_count == 2
        assert heat_problem.matrix_assemblies == 2
        expected = _decay_factor() ** 5 * _decay_factor(dt=2.0 * DT) ** 5
        np.testing.assert_allclose(u, _initial_condition() * expected, rtol=1e-10)

    def test_krylov_solver_with_warm_start(self, heat_problem):
        solver = PicardSolver(heat_problem, IterativeLinearSolver(method="cg", rtol=1e-12))
        config = PicardConfig(tolerance=1e-8, constant_jacobian=True)

        u, results = _march(solver, heat_problem, _initial_condition(), NUM_STEPS, config)

        assert all(r.converged for r in results)
        np.testing.assert_allclose(u, _initial_condition() * _decay_factor() ** NUM_STEPS, rtol=1e-8)
