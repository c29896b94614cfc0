#!/usr/bin/env python3
"""
Unit tests for Anderson acceleration.

Covers the mixing coefficients, the damped mixture and the accelerator
state used by the Picard solver.
"""

import logging

import pytest

import numpy as np

from nlsolve.utils.exceptions import ConfigurationError
from nlsolve.utils.numerical.anderson_acceleration import (
    AndersonAccelerator,
    calculate_anderson_coefficients,
    create_anderson_accelerator,
    mix_history,
)
from nlsolve.utils.numerical.vector_history import VectorHistory


def _history(*vectors):
    history = VectorHistory(len(vectors))
    for v in vectors:
        history.push(np.asarray(v, dtype=float))
    return history


@pytest.mark.unit
class TestCoefficients:
    """Test calculate_anderson_coefficients."""

    @pytest.mark.parametrize("k", [3, 4, 6])
    def test_coefficients_are_affine(self, k):
        rng = np.random.default_rng(k)
        H = rng.standard_normal((k, 10))

        coefficients = calculate_anderson_coefficients(H)

        assert coefficients.shape == (k - 1,)
        assert np.sum(coefficients) == pytest.approx(1.0)

    def test_two_vectors_give_unit_coefficient(self):
        coefficients = calculate_anderson_coefficients(np.array([[0.0, 1.0], [3.0, 4.0]]))

        np.testing.assert_array_equal(coefficients, [1.0])

    def test_scalar_fixed_point_example(self):
        # x -> 0.5 x + 5 from 0: iterates 0, 5, 7.5
        coefficients = calculate_anderson_coefficients(_history([0.0], [5.0], [7.5]))

        np.testing.assert_allclose(coefficients, [-1.0, 2.0])
        assert mix_history(_history([0.0], [5.0], [7.5]), coefficients)[0] == pytest.approx(10.0)

    def test_minimizes_combined_increment(self):
        rng = np.random.default_rng(0)
        H = rng.standard_normal((4, 8))
        R = np.diff(H, axis=0)

        coefficients = calculate_anderson_coefficients(H)
        optimum = np.linalg.norm(coefficients @ R)

        for perturbation in (np.array([1e-3, -1e-3, 0.0]), np.array([0.0, 1e-3, -1e-3])):
            assert np.linalg.norm((coefficients + perturbation) @ R) >= optimum

    def test_complex_history_uses_plain_products(self):
        H = np.array([[0.0, 0.0], [5.0 + 5.0j, 1.0], [7.5 + 7.5j, 1.5j]])
        R = np.diff(H, axis=0)
        D = R[1] - R[0]
        expected = np.sum(D * R[1]) / np.sum(D * D)

        coefficients = calculate_anderson_coefficients(H)

        assert coefficients[0] == pytest.approx(expected)
        assert np.sum(coefficients) == pytest.approx(1.0)

    def test_singular_system_falls_back_to_least_squares(self, log_capture):
        records = log_capture("nlsolve.utils.numerical.anderson_acceleration")
        # Equal increments make the normal matrix zero
        coefficients = calculate_anderson_coefficients(_history([5.0], [7.5], [10.0]))

        assert np.all(np.isfinite(coefficients))
        assert np.sum(coefficients) == pytest.approx(1.0)
        assert any(r.levelno == logging.WARNING and "Singular" in r.getMessage() for r in records)

    def test_regularization_avoids_singular_fallback(self, log_capture):
        records = log_capture("nlsolve.utils.numerical.anderson_acceleration")

        coefficients = calculate_anderson_coefficients(_history([5.0], [7.5], [10.0]), regularization=1e-8)

        np.testing.assert_allclose(coefficients, [0.0, 1.0])
        assert not any(r.levelno == logging.WARNING for r in records)

    def test_needs_two_vectors(self):
        with pytest.raises(ValueError):
            calculate_anderson_coefficients(np.ones((1, 3)))


@pytest.mark.unit
class TestMixing:
    """Test mix_history."""

    def test_undamped_mix_of_two(self):
        H = np.array([[1.0, 2.0], [3.0, 5.0]])

        np.testing.assert_array_equal(mix_history(H, np.array([1.0])), [3.0, 5.0])

    def test_damping_applies_to_increments_only(self):
        H = np.array([[1.0, 2.0], [3.0, 5.0]])

        mixed = mix_history(H, np.array([1.0]), beta=0.5)

        # beta h1 + (1 - beta) h0
        np.testing.assert_allclose(mixed, [2.0, 3.5])

    def test_damped_mix_of_three(self):
        H = np.array([[0.0], [5.0], [7.5]])
        c = np.array([-1.0, 2.0])

        mixed = mix_history(H, c, beta=0.5)

        # c0 h1 + c1 h2 - 0.5 (c0 (h1 - h0) + c1 (h2 - h1))
        assert mixed[0] == pytest.approx(10.0 - 0.5 * (-5.0 + 5.0))

    def test_coefficient_count_checked(self):
        with pytest.raises(ValueError):
            mix_history(np.zeros((3, 2)), np.array([1.0]))


@pytest.mark.unit
class TestAndersonAccelerator:
    """Test accelerator state across updates."""

    def test_returns_raw_until_history_full(self):
        accelerator = AndersonAccelerator(num_last_vectors_used=3)
        accelerator.start(np.zeros(1))

        out = accelerator.update(np.array([5.0]))

        np.testing.assert_array_equal(out, [5.0])
        assert accelerator.vec_in_memory == 2
        assert accelerator.mix_count == 0
        assert accelerator.last_coefficients is None

    def test_mixes_once_full(self):
        accelerator = AndersonAccelerator(num_last_vectors_used=3)
        accelerator.start(np.zeros(1))
        accelerator.update(np.array([5.0]))

        out = accelerator.update(np.array([7.5]))

        assert out[0] == pytest.approx(10.0)
        assert accelerator.vec_in_memory == 3
        assert accelerator.mix_count == 1
        np.testing.assert_allclose(accelerator.last_coefficients, [-1.0, 2.0])

    def test_history_holds_raw_iterates(self):
        accelerator = AndersonAccelerator(num_last_vectors_used=3)
        accelerator.start(np.zeros(1))
        accelerator.update(np.array([5.0]))
        accelerator.update(np.array([7.5]))

        np.testing.assert_array_equal(accelerator.history.as_array()[:, 0], [0.0, 5.0, 7.5])

    def test_non_finite_iterate_not_mixed(self):
        accelerator = AndersonAccelerator(num_last_vectors_used=2)
        accelerator.start(np.zeros(2))

        out = accelerator.update(np.array([np.inf, 1.0]))

        assert np.isinf(out[0])
        assert accelerator.mix_count == 0

    def test_start_resets(self):
        accelerator = AndersonAccelerator(num_last_vectors_used=2)
        accelerator.start(np.zeros(1))
        accelerator.update(np.ones(1))

        accelerator.start(np.full(1, 3.0))

        assert accelerator.vec_in_memory == 1
        assert accelerator.mix_count == 0
        assert accelerator.last_coefficients is None

    def test_convergence_info(self):
        accelerator = create_anderson_accelerator(num_last_vectors_used=4, beta=0.8)
        info = accelerator.get_convergence_info()

        assert info["num_last_vectors_used"] == 4
        assert info["beta"] == 0.8
        assert info["mix_count"] == 0
        assert info["vec_in_memory"] == 0
        assert info["last_coefficients"] is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"num_last_vectors_used": 1},
            {"num_last_vectors_used": 0},
            {"beta": 0.0},
            {"beta": 1.5},
            {"regularization": -1.0},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ConfigurationError):
            AndersonAccelerator(**kwargs)
