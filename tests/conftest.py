"""
Pytest configuration and shared fixtures for the nlsolve test suite.

This module provides common fixtures, test configuration, and utilities
used across the entire test suite.
"""

import logging
import shutil
import tempfile
from pathlib import Path

import pytest

import numpy as np

from nlsolve.config import AndersonConfig, PicardConfig
from nlsolve.core import AlgebraicProblem
from nlsolve.utils.solver_logging import get_logger

# =============================================================================
# Test Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (slower, cross-component)")
    config.addinivalue_line("markers", "slow: Slow tests (may take >10 seconds)")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test paths."""
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)

        if "large" in item.name or "slow" in item.name:
            item.add_marker(pytest.mark.slow)


# =============================================================================
# Problem Fixtures
# =============================================================================


@pytest.fixture
def contracting_problem():
    """x = 0.5 x + 5, fixed point 10."""
    return AlgebraicProblem(1, np.eye(1), lambda x: 0.5 * x + 5.0)


@pytest.fixture
def expanding_problem():
    """x = 2 x + 1, iterates grow without bound."""
    return AlgebraicProblem(1, np.eye(1), lambda x: 2.0 * x + 1.0)


@pytest.fixture
def linear_problem():
    """Constant 3x3 system; Picard reaches the solution in one step."""
    matrix = np.array([[4.0, 1.0, 0.0], [1.0, 3.0, 1.0], [0.0, 1.0, 2.0]])
    rhs = np.array([1.0, 2.0, 3.0])
    return AlgebraicProblem(3, matrix, rhs)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def strict_config():
    """Relative tolerance 1e-6, no acceleration."""
    return PicardConfig(tolerance=1e-6, max_iterations=100)


@pytest.fixture
def anderson_config(strict_config):
    """strict_config with a three-vector Anderson history."""
    return strict_config.with_updates(anderson=AndersonConfig(enabled=True, num_last_vectors_used=3))


@pytest.fixture
def tolerance_levels():
    """Different tolerance levels for testing convergence."""
    return {"strict": 1e-8, "normal": 1e-6, "relaxed": 1e-4, "loose": 1e-2}


# =============================================================================
# File System Fixtures
# =============================================================================


@pytest.fixture
def temp_directory():
    """Temporary directory for file operations."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


# =============================================================================
# Logging Fixtures
# =============================================================================


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def log_capture():
    """
    Attach a recording handler to nlsolve loggers.

    nlsolve loggers do not propagate to the root logger, so pytest's caplog
    does not see them. Call the fixture with a logger name; it returns the
    list the records are appended to.
    """
    handler = _ListHandler()
    attached = []

    def attach(name: str) -> list[logging.LogRecord]:
        logger = get_logger(name)
        logger.addHandler(handler)
        attached.append(logger)
        return handler.records

    yield attach

    for logger in attached:
        logger.removeHandler(handler)
