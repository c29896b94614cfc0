"""
Configuration management for nlsolve solvers.

Quick Start
-----------
>>> from nlsolve.config import AndersonConfig, PicardConfig
>>> config = PicardConfig(tolerance=1e-6, anderson=AndersonConfig(enabled=True))

>>> # Or load from YAML
>>> from nlsolve.config import load_solver_config
>>> config = load_solver_config("experiments/baseline.yaml").picard
"""

from .io import load_solver_config, save_solver_config, validate_yaml_config
from .solver_config import (
    AndersonConfig,
    LoggingConfig,
    NonlinearSolverConfig,
    PicardConfig,
    SolverConfig,
    ToleranceType,
)

__all__ = [
    "AndersonConfig",
    "LoggingConfig",
    "NonlinearSolverConfig",
    "PicardConfig",
    "SolverConfig",
    "ToleranceType",
    "load_solver_config",
    "save_solver_config",
    "validate_yaml_config",
]
