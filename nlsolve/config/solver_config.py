"""
Solver configuration models.

Configurations specify HOW a nonlinear system is iterated (tolerances,
iteration caps, acceleration), never WHAT system is solved; that is the
job of the discrete problem handed to the solver.

All solver models are frozen: a configuration is a value passed to
``solve`` and never mutated while a solve runs. Use ``with_updates`` to
derive a modified copy.
"""

from __future__ import annotations

import warnings
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from pathlib import Path


class ToleranceType(str, Enum):
    """Quantity compared against the tolerance to decide convergence."""

    SOLUTION_CHANGE_RELATIVE = "solution_change_relative"  # ||x_k - x_{k-1}|| / ||x_k||
    SOLUTION_CHANGE_ABSOLUTE = "solution_change_absolute"  # ||x_k - x_{k-1}||
    RESIDUAL_NORM_ABSOLUTE = "residual_norm_absolute"  # ||A x_k - b||
    RESIDUAL_NORM_RELATIVE_TO_INITIAL = "residual_norm_relative_to_initial"  # ||r_k|| / ||r_0||


class NonlinearSolverConfig(BaseModel):
    """
    Configuration shared by all nonlinear matrix solvers.

    Attributes
    ----------
    max_iterations : int
        Iteration cap, the initial step included (default: 100)
    min_iterations : int
        Iterations performed before convergence may be declared (default: 1)
    tolerance : float
        Convergence tolerance (default: 1e-3)
    tolerance_type : ToleranceType
        Quantity the tolerance applies to (default: relative solution change)
    constant_jacobian : bool
        Reuse the assembled matrix and its factorization across iterations
        and solves while the problem structure is unchanged (default: False)
    verbose : bool
        Report per-iteration progress at INFO instead of DEBUG (default: True)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_iterations: int = Field(default=100, ge=1, description="Maximum number of iterations")
    min_iterations: int = Field(default=1, ge=1, description="Minimum number of iterations")
    tolerance: float = Field(default=1e-3, gt=0, description="Convergence tolerance")
    tolerance_type: ToleranceType = ToleranceType.SOLUTION_CHANGE_RELATIVE
    constant_jacobian: bool = Field(default=False, description="Reuse the matrix between iterations")
    verbose: bool = True

    @field_validator("tolerance")
    @classmethod
    def validate_numerical_stability(cls, v: float) -> float:
        """Warn about tolerances below double precision resolution."""
        if v < 1e-14:
            warnings.warn(
                f"Tolerance ({v:.2e}) is below double precision resolution and may never be met",
                UserWarning,
            )
        return v

    @model_validator(mode="after")
    def validate_iteration_bounds(self) -> NonlinearSolverConfig:
        """Validate that min_iterations does not exceed max_iterations."""
        if self.min_iterations > self.max_iterations:
            raise ValueError(
                f"min_iterations ({self.min_iterations}) cannot exceed max_iterations ({self.max_iterations})"
            )
        return self

    def with_updates(self, **changes: Any):
        """Return a validated copy with the given fields replaced."""
        return type(self).model_validate({**self.model_dump(), **changes})


class AndersonConfig(BaseModel):
    """
    Anderson acceleration settings.

    ``num_last_vectors_used`` is range-checked by the solver when a solve starts,
    ``beta`` only when acceleration is enabled. A bad value surfaces as
    ``ConfigurationError``.

    Attributes
    ----------
    enabled : bool
        Turn acceleration on (default: False)
    num_last_vectors_used : int
        History capacity, at least 2 (default: 3)
    beta : float
        Damping parameter in (0, 1] (default: 1.0 = no damping)
    regularization : float
        Tikhonov term for the mixing system (default: 0.0)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = False
    num_last_vectors_used: int = 3
    beta: float = 1.0
    regularization: float = Field(default=0.0, ge=0)


class PicardConfig(NonlinearSolverConfig):
    """
    Configuration for Picard (fixed-point) iteration.

    Examples
    --------
    >>> config = PicardConfig(tolerance=1e-6, anderson=AndersonConfig(enabled=True))
    >>> config = PicardConfig.from_yaml("picard.yaml")
    """

    anderson: AndersonConfig = Field(default_factory=AndersonConfig)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        from .io import save_solver_config

        save_solver_config(self, path)

    @classmethod
    def from_yaml(cls, path: str | Path) -> PicardConfig:
        """Load configuration from YAML file."""
        from .io import load_solver_config

        return load_solver_config(path, model=cls)


class LoggingConfig(BaseModel):
    """
    Configuration for logging.

    Attributes
    ----------
    level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
        Logging level (default: INFO)
    use_colors : bool
        Colored console output (default: True)
    include_location : bool
        Append file:line to every record (default: False)
    log_file : str | None
        Also write records to this file (default: None)
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    use_colors: bool = True
    include_location: bool = False
    log_file: str | None = None

    def apply(self) -> None:
        """Configure the nlsolve loggers from these settings."""
        from nlsolve.utils.solver_logging import configure_logging

        configure_logging(
            level=self.level,
            log_to_file=self.log_file is not None,
            log_file_path=self.log_file,
            use_colors=self.use_colors,
            include_location=self.include_location,
        )


class SolverConfig(BaseModel):
    """
    Top-level configuration file layout.

    YAML Format
    -----------
    picard:
      max_iterations: 50
      tolerance: 1.0e-6
      anderson:
        enabled: true
        num_last_vectors_used: 4
    logging:
      level: DEBUG
    """

    picard: PicardConfig = Field(default_factory=PicardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        from .io import save_solver_config

        save_solver_config(self, path)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SolverConfig:
        """Load configuration from YAML file."""
        from .io import load_solver_config

        return load_solver_config(path, model=cls)
