"""
YAML I/O for solver configurations.

This module provides functions to load and save solver configurations from/to
YAML files with schema validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from .solver_config import SolverConfig

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def load_solver_config(path: str | Path, model: type[ConfigT] | None = None) -> ConfigT | SolverConfig:
    """
    Load solver configuration from YAML file.

    Parameters
    ----------
    path : str | Path
        Path to YAML configuration file
    model : type[BaseModel] | None
        Model to validate against (default: SolverConfig). Pass
        ``PicardConfig`` for a file holding only Picard settings.

    Returns
    -------
    BaseModel
        Validated configuration

    Raises
    ------
    FileNotFoundError
        If configuration file doesn't exist
    yaml.YAMLError
        If YAML syntax is invalid
    ValueError
        If configuration values are invalid

    Examples
    --------
    >>> config = load_solver_config("experiments/baseline.yaml")
    >>> result = PicardSolver(problem, linear_solver).solve(config=config.picard)
    """
    from .solver_config import SolverConfig

    model_cls = model or SolverConfig
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {path}\nPlease create a YAML configuration file or use programmatic config."
        )

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML syntax in {path}: {e}") from e

    if data is None:
        data = {}

    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {path}:\n{e}") from e


def save_solver_config(config: BaseModel, path: str | Path) -> None:
    """
    Save solver configuration to YAML file.

    Parameters
    ----------
    config : BaseModel
        Configuration to save
    path : str | Path
        Output file path

    Examples
    --------
    >>> save_solver_config(PicardConfig(tolerance=1e-8), "experiments/picard.yaml")

    >>> # Or use method
    >>> config.to_yaml("experiments/picard.yaml")
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(exclude_none=True, mode="json")

    with open(path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)


def validate_yaml_config(path: str | Path, model: type[BaseModel] | None = None) -> tuple[bool, str]:
    """
    Validate YAML configuration without keeping it.

    Returns
    -------
    tuple[bool, str]
        (is_valid, message) - True if valid, False with error message otherwise

    Examples
    --------
    >>> is_valid, msg = validate_yaml_config("config.yaml")
    >>> if not is_valid:
    ...     print(f"Config invalid: {msg}")
    """
    try:
        load_solver_config(path, model=model)
        return True, "Configuration is valid"
    except FileNotFoundError as e:
        return False, str(e)
    except yaml.YAMLError as e:
        return False, f"YAML syntax error: {e}"
    except ValueError as e:
        return False, f"Validation error: {e}"
