"""
Configuration of the fast approximator error layer.

Configs are YAML files validated against CONFIG_SCHEMA, e.g.:

    method: min_distance
    precision: 0.05
    min_samples: 100
    posterior_file: fast_approximator_error_ratio.txt
    approximator:
      n_neighbors: 10
      kernel: rbf
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

from .exceptions import ConfigurationError
from .metrics import ErrorMethod

DEFAULT_POSTERIOR_FILE = "fast_approximator_error_ratio.txt"
DEFAULT_MIN_SAMPLES = 100

CONFIG_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Fast Approximator Error Configuration",
    "type": "object",
    "required": ["method", "precision"],
    "additionalProperties": False,
    "properties": {
        "method": {
            "type": "string",
            "enum": [m.value for m in ErrorMethod],
            "description": "Error proxy"
        },
        "precision": {
            "type": "number",
            "exclusiveMinimum": 0,
            "description": "Maximum acceptable estimated error"
        },
        "min_samples": {
            "type": "integer",
            "minimum": 1,
            "description": "Valid calibration samples needed to trust the posterior"
        },
        "posterior_file": {
            "type": ["string", "null"],
            "description": "Diagnostic output of the calibrated ratio posterior"
        },
        "progress_step": {
            "type": "integer",
            "minimum": 1,
            "maximum": 100
        },
        "approximator": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "n_neighbors": {"type": "integer", "minimum": 1},
                "kernel": {"type": "string", "enum": ["rbf", "matern32", "matern52"]},
                "noise_variance": {"type": "number", "minimum": 0}
            }
        }
    }
}


@dataclass
class ApproximatorConfig:
    """Settings of the reference FastApproximator."""
    n_neighbors: int = 10
    kernel: str = "rbf"
    noise_variance: float = 1e-10


@dataclass
class ErrorConfig:
    """Settings of a FastApproximatorError."""
    method: ErrorMethod = ErrorMethod.MIN_DISTANCE
    precision: float = 0.1
    min_samples: int = DEFAULT_MIN_SAMPLES
    posterior_file: Optional[str] = DEFAULT_POSTERIOR_FILE
    progress_step: int = 10
    approximator: ApproximatorConfig = field(default_factory=ApproximatorConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method.value,
            "precision": self.precision,
            "min_samples": self.min_samples,
            "posterior_file": self.posterior_file,
            "progress_step": self.progress_step,
            "approximator": {
                "n_neighbors": self.approximator.n_neighbors,
                "kernel": self.approximator.kernel,
                "noise_variance": self.approximator.noise_variance
            }
        }


def validate_config(data: Dict[str, Any]) -> list:
    """
    Validate a config mapping against CONFIG_SCHEMA.

    Returns:
        List of error messages (empty if valid)
    """
    validator = jsonschema.Draft202012Validator(CONFIG_SCHEMA)
    return [f"{e.json_path}: {e.message}" for e in validator.iter_errors(data)]


def config_from_dict(data: Dict[str, Any]) -> ErrorConfig:
    """Build an ErrorConfig from a mapping, validating it first."""
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping")

    errors = validate_config(data)
    if errors:
        raise ConfigurationError("Invalid configuration:\n" + "\n".join(errors))

    approx = data.get("approximator", {})
    return ErrorConfig(
        method=ErrorMethod.parse(data["method"]),
        precision=float(data["precision"]),
        min_samples=data.get("min_samples", DEFAULT_MIN_SAMPLES),
        posterior_file=data.get("posterior_file", DEFAULT_POSTERIOR_FILE),
        progress_step=data.get("progress_step", 10),
        approximator=ApproximatorConfig(
            n_neighbors=approx.get("n_neighbors", 10),
            kernel=approx.get("kernel", "rbf"),
            noise_variance=float(approx.get("noise_variance", 1e-10))
        )
    )


def load_config(path: Union[str, Path]) -> ErrorConfig:
    """
    Load a configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {path}: {e}") from e

    return config_from_dict(data)
