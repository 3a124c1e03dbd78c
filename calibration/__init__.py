"""
Error calibration for fast approximators.

Decides per query whether a fast approximation can replace an expensive
evaluation:
- Error proxies (distances, Gaussian Process error, order sensitivity)
- Calibration of proxy vs. true error on labeled samples
- Conservative accept/reject decisions at a requested precision
"""

from .config import ErrorConfig, load_config
from .error import FastApproximatorError
from .exceptions import (
    ApproximatorErrorException,
    CalibrationConsistencyError,
    ConfigurationError,
    InvariantViolation
)
from .metrics import ErrorMethod, create_metric
from .posterior import Posterior1D
from .reporting import CalibrationReporter, LoggingReporter

__all__ = [
    "FastApproximatorError",
    "ErrorMethod",
    "create_metric",
    "Posterior1D",
    "ErrorConfig",
    "load_config",
    "CalibrationReporter",
    "LoggingReporter",
    "ApproximatorErrorException",
    "ConfigurationError",
    "InvariantViolation",
    "CalibrationConsistencyError"
]
