"""
Exceptions raised by the fast approximator error layer.

Rejecting an approximation is a normal outcome and never raises.
Statistical insufficiency during calibration is not an error either.
"""


class ApproximatorErrorException(Exception):
    """Base class for all errors of the calibration layer."""


class ConfigurationError(ApproximatorErrorException, ValueError):
    """Invalid construction parameters or configuration file."""


class InvariantViolation(ApproximatorErrorException, RuntimeError):
    """A collaborator broke a precondition of the error evaluation."""


class CalibrationConsistencyError(InvariantViolation):
    """A zero proxy error was paired with a nonzero true error."""

    def __init__(self, index: int, true_error: float):
        self.index = index
        self.true_error = true_error
        super().__init__(
            f"Zero estimated error but true error {true_error:g} at test index {index}"
        )
