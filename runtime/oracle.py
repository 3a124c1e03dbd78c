"""
True (expensive) functions approximated by the fast approximator.

An oracle maps an output vector of the approximator to a scalar,
typically a log-likelihood. It must be deterministic for the error
calibration to be meaningful.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np


class Oracle(ABC):
    """Abstract scalar function of a vector, counting its evaluations."""

    def __init__(self):
        self.n_evaluations = 0

    def evaluate(self, x) -> float:
        """Evaluate the function at x."""
        self.n_evaluations += 1
        return float(self._evaluate(np.asarray(x, dtype=float)))

    def __call__(self, x) -> float:
        return self.evaluate(x)

    @abstractmethod
    def _evaluate(self, x: np.ndarray) -> float:
        pass


class FunctionOracle(Oracle):
    """Oracle wrapping a plain callable."""

    def __init__(self, func: Callable[[np.ndarray], float]):
        super().__init__()
        self.func = func

    def _evaluate(self, x: np.ndarray) -> float:
        return self.func(x)


class GaussianLogLikelihood(Oracle):
    """
    Gaussian log-likelihood of a predicted data vector.

    log L(x) = -0.5 * (n log 2pi + log|C| + r^T C^-1 r),  r = observed - x

    Supports full covariance matrices.
    """

    def __init__(
        self,
        observed: np.ndarray,
        errors: Optional[np.ndarray] = None,
        covariance: Optional[np.ndarray] = None
    ):
        """
        Args:
            observed: Observed values
            errors: Measurement errors (diagonal of covariance)
            covariance: Full covariance matrix (if correlated)
        """
        super().__init__()
        self.observed = np.asarray(observed, dtype=float)

        if covariance is not None:
            self.covariance = np.asarray(covariance, dtype=float)
            self.use_full_covariance = True
            # Compute inverse and log determinant
            self._cov_inv = np.linalg.inv(self.covariance)
            self._cov_logdet = np.linalg.slogdet(self.covariance)[1]
        elif errors is not None:
            errors = np.asarray(errors, dtype=float)
            self.covariance = np.diag(errors**2)
            self.use_full_covariance = False
            self._cov_inv = np.diag(1.0 / errors**2)
            self._cov_logdet = 2 * np.sum(np.log(errors))
        else:
            raise ValueError("Either errors or covariance is required")

        if self.covariance.shape != (len(self.observed), len(self.observed)):
            raise ValueError(
                f"Covariance shape {self.covariance.shape} does not match "
                f"{len(self.observed)} observed values"
            )

    def _evaluate(self, x: np.ndarray) -> float:
        if x.shape != self.observed.shape:
            raise ValueError(f"Expected data of shape {self.observed.shape}, got {x.shape}")
        residual = self.observed - x
        n = len(self.observed)
        return -0.5 * (n * np.log(2 * np.pi) + self._cov_logdet +
                       residual @ self._cov_inv @ residual)
