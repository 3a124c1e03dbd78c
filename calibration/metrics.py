"""
Error proxies for fast approximator queries.

Each ErrorMethod maps to one ErrorMetric strategy. A strategy owns the
side-buffer its method needs (none, neighbor distances, or neighbor
vectors), refills it on every query and turns it into a single
non-negative proxy error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

import numpy as np

from approximator.base import Approximator, InterpolationOrder

from .exceptions import ConfigurationError, InvariantViolation


class ErrorMethod(Enum):
    """Proxy used to estimate the error of a fast approximation."""
    GAUSS_PROCESS = "gauss_process"
    MIN_DISTANCE = "min_distance"
    AVG_DISTANCE = "avg_distance"
    AVG_INV_DISTANCE = "avg_inv_distance"
    SUM_DISTANCE = "sum_distance"
    LIN_QUAD_DIFF = "lin_quad_diff"

    @classmethod
    def parse(cls, value: Union["ErrorMethod", str]) -> "ErrorMethod":
        """Accept an ErrorMethod, its value or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            for method in cls:
                if key.lower() == method.value or key.upper() == method.name:
                    return method
        valid = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"Invalid error method {value!r}, expected one of: {valid}")


@dataclass
class NoBuffer:
    """No side information is kept."""


@dataclass
class DistanceBuffer:
    """Distances to the neighbors of the last query, nearest first."""
    distances: np.ndarray = field(default_factory=lambda: np.empty(0))


@dataclass
class NeighborBuffer:
    """Neighbor vectors of the last query."""
    vectors: List[np.ndarray] = field(default_factory=list)


QueryBuffer = Union[NoBuffer, DistanceBuffer, NeighborBuffer]


class ErrorMetric(ABC):
    """
    Strategy turning one approximator query into a proxy error.

    Usage per query: observe(), then evaluate() and/or approximation().
    calibration_value() is the prediction whose true error calibrates the
    proxy; it defaults to approximation().
    """

    method: ErrorMethod

    def __init__(self):
        self.buffer: QueryBuffer = self._new_buffer()

    def _new_buffer(self) -> QueryBuffer:
        return NoBuffer()

    @abstractmethod
    def observe(self, approximator: Approximator, point: np.ndarray) -> None:
        """Query the approximator at point and refill the side-buffer."""
        pass

    @abstractmethod
    def evaluate(self) -> float:
        """Proxy error of the last observed query."""
        pass

    def approximation(self, approximator: Approximator) -> np.ndarray:
        """Fast approximation for the last observed query."""
        return approximator.get_approximation(InterpolationOrder.QUADRATIC)

    def calibration_value(self, approximator: Approximator) -> np.ndarray:
        return self.approximation(approximator)


class GaussProcessMetric(ErrorMetric):
    """Predictive standard deviation reported by the Gaussian Process."""

    method = ErrorMethod.GAUSS_PROCESS

    def __init__(self):
        super().__init__()
        self._mean: Optional[np.ndarray] = None
        self._errors: Optional[np.ndarray] = None

    def observe(self, approximator: Approximator, point: np.ndarray) -> None:
        approximator.find_nearest_neighbors(point)
        mean, errors = approximator.get_approximation_gaussian_process()
        self._mean = np.asarray(mean, dtype=float)
        self._errors = np.atleast_1d(np.asarray(errors, dtype=float))

    def evaluate(self) -> float:
        if self._errors is None or len(self._errors) == 0:
            raise InvariantViolation("Gaussian Process returned no error estimate")
        error = float(self._errors[0])
        if error < 0:
            raise InvariantViolation(f"Gaussian Process returned negative error {error:g}")
        return error

    def calibration_value(self, approximator: Approximator) -> np.ndarray:
        """Gaussian Process mean, the prediction the predictive error describes."""
        if self._mean is None:
            raise InvariantViolation("No Gaussian Process prediction available")
        return self._mean


class _DistanceMetric(ErrorMetric):
    """Base for proxies computed from neighbor distances."""

    def _new_buffer(self) -> DistanceBuffer:
        return DistanceBuffer()

    def observe(self, approximator: Approximator, point: np.ndarray) -> None:
        neighbors = approximator.find_nearest_neighbors(point)
        self.buffer = DistanceBuffer(np.array(neighbors.distances, dtype=float))

    def _distances(self) -> np.ndarray:
        distances = self.buffer.distances
        if len(distances) == 0:
            raise InvariantViolation("No nearest neighbors found")
        return distances


class MinDistanceMetric(_DistanceMetric):
    method = ErrorMethod.MIN_DISTANCE

    def evaluate(self) -> float:
        return float(self._distances()[0])


class AvgDistanceMetric(_DistanceMetric):
    method = ErrorMethod.AVG_DISTANCE

    def evaluate(self) -> float:
        return float(np.mean(self._distances()))


class AvgInvDistanceMetric(_DistanceMetric):
    """Harmonic mean of the distances; an exact neighbor match gives 0."""

    method = ErrorMethod.AVG_INV_DISTANCE

    def evaluate(self) -> float:
        distances = self._distances()
        if np.any(distances == 0):
            return 0.0
        return float(len(distances) / np.sum(1.0 / distances))


class SumDistanceMetric(ErrorMetric):
    """Norm of the component-wise sum of the neighbor vectors."""

    method = ErrorMethod.SUM_DISTANCE

    def _new_buffer(self) -> NeighborBuffer:
        return NeighborBuffer()

    def observe(self, approximator: Approximator, point: np.ndarray) -> None:
        neighbors = approximator.find_nearest_neighbors(point)
        self.buffer = NeighborBuffer([np.asarray(v, dtype=float) for v in neighbors.vectors])

    def evaluate(self) -> float:
        vectors = self.buffer.vectors
        if not vectors:
            raise InvariantViolation("No nearest neighbors found")

        total = np.zeros(len(vectors[0]))
        for i, v in enumerate(vectors):
            if v.shape != total.shape:
                raise InvariantViolation(
                    f"Neighbor {i} has dimension {v.size}, expected {total.size}"
                )
            total += v

        return float(np.linalg.norm(total))


class LinQuadDiffMetric(ErrorMetric):
    """
    Oracle sensitivity to the interpolation order.

    Evaluates the oracle twice per query, which dominates the
    calibration cost for expensive oracles.
    """

    method = ErrorMethod.LIN_QUAD_DIFF

    def __init__(self, oracle):
        super().__init__()
        self.oracle = oracle
        self._quadratic: Optional[np.ndarray] = None
        self._linear: Optional[np.ndarray] = None

    def observe(self, approximator: Approximator, point: np.ndarray) -> None:
        approximator.find_nearest_neighbors(point)
        self._quadratic = approximator.get_approximation(InterpolationOrder.QUADRATIC)
        self._linear = approximator.get_approximation(InterpolationOrder.LINEAR)

    def evaluate(self) -> float:
        if self._quadratic is None or self._linear is None:
            raise InvariantViolation("Linear and quadratic approximations are required")
        y = self.oracle.evaluate(self._quadratic)
        lin_y = self.oracle.evaluate(self._linear)
        return float(abs(y - lin_y))

    def approximation(self, approximator: Approximator) -> np.ndarray:
        if self._quadratic is None:
            raise InvariantViolation("No quadratic approximation available")
        return self._quadratic


_METRICS = {
    ErrorMethod.GAUSS_PROCESS: GaussProcessMetric,
    ErrorMethod.MIN_DISTANCE: MinDistanceMetric,
    ErrorMethod.AVG_DISTANCE: AvgDistanceMetric,
    ErrorMethod.AVG_INV_DISTANCE: AvgInvDistanceMetric,
    ErrorMethod.SUM_DISTANCE: SumDistanceMetric,
}


def create_metric(method: Union[ErrorMethod, str], oracle=None) -> ErrorMetric:
    """
    Create the error metric strategy for a method.

    Args:
        method: ErrorMethod or its name/value
        oracle: Oracle with evaluate(), required for LIN_QUAD_DIFF

    Returns:
        ErrorMetric instance
    """
    method = ErrorMethod.parse(method)

    if method == ErrorMethod.LIN_QUAD_DIFF:
        if oracle is None:
            raise ConfigurationError("lin_quad_diff requires an oracle")
        return LinQuadDiffMetric(oracle)

    return _METRICS[method]()
