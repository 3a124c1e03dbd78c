"""
Scripted approximator used across the calibration tests.

The first coordinate p of a query point drives every output:
- distances [p, p + 1, p + 2]
- neighbor vectors [p], [p], [-p]
- quadratic approximation [p], linear approximation [p / 2]
- Gaussian Process mean [gp_scale * p] and error [p]

With the oracle x -> x[0], calibration_set() builds true data whose
error is the minimum-distance proxy times a chosen ratio.
"""

import numpy as np

from approximator.base import Approximator, InterpolationOrder, Neighbors
from runtime.oracle import FunctionOracle


class ScriptedApproximator(Approximator):

    def __init__(self, gp_scale=1.0):
        self.gp_scale = gp_scale
        self._p = None
        self.n_queries = 0

    @property
    def n_data(self) -> int:
        return 1

    def find_nearest_neighbors(self, point):
        self._p = float(np.asarray(point, dtype=float).ravel()[0])
        self.n_queries += 1
        p = self._p
        return Neighbors(
            indices=np.arange(3),
            distances=np.array([p, p + 1.0, p + 2.0]),
            vectors=np.array([[p], [p], [-p]])
        )

    def get_approximation(self, order=InterpolationOrder.QUADRATIC):
        if order == InterpolationOrder.LINEAR:
            return np.array([self._p / 2])
        return np.array([self._p])

    def get_approximation_gaussian_process(self):
        return np.array([self.gp_scale * self._p]), np.array([self._p])


def first_component_oracle() -> FunctionOracle:
    return FunctionOracle(lambda x: x[0])


def calibration_set(proxies, ratios=None):
    """Test points with the given proxies and true errors proxy * ratio."""
    proxies = np.asarray(proxies, dtype=float)
    if ratios is None:
        ratios = np.ones_like(proxies)
    points = [np.array([p]) for p in proxies]
    # true error = |data - p| = p * ratio
    data = [np.array([p + p * r]) for p, r in zip(proxies, ratios)]
    return points, data
