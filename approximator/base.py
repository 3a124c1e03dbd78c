"""
Approximator interface.

An approximator is stateful: find_nearest_neighbors() selects the query,
and the get_approximation*() methods interpolate at that query.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np


class InterpolationOrder(Enum):
    """Order of the local polynomial interpolation."""
    LINEAR = 1
    QUADRATIC = 2


@dataclass
class Neighbors:
    """Result of a nearest-neighbor search."""
    indices: np.ndarray    # Training set indices, nearest first
    distances: np.ndarray  # Ascending distances to the query
    vectors: np.ndarray    # Displacements (neighbor - query), shape (k, d)

    def __len__(self):
        return len(self.distances)


class Approximator(ABC):
    """
    Abstract base class for fast approximators.

    Maps an input point to an output vector using a fixed training set.
    """

    @property
    @abstractmethod
    def n_data(self) -> int:
        """Dimension of the output vectors."""
        pass

    @abstractmethod
    def find_nearest_neighbors(self, point: np.ndarray) -> Neighbors:
        """
        Find the nearest training points to a query and cache the query.

        Args:
            point: Query point

        Returns:
            Neighbors ordered by ascending distance
        """
        pass

    @abstractmethod
    def get_approximation(
        self, order: InterpolationOrder = InterpolationOrder.QUADRATIC
    ) -> np.ndarray:
        """Interpolated output at the cached query."""
        pass

    @abstractmethod
    def get_approximation_gaussian_process(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Gaussian Process prediction at the cached query.

        Returns:
            (mean, errors) where errors are predictive standard deviations
        """
        pass
