"""
Reference nearest-neighbor approximator.

Implements:
- k-nearest-neighbor search with a KD-tree in whitened input space
- Weighted local polynomial interpolation (linear or quadratic)
- Local Gaussian Process interpolation with predictive uncertainty

Inputs are whitened by the per-dimension standard deviation of the
initial training set; the scale is kept fixed when points are added so
that distances stay comparable with a previous calibration.
"""

from typing import Optional, Tuple

import numpy as np
from scipy import linalg
from scipy.spatial import cKDTree

from .base import Approximator, InterpolationOrder, Neighbors


def _as_matrix(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2D array, got shape {arr.shape}")
    return arr


def _polynomial_features(X: np.ndarray, order: int) -> np.ndarray:
    """Generate polynomial features up to given order."""
    n_samples, n_features = X.shape
    features = [np.ones((n_samples, 1))]  # Constant term

    for d in range(1, order + 1):
        for i in range(n_features):
            features.append(X[:, i:i+1]**d)

    # Cross terms for order 2
    if order >= 2:
        for i in range(n_features):
            for j in range(i+1, n_features):
                features.append(X[:, i:i+1] * X[:, j:j+1])

    return np.hstack(features)


def _kernel(
    X1: np.ndarray,
    X2: np.ndarray,
    length_scales: np.ndarray,
    kernel_type: str = "rbf"
) -> np.ndarray:
    """Unit-variance kernel matrix between X1 and X2."""
    X1_scaled = X1 / length_scales
    X2_scaled = X2 / length_scales

    sq_dist = (
        np.sum(X1_scaled**2, axis=1)[:, None] +
        np.sum(X2_scaled**2, axis=1)[None, :] -
        2 * X1_scaled @ X2_scaled.T
    )
    sq_dist = np.maximum(sq_dist, 0)  # Numerical stability

    if kernel_type == "matern52":
        r = np.sqrt(sq_dist)
        sqrt5 = np.sqrt(5)
        return (1 + sqrt5 * r + 5/3 * sq_dist) * np.exp(-sqrt5 * r)
    elif kernel_type == "matern32":
        r = np.sqrt(sq_dist)
        sqrt3 = np.sqrt(3)
        return (1 + sqrt3 * r) * np.exp(-sqrt3 * r)
    return np.exp(-0.5 * sq_dist)


class FastApproximator(Approximator):
    """
    k-nearest-neighbor interpolator over a fixed training set.

    Each query fits a local model to the k nearest training points,
    expressed in displacement coordinates centered on the query, so the
    prediction is the fitted intercept.
    """

    KERNELS = ("rbf", "matern32", "matern52")

    def __init__(
        self,
        points,
        data,
        n_neighbors: int = 10,
        kernel: str = "rbf",
        noise_variance: float = 1e-10
    ):
        """
        Args:
            points: Training inputs, shape (n, d)
            data: Training outputs, shape (n, m)
            n_neighbors: Number of neighbors used per query
            kernel: Gaussian Process kernel ("rbf", "matern32", "matern52")
            noise_variance: Diagonal jitter of the Gaussian Process
        """
        points = _as_matrix(points, "points")
        data = _as_matrix(data, "data")

        if len(points) != len(data):
            raise ValueError(
                f"Training size mismatch: {len(points)} points, {len(data)} data vectors"
            )
        if n_neighbors < 1:
            raise ValueError(f"n_neighbors must be positive, got {n_neighbors}")
        if len(points) < n_neighbors:
            raise ValueError(
                f"Need at least {n_neighbors} training points, got {len(points)}"
            )
        if kernel not in self.KERNELS:
            raise ValueError(f"Unknown kernel: {kernel}")

        self.n_neighbors = n_neighbors
        self.kernel_type = kernel
        self.noise_variance = noise_variance

        scale = np.std(points, axis=0)
        scale[scale == 0] = 1.0
        self._scale = scale

        self._points = points
        self._data = data
        self._tree = cKDTree(points / self._scale)

        self._neighbors: Optional[Neighbors] = None

    @property
    def n_points(self) -> int:
        return len(self._points)

    @property
    def n_dim(self) -> int:
        return self._points.shape[1]

    @property
    def n_data(self) -> int:
        return self._data.shape[1]

    def add_point(self, point, data) -> None:
        """Append a training sample and rebuild the search tree."""
        point = np.asarray(point, dtype=float).ravel()
        data = np.asarray(data, dtype=float).ravel()
        if len(point) != self.n_dim or len(data) != self.n_data:
            raise ValueError(
                f"Expected point of size {self.n_dim} and data of size {self.n_data}, "
                f"got {len(point)} and {len(data)}"
            )

        self._points = np.vstack([self._points, point])
        self._data = np.vstack([self._data, data])
        self._tree = cKDTree(self._points / self._scale)
        self._neighbors = None

    def find_nearest_neighbors(self, point) -> Neighbors:
        x = np.asarray(point, dtype=float).ravel()
        if len(x) != self.n_dim:
            raise ValueError(f"Query has dimension {len(x)}, expected {self.n_dim}")

        x_scaled = x / self._scale
        distances, indices = self._tree.query(x_scaled, k=self.n_neighbors)
        distances = np.atleast_1d(distances).astype(float)
        indices = np.atleast_1d(indices)

        vectors = self._points[indices] / self._scale - x_scaled

        self._neighbors = Neighbors(indices=indices, distances=distances, vectors=vectors)
        return self._neighbors

    def _require_query(self) -> Neighbors:
        if self._neighbors is None:
            raise RuntimeError("find_nearest_neighbors must be called before interpolation")
        return self._neighbors

    def get_approximation(
        self, order: InterpolationOrder = InterpolationOrder.QUADRATIC
    ) -> np.ndarray:
        nb = self._require_query()
        if nb.distances[0] == 0:
            return self._data[nb.indices[0]].copy()

        X = nb.vectors
        Y = self._data[nb.indices]

        weights = 1.0 / nb.distances
        weights /= np.sum(weights)

        # Minimum-norm solution when k is below the number of terms
        sw = np.sqrt(weights)[:, None]
        Phi = _polynomial_features(X, InterpolationOrder(order).value)
        coefficients, _, _, _ = np.linalg.lstsq(Phi * sw, Y * sw, rcond=None)

        return coefficients[0].copy()

    def get_approximation_gaussian_process(self) -> Tuple[np.ndarray, np.ndarray]:
        nb = self._require_query()
        if nb.distances[0] == 0:
            return self._data[nb.indices[0]].copy(), np.zeros(self.n_data)

        X = nb.vectors
        Y = self._data[nb.indices]
        n = len(X)

        length_scales = np.maximum(np.std(X, axis=0), 1e-3)

        y_mean = np.mean(Y, axis=0)
        signal_variance = np.var(Y, axis=0)

        K = _kernel(X, X, length_scales, self.kernel_type)
        K += self.noise_variance * np.eye(n)

        try:
            factor = linalg.cho_factor(K, lower=True)
        except linalg.LinAlgError:
            # Regularize if singular
            K += 1e-6 * np.eye(n)
            factor = linalg.cho_factor(K, lower=True)

        origin = np.zeros((1, X.shape[1]))
        k_star = _kernel(origin, X, length_scales, self.kernel_type)

        alpha = linalg.cho_solve(factor, Y - y_mean)
        mean = y_mean + (k_star @ alpha)[0]

        v = linalg.cho_solve(factor, k_star.T)
        unit_var = float(1.0 - (k_star @ v)[0, 0])
        errors = np.sqrt(max(unit_var, 0) * signal_variance)

        return mean, errors

    def approximate(
        self, point, order: InterpolationOrder = InterpolationOrder.QUADRATIC
    ) -> np.ndarray:
        """Find neighbors of a point and interpolate there."""
        self.find_nearest_neighbors(point)
        return self.get_approximation(order)
