"""
One-dimensional empirical posterior distributions.

Points are accumulated with add_point() and frozen with generate(),
after which quantiles can be queried. Quantiles are read from the
weighted empirical CDF, so they are reproducible from the samples.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
from scipy.ndimage import gaussian_filter1d

ONE_SIGMA = 0.6826894921370859
TWO_SIGMA = 0.9544997361036416


class Posterior1D:
    """Weighted empirical distribution of a scalar quantity."""

    def __init__(self):
        self._values: List[float] = []
        self._weights: List[float] = []
        self._max_like_value: Optional[float] = None
        self._max_like = -np.inf

        self._x: Optional[np.ndarray] = None
        self._w: Optional[np.ndarray] = None
        self._cdf: Optional[np.ndarray] = None

    def __len__(self):
        return len(self._values)

    @property
    def is_generated(self) -> bool:
        return self._cdf is not None

    def add_point(self, value: float, probability: float = 1.0, likelihood: float = 1.0) -> None:
        """
        Add a sample.

        Args:
            value: Sample value
            probability: Sample weight
            likelihood: Likelihood of the sample, used for the maximum-likelihood point
        """
        if self.is_generated:
            raise RuntimeError("Cannot add points to a generated posterior")
        if probability < 0:
            raise ValueError(f"Negative weight {probability}")

        self._values.append(float(value))
        self._weights.append(float(probability))

        if likelihood > self._max_like:
            self._max_like = likelihood
            self._max_like_value = float(value)

    def generate(self) -> None:
        """Freeze the distribution and build the CDF."""
        if self.is_generated:
            raise RuntimeError("Posterior already generated")
        if not self._values:
            raise ValueError("Cannot generate an empty posterior")

        x = np.asarray(self._values)
        w = np.asarray(self._weights)
        total = np.sum(w)
        if total <= 0:
            raise ValueError("Total weight of the posterior must be positive")

        order = np.argsort(x, kind="stable")
        self._x = x[order]
        self._w = w[order] / total
        self._cdf = np.cumsum(self._w)

    def _require_generated(self):
        if not self.is_generated:
            raise RuntimeError("Posterior must be generated first")

    def percentile(self, p: float) -> float:
        """Smallest sample value whose cumulative weight reaches p."""
        self._require_generated()
        if not 0 <= p <= 1:
            raise ValueError(f"Percentile must be in [0, 1], got {p}")

        idx = int(np.searchsorted(self._cdf, p, side="left"))
        idx = min(idx, len(self._x) - 1)
        return float(self._x[idx])

    def median(self) -> float:
        return self.percentile(0.5)

    def mean(self) -> float:
        self._require_generated()
        return float(np.sum(self._w * self._x))

    def min(self) -> float:
        self._require_generated()
        return float(self._x[0])

    def max(self) -> float:
        self._require_generated()
        return float(self._x[-1])

    def max_likelihood_point(self) -> Optional[float]:
        return self._max_like_value

    def get_1sigma_upper(self) -> float:
        """One-sided 68.3% upper bound."""
        return self.percentile(ONE_SIGMA)

    def get_2sigma_upper(self) -> float:
        """One-sided 95.4% upper bound."""
        return self.percentile(TWO_SIGMA)

    def get_1sigma_two_sided(self) -> Tuple[float, float]:
        return self.percentile((1 - ONE_SIGMA) / 2), self.percentile((1 + ONE_SIGMA) / 2)

    def get_2sigma_two_sided(self) -> Tuple[float, float]:
        return self.percentile((1 - TWO_SIGMA) / 2), self.percentile((1 + TWO_SIGMA) / 2)

    def density(
        self, n_points: int = 1000, smoothing: Optional[str] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Binned probability density.

        Args:
            n_points: Number of bins
            smoothing: None or "gaussian"

        Returns:
            (bin_centers, density)
        """
        self._require_generated()
        if n_points < 1:
            raise ValueError(f"n_points must be positive, got {n_points}")

        density, edges = np.histogram(self._x, bins=n_points, weights=self._w, density=True)
        centers = 0.5 * (edges[:-1] + edges[1:])

        if smoothing == "gaussian":
            density = gaussian_filter1d(density, sigma=max(1.0, n_points / 100), mode="constant")
            norm = np.sum(density * np.diff(edges))
            if norm > 0:
                density = density / norm
        elif smoothing is not None:
            raise ValueError(f"Unknown smoothing: {smoothing}")

        return centers, density

    def write_into_file(
        self,
        path: Union[str, Path],
        n_points: int = 1000,
        smoothing: Optional[str] = None
    ) -> None:
        """Write the binned density and CDF as plain text."""
        centers, density = self.density(n_points, smoothing)
        cdf = np.cumsum(density)
        if cdf[-1] > 0:
            cdf = cdf / cdf[-1]

        header = "\n".join([
            f"n_samples = {len(self._x)}",
            f"median = {self.median():.10g}",
            f"1sigma_upper = {self.get_1sigma_upper():.10g}",
            f"2sigma_upper = {self.get_2sigma_upper():.10g}",
            "x\tpdf\tcdf"
        ])

        path = Path(path)
        if path.parent != Path(""):
            path.parent.mkdir(parents=True, exist_ok=True)
        np.savetxt(
            path,
            np.column_stack([centers, density, cdf]),
            fmt="%.10e",
            delimiter="\t",
            header=header
        )
