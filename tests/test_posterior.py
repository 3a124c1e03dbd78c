"""
Tests for the one-dimensional posterior.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from calibration.posterior import Posterior1D


def posterior_of(values, weights=None):
    posterior = Posterior1D()
    if weights is None:
        weights = np.ones(len(values))
    for v, w in zip(values, weights):
        posterior.add_point(v, w, 1)
    posterior.generate()
    return posterior


class TestQuantiles:
    """Tests for percentiles and sigma bounds."""

    def test_concentrated_distribution(self):
        posterior = posterior_of(np.ones(200))

        assert posterior.median() == 1.0
        assert posterior.get_1sigma_upper() == 1.0
        assert posterior.get_2sigma_upper() == 1.0
        assert posterior.get_2sigma_two_sided() == (1.0, 1.0)

    def test_uniform_samples(self):
        values = np.arange(1, 1001) / 1000.0
        np.random.default_rng(0).shuffle(values)
        posterior = posterior_of(values)

        assert posterior.median() == pytest.approx(0.5, abs=2e-3)
        assert posterior.get_1sigma_upper() == pytest.approx(0.683, abs=2e-3)
        assert posterior.get_2sigma_upper() == pytest.approx(0.955, abs=2e-3)
        assert posterior.min() == pytest.approx(0.001)
        assert posterior.max() == pytest.approx(1.0)

    def test_two_sigma_above_one_sigma(self):
        rng = np.random.default_rng(3)
        posterior = posterior_of(rng.lognormal(size=500))

        lower1, upper1 = posterior.get_1sigma_two_sided()
        lower2, upper2 = posterior.get_2sigma_two_sided()

        assert posterior.get_2sigma_upper() >= posterior.get_1sigma_upper()
        assert lower2 <= lower1 <= upper1 <= upper2

    def test_weights(self):
        posterior = posterior_of([1.0, 2.0], weights=[1.0, 3.0])

        assert posterior.percentile(0.2) == 1.0
        assert posterior.percentile(0.3) == 2.0
        assert posterior.mean() == pytest.approx(1.75)

    def test_percentile_range(self):
        posterior = posterior_of([1.0, 2.0])
        with pytest.raises(ValueError):
            posterior.percentile(1.5)

    def test_max_likelihood_point(self):
        posterior = Posterior1D()
        posterior.add_point(1.0, 1.0, 0.2)
        posterior.add_point(3.0, 1.0, 0.9)
        posterior.add_point(2.0, 1.0, 0.5)

        assert posterior.max_likelihood_point() == 3.0


class TestLifecycle:
    """Generation freezes the posterior."""

    def test_add_after_generate(self):
        posterior = posterior_of([1.0, 2.0])
        with pytest.raises(RuntimeError):
            posterior.add_point(3.0)

    def test_generate_twice(self):
        posterior = posterior_of([1.0])
        with pytest.raises(RuntimeError):
            posterior.generate()

    def test_empty(self):
        with pytest.raises(ValueError):
            Posterior1D().generate()

    def test_query_before_generate(self):
        posterior = Posterior1D()
        posterior.add_point(1.0)
        assert not posterior.is_generated
        with pytest.raises(RuntimeError):
            posterior.get_2sigma_upper()

    def test_negative_weight(self):
        with pytest.raises(ValueError):
            Posterior1D().add_point(1.0, -1.0)


class TestOutput:
    """Tests for density and file output."""

    def test_density_normalized(self):
        rng = np.random.default_rng(5)
        posterior = posterior_of(rng.normal(size=2000))

        for smoothing in (None, "gaussian"):
            centers, density = posterior.density(n_points=50, smoothing=smoothing)
            width = centers[1] - centers[0]
            assert np.sum(density) * width == pytest.approx(1.0, rel=1e-6)

    def test_unknown_smoothing(self):
        posterior = posterior_of([1.0, 2.0])
        with pytest.raises(ValueError):
            posterior.density(smoothing="kde")

    def test_write_into_file(self, tmp_path):
        path = tmp_path / "posterior.txt"
        posterior = posterior_of(np.linspace(0.5, 1.5, 101))

        posterior.write_into_file(path, n_points=20)

        table = np.loadtxt(path)
        assert table.shape == (20, 3)
        assert table[-1, 2] == pytest.approx(1.0)
        assert "2sigma_upper" in path.read_text()

    def test_file_reproducible(self, tmp_path):
        values = np.random.default_rng(9).uniform(size=300)
        posterior_of(values).write_into_file(tmp_path / "a.txt")
        posterior_of(values).write_into_file(tmp_path / "b.txt")

        assert (tmp_path / "a.txt").read_text() == (tmp_path / "b.txt").read_text()

    def test_degenerate_samples(self, tmp_path):
        posterior_of(np.ones(150)).write_into_file(tmp_path / "ones.txt", n_points=10)
        table = np.loadtxt(tmp_path / "ones.txt")
        assert np.all(np.isfinite(table))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
