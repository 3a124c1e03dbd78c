"""
End-to-end demo of calibrated fast approximation on a toy model.

The toy model maps a point p to a data vector built from a parabola
(5 s^2 - 3 s + 10 with s = sum(p)) and a slowly varying sine; the oracle
is a Gaussian log-likelihood of that vector.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import numpy as np

from approximator import FastApproximator
from calibration import ErrorConfig, FastApproximatorError, LoggingReporter

from .fallback import FastFunction
from .oracle import GaussianLogLikelihood

POINT_RANGE = (-10.0, 10.0)


def toy_model(point: np.ndarray) -> np.ndarray:
    """Toy expensive model: point -> data vector."""
    point = np.asarray(point, dtype=float)
    s = np.sum(point)
    return np.array([5 * s * s - 3 * s + 10, 10 * np.sin(0.2 * s)])


def toy_oracle() -> GaussianLogLikelihood:
    observed = toy_model(np.zeros(1))
    return GaussianLogLikelihood(observed=observed, errors=np.array([50.0, 1.0]))


def _sample(rng: np.random.Generator, n: int, dim: int) -> tuple[np.ndarray, np.ndarray]:
    points = rng.uniform(POINT_RANGE[0], POINT_RANGE[1], size=(n, dim))
    data = np.array([toy_model(p) for p in points])
    return points, data


def run_demo(
    out_dir: str,
    config: Optional[ErrorConfig] = None,
    n_train: int = 2000,
    n_test: int = 500,
    n_query: int = 500,
    dim: int = 1,
    seed: int = 123
) -> dict[str, Any]:
    """Calibrate on the toy model, run queries and write artifacts."""
    config = config or ErrorConfig()
    rng = np.random.default_rng(seed)

    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    train_points, train_data = _sample(rng, n_train, dim)
    test_points, test_data = _sample(rng, n_test, dim)
    query_points, query_data = _sample(rng, n_query, dim)

    approximator = FastApproximator(
        train_points,
        train_data,
        n_neighbors=config.approximator.n_neighbors,
        kernel=config.approximator.kernel,
        noise_variance=config.approximator.noise_variance
    )
    oracle = toy_oracle()

    posterior_file = None
    if config.posterior_file:
        posterior_file = str(out_path / Path(config.posterior_file).name)

    error = FastApproximatorError(
        approximator,
        oracle,
        method=config.method,
        precision=config.precision,
        min_samples=config.min_samples,
        posterior_file=posterior_file,
        reporter=LoggingReporter(progress_step=config.progress_step)
    )
    error.calibrate(test_points, test_data)

    fast = FastFunction(error, toy_model, keep_log=True)
    abs_errors = []
    for point, data in zip(query_points, query_data):
        value = fast.evaluate(point)
        abs_errors.append(abs(value - oracle.evaluate(data)))

    used_fast = np.array([rec.used_fast for rec in fast.records], dtype=bool)
    abs_errors = np.array(abs_errors)
    fast_errors = abs_errors[used_fast]

    results = {
        "run": {
            "seed": seed,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "n_train": n_train,
            "n_test": n_test,
            "n_query": n_query,
            "dim": dim
        },
        "config": config.to_dict(),
        "calibration": error.summary(),
        "queries": {
            "n_fast": fast.n_fast,
            "n_slow": fast.n_slow,
            "fast_fraction": fast.fast_fraction,
            "max_fast_error": float(np.max(fast_errors)) if len(fast_errors) else None,
            "n_fast_above_precision": int(np.sum(fast_errors > config.precision))
        }
    }

    _write_results(out_path / "results.json", results)
    fast.write_log(out_path / "evaluations.txt")

    return results


def _write_results(path: Path, results: dict[str, Any]) -> None:
    with open(path, "w") as f:
        json.dump(results, f, indent=2)
