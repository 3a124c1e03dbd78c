"""
Calibrated error control for fast approximations.

FastApproximatorError decides whether the fast approximation at a query
point can replace a true evaluation at a requested precision:

- calibrate() runs the approximator over labeled test samples and builds
  the posterior of (true error / estimated error)
- approximate() scales the estimated error of a new query by the 2 sigma
  upper bound of that posterior and accepts it if it stays within the
  precision

Without a valid calibration only exact matches (zero estimated error)
are accepted.
"""

from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from approximator.base import Approximator

from .config import DEFAULT_MIN_SAMPLES, DEFAULT_POSTERIOR_FILE, ErrorConfig
from .exceptions import CalibrationConsistencyError, ConfigurationError
from .metrics import ErrorMethod, QueryBuffer, create_metric
from .posterior import Posterior1D
from .reporting import CalibrationReporter


class FastApproximatorError:
    """
    Error calibration and accept/reject decisions for an approximator.

    Not thread-safe: every query overwrites the internal side-buffers.
    Use one instance per worker.
    """

    def __init__(
        self,
        approximator: Approximator,
        oracle,
        method: Union[ErrorMethod, str],
        precision: float,
        test_points: Optional[Sequence] = None,
        test_data: Optional[Sequence] = None,
        begin: int = 0,
        end: Optional[int] = None,
        min_samples: int = DEFAULT_MIN_SAMPLES,
        posterior_file: Optional[str] = DEFAULT_POSTERIOR_FILE,
        reporter: Optional[CalibrationReporter] = None
    ):
        """
        Args:
            approximator: Approximator to control
            oracle: True function with evaluate(vector) -> float
            method: Error proxy (ErrorMethod or its name)
            precision: Maximum acceptable estimated error, must be positive
            test_points: Optional calibration inputs, calibrated right away
            test_data: True outputs matching test_points
            begin: First calibration index
            end: One past the last calibration index (default: all)
            min_samples: Valid samples required for a calibrated posterior
            posterior_file: Diagnostic output of the posterior (None to skip)
            reporter: Receives progress and diagnostics
        """
        if not precision > 0:
            raise ConfigurationError(f"Invalid precision {precision}")
        if not callable(getattr(oracle, "evaluate", None)):
            raise ConfigurationError("Oracle must provide evaluate(vector)")
        if int(min_samples) < 1:
            raise ConfigurationError(f"Invalid min_samples {min_samples}")

        self.approximator = approximator
        self.oracle = oracle
        self.min_samples = int(min_samples)
        self.posterior_file = posterior_file
        self.reporter = reporter or CalibrationReporter()

        self._method = ErrorMethod.parse(method)
        self._precision = float(precision)
        self._metric = create_metric(self._method, oracle)

        self._posterior: Optional[Posterior1D] = None
        self._calibrated = False
        self._n_valid = 0
        self._n_skipped = 0

        if test_points is not None:
            if test_data is None:
                raise ValueError("test_data is required with test_points")
            self.calibrate(test_points, test_data, begin, end)

    @classmethod
    def from_config(
        cls,
        approximator: Approximator,
        oracle,
        config: ErrorConfig,
        reporter: Optional[CalibrationReporter] = None
    ) -> "FastApproximatorError":
        """Create an uncalibrated instance from an ErrorConfig."""
        return cls(
            approximator,
            oracle,
            method=config.method,
            precision=config.precision,
            min_samples=config.min_samples,
            posterior_file=config.posterior_file,
            reporter=reporter
        )

    @property
    def method(self) -> ErrorMethod:
        return self._method

    @property
    def precision(self) -> float:
        return self._precision

    @property
    def is_calibrated(self) -> bool:
        return self._calibrated

    @property
    def posterior(self) -> Optional[Posterior1D]:
        """Posterior of the error ratio, None unless calibrated."""
        return self._posterior

    @property
    def n_valid_samples(self) -> int:
        return self._n_valid

    @property
    def buffer(self) -> QueryBuffer:
        """Side-buffer of the last query."""
        return self._metric.buffer

    def evaluate_error(self) -> float:
        """Estimated (uncalibrated) error of the last query."""
        return self._metric.evaluate()

    def calibrate(
        self,
        test_points: Sequence,
        test_data: Sequence,
        begin: int = 0,
        end: Optional[int] = None
    ) -> bool:
        """
        Calibrate the error estimate on test samples begin..end-1.

        The previous posterior is discarded. The new one is only swapped in
        after the whole pass succeeded.

        Args:
            test_points: Approximator inputs
            test_data: True outputs, passed to the oracle
            begin: First index
            end: One past the last index (default: len(test_points))

        Returns:
            Whether the calibration is valid

        Raises:
            ValueError: If the range does not fit the test arrays
            CalibrationConsistencyError: If a zero estimated error comes
                with a nonzero true error
        """
        if end is None:
            end = len(test_points)
        if begin < 0 or end < begin:
            raise ValueError(f"Invalid calibration range [{begin}, {end})")
        if len(test_points) < end or len(test_data) < end:
            raise ValueError(
                f"Calibration range end {end} exceeds test set sizes "
                f"({len(test_points)} points, {len(test_data)} data)"
            )

        if end == begin:
            self._calibrated = False
            return False

        self.reporter.calibration_started(end - begin)

        posterior = Posterior1D()
        n_valid = 0
        n_skipped = 0

        for i in range(begin, end):
            self._metric.observe(self.approximator, test_points[i])
            val = self._metric.calibration_value(self.approximator)

            estimated_error = self._metric.evaluate()
            correct_error = abs(
                self.oracle.evaluate(test_data[i]) - self.oracle.evaluate(val)
            )
            self.reporter.sample_evaluated(i, estimated_error, correct_error)

            if estimated_error == 0:
                if correct_error != 0:
                    raise CalibrationConsistencyError(i, correct_error)
                n_skipped += 1
                continue

            posterior.add_point(correct_error / estimated_error, 1, 1)
            n_valid += 1

        calibrated = n_valid >= self.min_samples
        if calibrated:
            posterior.generate()
            if self.posterior_file:
                posterior.write_into_file(self.posterior_file)

        self._posterior = posterior if calibrated else None
        self._calibrated = calibrated
        self._n_valid = n_valid
        self._n_skipped = n_skipped

        self.reporter.calibration_finished(n_valid, calibrated, self._posterior)
        return calibrated

    def reset(
        self,
        test_points: Sequence,
        test_data: Sequence,
        begin: int = 0,
        end: Optional[int] = None
    ) -> bool:
        """Recalibrate from scratch, see calibrate()."""
        return self.calibrate(test_points, test_data, begin, end)

    def approximate(self, point) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Decide whether the fast approximation at point is precise enough.

        Returns:
            (accepted, value); value is None when rejected, in which case
            the true function must be evaluated instead
        """
        self._metric.observe(self.approximator, point)
        e = self._metric.evaluate()

        if not self._calibrated:
            estimated_error = None
            accepted = e == 0
        else:
            estimated_error = e * self._posterior.get_2sigma_upper()
            accepted = estimated_error <= self._precision

        self.reporter.decision_made(e, estimated_error, accepted)

        if not accepted:
            return False, None
        return True, np.array(self._metric.approximation(self.approximator), dtype=float)

    def summary(self) -> Dict[str, Any]:
        """Calibration state as a plain dict."""
        posterior = self._posterior if self._calibrated else None
        return {
            "method": self._method.value,
            "precision": self._precision,
            "calibrated": self._calibrated,
            "n_valid_samples": self._n_valid,
            "n_skipped": self._n_skipped,
            "sigma1_upper": posterior.get_1sigma_upper() if posterior else None,
            "sigma2_upper": posterior.get_2sigma_upper() if posterior else None
        }
