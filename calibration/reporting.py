"""
Progress and diagnostics reporting for calibration and decisions.

The calibration layer never writes output itself; it calls the hooks of
an injected CalibrationReporter. The base class ignores every event.
"""

import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class CalibrationReporter:
    """Observer of calibration passes and approximation decisions."""

    def calibration_started(self, n_samples: int) -> None:
        pass

    def sample_evaluated(self, index: int, estimated_error: float, true_error: float) -> None:
        pass

    def calibration_finished(self, n_valid: int, calibrated: bool, posterior=None) -> None:
        pass

    def decision_made(
        self, proxy_error: float, estimated_error: Optional[float], accepted: bool
    ) -> None:
        pass


class LoggingReporter(CalibrationReporter):
    """
    Reporter backed by the logging module.

    Logs calibration progress every progress_step percent, the duration of
    the pass and the calibrated quantiles. Decisions are logged at DEBUG.
    """

    def __init__(self, log: Optional[logging.Logger] = None, progress_step: int = 10):
        self.log = log or logger
        self.progress_step = max(1, int(progress_step))
        self._n_samples = 0
        self._n_done = 0
        self._next_percent = self.progress_step
        self._start: Optional[float] = None
        self.elapsed: Optional[float] = None

    def calibration_started(self, n_samples: int) -> None:
        self._n_samples = n_samples
        self._n_done = 0
        self._next_percent = self.progress_step
        self._start = time.perf_counter()
        self.log.info("Error calibration started on %d test samples", n_samples)

    def sample_evaluated(self, index: int, estimated_error: float, true_error: float) -> None:
        self._n_done += 1
        self.log.debug(
            "Sample %d: estimated error = %g, true error = %g",
            index, estimated_error, true_error
        )
        if self._n_samples <= 0:
            return
        percent = 100.0 * self._n_done / self._n_samples
        while percent >= self._next_percent and self._next_percent <= 100:
            self.log.info("Error calibration %d%% done", self._next_percent)
            self._next_percent += self.progress_step

    def calibration_finished(self, n_valid: int, calibrated: bool, posterior=None) -> None:
        if self._start is not None:
            self.elapsed = time.perf_counter() - self._start
            self._start = None
            self.log.info("Error calibration took %.3f s", self.elapsed)

        if calibrated and posterior is not None:
            self.log.info("Posterior 1 sigma is: %g", posterior.get_1sigma_upper())
            self.log.info("Posterior 2 sigma is: %g", posterior.get_2sigma_upper())
        else:
            self.log.warning(
                "Only %d valid calibration samples, accepting exact matches only", n_valid
            )

    def decision_made(
        self, proxy_error: float, estimated_error: Optional[float], accepted: bool
    ) -> None:
        error = proxy_error if estimated_error is None else estimated_error
        self.log.debug("Error = %g, accepted = %s", error, accepted)
