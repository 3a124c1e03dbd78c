"""
Fast function evaluation with fallback to the true model.

FastFunction evaluates oracle(model(point)) and replaces the expensive
model by the fast approximator whenever the calibrated error control
accepts the approximation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

import numpy as np


@dataclass
class EvaluationRecord:
    """One evaluation of a FastFunction."""
    point: np.ndarray
    value: float
    used_fast: bool


class FastFunction:
    """
    Oracle of a model output, approximated where precise enough.

    Rejected queries are evaluated with the true model; with
    update_approximator the new sample is added to the approximator.
    """

    def __init__(
        self,
        error,
        model_func: Callable[[np.ndarray], np.ndarray],
        update_approximator: bool = False,
        keep_log: bool = False
    ):
        """
        Args:
            error: FastApproximatorError controlling the approximator
            model_func: Expensive model, point -> output vector
            update_approximator: Add slow evaluations to the training set
            keep_log: Record every evaluation for write_log()
        """
        if update_approximator and not hasattr(error.approximator, "add_point"):
            raise ValueError("Approximator does not support adding points")

        self.error = error
        self.model_func = model_func
        self.update_approximator = update_approximator

        self.n_fast = 0
        self.n_slow = 0
        self.records: Optional[List[EvaluationRecord]] = [] if keep_log else None

    @property
    def n_evaluations(self) -> int:
        return self.n_fast + self.n_slow

    @property
    def fast_fraction(self) -> float:
        if self.n_evaluations == 0:
            return 0.0
        return self.n_fast / self.n_evaluations

    def evaluate(self, point) -> float:
        point = np.asarray(point, dtype=float)
        accepted, data = self.error.approximate(point)

        if accepted:
            self.n_fast += 1
        else:
            data = np.asarray(self.model_func(point), dtype=float)
            self.n_slow += 1
            if self.update_approximator:
                self.error.approximator.add_point(point, data)

        value = self.error.oracle.evaluate(data)

        if self.records is not None:
            self.records.append(EvaluationRecord(point=point.copy(), value=value, used_fast=accepted))

        return value

    def __call__(self, point) -> float:
        return self.evaluate(point)

    def write_log(self, path: Union[str, Path]) -> None:
        """Write the evaluation log as tab-separated text."""
        if self.records is None:
            raise RuntimeError("Evaluation log is disabled, use keep_log=True")

        with open(path, 'w') as f:
            f.write("# point\tvalue\tused_fast\n")
            for rec in self.records:
                coords = "\t".join(f"{c:.10g}" for c in rec.point.ravel())
                f.write(f"{coords}\t{rec.value:.10g}\t{int(rec.used_fast)}\n")
