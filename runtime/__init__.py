"""
Runtime for fast approximated functions.

Provides the true functions (oracles) and the fast evaluation wrapper
that falls back to the true model when an approximation is rejected.
"""

from .oracle import (
    Oracle,
    FunctionOracle,
    GaussianLogLikelihood
)
from .fallback import (
    EvaluationRecord,
    FastFunction
)

__all__ = [
    "Oracle",
    "FunctionOracle",
    "GaussianLogLikelihood",
    "EvaluationRecord",
    "FastFunction"
]
