"""
Nearest-neighbor approximators for expensive model outputs.

Provides the interface consumed by the error calibration layer and a
reference implementation:
- k-nearest-neighbor search in whitened parameter space
- Linear and quadratic local polynomial interpolation
- Local Gaussian Process mean and predictive error
"""

from .base import (
    Approximator,
    InterpolationOrder,
    Neighbors
)
from .nearest import FastApproximator

__all__ = [
    "Approximator",
    "InterpolationOrder",
    "Neighbors",
    "FastApproximator"
]
