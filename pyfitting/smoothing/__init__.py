"""
Nonparametric smoothing of one predictor.

Public API:
    kernel_smooth(x_train, y_train, x_query, radius, ...) -> float | ndarray
    kernel_weights(x_train, x_query, radius, ...) -> ndarray
    spline_fit(x, y, degree, knots, ...) -> SplineSolution
    truncated_power_basis(x, degree, knots) -> ndarray

Example:
    >>> from pyfitting.smoothing import spline_fit
    >>> result = spline_fit(x, y, degree=3, knots=[0.25, 0.5, 0.75])
    >>> print(result.summary())
"""

from pyfitting.smoothing.design import SmoothingDesign
from pyfitting.smoothing.solution import SplineParams, SplineSolution
from pyfitting.smoothing.solvers import (
    kernel_smooth,
    kernel_weights,
    spline_fit,
    truncated_power_basis,
)

__all__ = [
    "kernel_smooth",
    "kernel_weights",
    "spline_fit",
    "truncated_power_basis",
    "SmoothingDesign",
    "SplineParams",
    "SplineSolution",
]
