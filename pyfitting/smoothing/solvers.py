"""
Solver dispatch for nonparametric smoothing.

kernel_smooth and kernel_weights are direct computations; spline_fit
follows the Design -> Backend -> Solution pattern of the regression
module.
"""

from __future__ import annotations

import warnings
from typing import Any, Literal
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyfitting.core.exceptions import EmptyNeighborhoodError, ValidationError
from pyfitting.core.compute.tolerances import SPLINE_RANK_TOL
from pyfitting.core.validation import (
    check_1d,
    check_array,
    check_finite,
    check_nonnegative_scalar,
    check_positive_int,
    check_strictly_increasing,
)
from pyfitting.smoothing._kernel import KERNELS, weight_matrix
from pyfitting.smoothing._spline import basis_matrix
from pyfitting.smoothing.design import SmoothingDesign
from pyfitting.smoothing.solution import SplineSolution
from pyfitting.smoothing.backends.cpu_spline import CPUSplineBackend


def kernel_smooth(
    x_train: ArrayLike,
    y_train: ArrayLike,
    x_query: ArrayLike,
    radius: float,
    *,
    kernel: str = 'uniform',
    on_empty: Literal['raise', 'nan'] = 'raise',
) -> NDArray[np.floating[Any]] | float:
    """
    Fixed-radius kernel regression.

    Estimates m(x) as the kernel-weighted mean of y_train over training
    points with |x − xᵢ| < radius. With the default uniform kernel this is
    the plain mean of those yᵢ. radius = inf gives the global mean of
    y_train at every query; a very small radius interpolates at the
    training points.

    Args:
        x_train: Training predictors (n,)
        y_train: Training responses (n,)
        x_query: A scalar or a 1D array of query points
        radius: h ≥ 0 (inf allowed)
        kernel: 'uniform', 'triangular' or 'epanechnikov'
        on_empty: 'raise' to fail on queries with no training point within
            h, 'nan' to return NaN for them

    Returns:
        float for a scalar query, otherwise an array of shape (m,)

    Raises:
        EmptyNeighborhoodError: If on_empty='raise' and some query has no
            neighbours. The exception lists the offending query indices.
        ValidationError: On invalid inputs or options

    Example:
        >>> kernel_smooth(x, y, np.linspace(0, 1, 50), radius=0.1)
    """
    if on_empty not in ('raise', 'nan'):
        raise ValidationError(f"on_empty: expected 'raise' or 'nan', got {on_empty!r}")
    design = SmoothingDesign.from_arrays(x_train, y_train, 'x_train', 'y_train')
    queries, scalar = _check_query(x_query)
    radius = check_nonnegative_scalar(radius, 'radius', allow_inf=True)
    kernel = _check_kernel(kernel)

    weights = weight_matrix(design.x, queries, radius, kernel)
    total = weights.sum(axis=1)
    empty = np.flatnonzero(total == 0)

    if empty.size > 0 and on_empty == 'raise':
        shown = ", ".join(str(i) for i in empty[:10])
        more = f" and {empty.size - 10} more" if empty.size > 10 else ""
        raise EmptyNeighborhoodError(
            f"No training points within radius {radius:g} of {empty.size} "
            f"query point(s) (indices {shown}{more}); widen the radius or "
            f"use on_empty='nan'",
            radius=radius,
            query_indices=empty.tolist(),
        )

    with np.errstate(invalid='ignore', divide='ignore'):
        estimates = (weights @ design.y) / total
    estimates[empty] = np.nan

    if scalar:
        return float(estimates[0])
    return estimates


def kernel_weights(
    x_train: ArrayLike,
    x_query: ArrayLike,
    radius: float,
    *,
    kernel: str = 'uniform',
    normalize: bool = False,
) -> NDArray[np.floating[Any]]:
    """
    Kernel weights of each training point for each query point.

    Returns:
        Shape (n,) for a scalar query, (m, n) for an array of queries.
        With normalize=True each non-empty row sums to 1; empty rows stay 0.
    """
    x_arr = check_array(x_train, 'x_train')
    check_1d(x_arr, 'x_train')
    check_finite(x_arr, 'x_train')
    queries, scalar = _check_query(x_query)
    radius = check_nonnegative_scalar(radius, 'radius', allow_inf=True)
    kernel = _check_kernel(kernel)

    weights = weight_matrix(x_arr, queries, radius, kernel)
    if normalize:
        total = weights.sum(axis=1, keepdims=True)
        np.divide(weights, total, out=weights, where=total > 0)
    return weights[0] if scalar else weights


def truncated_power_basis(
    x: ArrayLike,
    degree: int,
    knots: ArrayLike = (),
) -> NDArray[np.floating[Any]]:
    """
    Truncated-power spline design matrix.

    Columns are 1, x, …, x^(K−1) followed by (x − κ_ℓ)₊^K for each knot.

    Returns:
        Array of shape (len(x), degree + len(knots))
    """
    x_arr = check_array(x, 'x')
    if x_arr.ndim == 0:
        x_arr = x_arr.reshape(1)
    check_1d(x_arr, 'x')
    check_finite(x_arr, 'x')
    degree = check_positive_int(degree, 'degree')
    return basis_matrix(x_arr, degree, _check_knots(knots))


def spline_fit(
    x: ArrayLike,
    y: ArrayLike,
    degree: int,
    knots: ArrayLike = (),
    *,
    tol: float = SPLINE_RANK_TOL,
) -> SplineSolution:
    """
    Least-squares regression on a truncated-power spline basis.

    Args:
        x: Predictor (n,)
        y: Response (n,)
        degree: K ≥ 1. The basis holds powers 0..K−1 and truncated powers
            of degree K, so no knots gives polynomial regression of
            degree K − 1.
        knots: Strictly increasing interior knots (possibly empty)
        tol: Relative rank tolerance of the pivoted QR solve. Ill-conditioning
            above this tolerance is reported in info['condition_number'] and
            a warning rather than raised.

    Returns:
        SplineSolution

    Raises:
        ValidationError: If knots are not strictly increasing or degree < 1
        SingularMatrixError: If the basis is rank-deficient at tol

    Example:
        >>> result = spline_fit(x, y, degree=3, knots=[2.5, 5.0, 7.5])
        >>> result.predict(np.linspace(0, 10, 200))
    """
    degree = check_positive_int(degree, 'degree')
    knot_arr = _check_knots(knots)
    tol = check_nonnegative_scalar(tol, 'tol')
    design = SmoothingDesign.from_arrays(x, y)

    result = CPUSplineBackend(degree, knot_arr, tol).solve(design)
    for message in result.warnings:
        warnings.warn(message, RuntimeWarning, stacklevel=2)
    return SplineSolution(_result=result, _design=design)


# ---------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------

def _check_query(x_query: ArrayLike) -> tuple[NDArray[np.floating[Any]], bool]:
    queries = check_array(x_query, 'x_query')
    scalar = queries.ndim == 0
    if scalar:
        queries = queries.reshape(1)
    check_1d(queries, 'x_query')
    check_finite(queries, 'x_query')
    return queries, scalar


def _check_kernel(kernel: str) -> str:
    if kernel not in KERNELS:
        raise ValidationError(
            f"kernel: expected one of {sorted(KERNELS)}, got {kernel!r}"
        )
    return kernel


def _check_knots(knots: ArrayLike) -> NDArray[np.floating[Any]]:
    knot_arr = check_array(knots, 'knots')
    if knot_arr.ndim == 0:
        knot_arr = knot_arr.reshape(1)
    check_1d(knot_arr, 'knots')
    check_finite(knot_arr, 'knots')
    check_strictly_increasing(knot_arr, 'knots')
    knot_arr.setflags(write=False)
    return knot_arr
