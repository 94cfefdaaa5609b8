"""
Public Newton-Raphson API.

The contract is purely local: the caller supplies a starting point close
enough to the desired root or extremum. Nothing here searches for one,
and nothing is retried automatically.
"""

from __future__ import annotations

import warnings
from typing import Any, Callable
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyfitting.core.compute.optimization.iterative import iterate, IterationResult
from pyfitting.core.compute.tolerances import (
    NEWTON_TOL,
    NEWTON_MAX_ITER,
    ZERO_DERIVATIVE_TOL,
)
from pyfitting.core.exceptions import DimensionError, ValidationError
from pyfitting.core.validation import (
    check_array,
    check_finite,
    check_nonnegative_scalar,
    check_positive_int,
)
from pyfitting.optimize._newton import NewtonStep, ScalarNewtonStep
from pyfitting.optimize.solution import NewtonDiagnostics


def newton_raphson(
    theta0: ArrayLike,
    grad_fn: Callable[[Any], Any],
    hess_fn: Callable[[Any], Any],
    tolerance: float = NEWTON_TOL,
    max_iter: int = NEWTON_MAX_ITER,
) -> tuple[float | NDArray[np.floating[Any]], NewtonDiagnostics]:
    """
    Find a stationary point of f by Newton-Raphson.

    Iterates θₜ₊₁ = θₜ − H(θₜ)⁻¹ ∇f(θₜ) until ||θₜ₊₁ − θₜ|| < tolerance or
    max_iter updates have been made. Passing a system F and its Jacobian in
    place of ∇f and H finds a root of F.

    Args:
        theta0: Starting point. A scalar runs the one-dimensional case, in
            which grad_fn and hess_fn receive and return floats. A 1D
            array-like of length p runs the multivariate case, in which
            grad_fn returns (p,) and hess_fn returns (p, p).
        grad_fn: θ -> ∇f(θ)
        hess_fn: θ -> H(θ)
        tolerance: Convergence threshold on the step size
        max_iter: Maximum number of Newton updates

    Returns:
        (theta, diagnostics). theta has the same shape as theta0.
        If the budget is exhausted, diagnostics.converged is False and a
        RuntimeWarning is emitted.

    Raises:
        NonInvertibleHessianError: If H(θₜ) is singular at some iterate
        DimensionError: If callables return arrays of the wrong shape
        NumericalError: If an iterate becomes non-finite
        ValidationError: If inputs are invalid

    Example:
        >>> fprime = lambda x: 3 * x**3 - 3 * x**2 - 3 * x + 1
        >>> fsecond = lambda x: 9 * x**2 - 6 * x - 3
        >>> x, diag = newton_raphson(-0.5, fprime, fsecond, tolerance=1e-3)
        >>> round(x, 3)
        -0.793
    """
    theta_arr = check_array(theta0, 'theta0')
    check_finite(theta_arr, 'theta0')
    tol, max_iter = _check_controls(tolerance, max_iter)

    scalar = theta_arr.ndim == 0
    if scalar:
        theta_arr = theta_arr.reshape(1)
    elif theta_arr.ndim != 1:
        raise DimensionError(
            f"theta0: expected a scalar or 1D array, got shape {theta_arr.shape}"
        )
    if theta_arr.shape[0] == 0:
        raise ValidationError("theta0: must have at least one parameter")

    step = NewtonStep(grad_fn, hess_fn, p=theta_arr.shape[0], scalar=scalar)
    outcome = iterate(step, theta_arr, tol=tol, max_iter=max_iter)
    diagnostics = _diagnostics(outcome, step.max_condition_number, step.name, tol)

    theta = float(outcome.theta[0]) if scalar else outcome.theta
    return theta, diagnostics


def newton_scalar(
    f: Callable[[float], float],
    fprime: Callable[[float], float],
    x0: float,
    tolerance: float = NEWTON_TOL,
    max_iter: int = NEWTON_MAX_ITER,
    *,
    zero_tol: float = ZERO_DERIVATIVE_TOL,
) -> tuple[float, NewtonDiagnostics]:
    """
    Find a root of a scalar function by Newton's method.

    Iterates xₜ₊₁ = xₜ − f(xₜ)/f′(xₜ).

    Args:
        f: Function whose root is sought
        fprime: Its derivative
        x0: Starting point
        tolerance: Convergence threshold on |xₜ₊₁ − xₜ|
        max_iter: Maximum number of updates
        zero_tol: |f′(x)| at or below this raises ZeroDerivativeError

    Returns:
        (x, diagnostics)

    Raises:
        ZeroDerivativeError: If f′ vanishes (or is non-finite) at an iterate
        NumericalError: If an iterate becomes non-finite
        ValidationError: If inputs are invalid
    """
    x_arr = check_array(x0, 'x0')
    if x_arr.ndim != 0:
        raise DimensionError(f"x0: expected a scalar, got shape {x_arr.shape}")
    check_finite(x_arr, 'x0')
    tol, max_iter = _check_controls(tolerance, max_iter)
    zero_tol = check_nonnegative_scalar(zero_tol, 'zero_tol')

    step = ScalarNewtonStep(f, fprime, zero_tol=zero_tol)
    outcome = iterate(step, x_arr.reshape(1), tol=tol, max_iter=max_iter)
    return float(outcome.theta[0]), _diagnostics(outcome, 1.0, step.name, tol)


def _check_controls(tolerance: float, max_iter: int) -> tuple[float, int]:
    tol = check_nonnegative_scalar(tolerance, 'tolerance')
    if tol == 0.0:
        raise ValidationError("tolerance: must be > 0")
    return tol, check_positive_int(max_iter, 'max_iter')


def _diagnostics(
    outcome: IterationResult,
    max_condition_number: float,
    method: str,
    tol: float,
) -> NewtonDiagnostics:
    if not outcome.converged:
        warnings.warn(
            f"{method} did not converge in {outcome.iterations} iterations "
            f"(last step {outcome.step_size:.3e}, tolerance {tol:.1e})",
            RuntimeWarning,
            stacklevel=3,
        )
    return NewtonDiagnostics(
        iterations=outcome.iterations,
        converged=outcome.converged,
        step_size=outcome.step_size,
        gradient_norm=outcome.gradient_norm,
        max_condition_number=max_condition_number,
        method=method,
    )
