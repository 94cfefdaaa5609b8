"""
Solver dispatch for regression.

This module provides the public fitting functions. Each one validates its
inputs, constructs a Design, runs the backend and wraps the result. This
is the boundary: validate here, trust everywhere else.
"""

from __future__ import annotations

import warnings
from dataclasses import replace
from typing import Any, Literal
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyfitting.core.result import Result
from pyfitting.core.exceptions import DimensionError, ValidationError
from pyfitting.core.compute.tolerances import (
    DEFAULT_K_FOLDS,
    IRLS_MAX_ITER,
    IRLS_PILOT_RIDGE_LAMBDA,
    IRLS_TOL,
    LASSO_MAX_ITER,
    LASSO_TOL,
)
from pyfitting.core.validation import (
    check_array,
    check_finite,
    check_nonnegative_scalar,
    check_positive_int,
)
from pyfitting.regression.design import Design
from pyfitting.regression.families import Poisson
from pyfitting.regression.solution import (
    CrossValidationPath,
    GLMSolution,
    RegularizedSolution,
)
from pyfitting.regression.backends.cpu import CPUQRBackend, CPURidgeBackend
from pyfitting.regression.backends.cpu_lasso import CPULassoBackend
from pyfitting.regression.backends.cpu_glm import CPUIRLSBackend
from pyfitting.regression._cv import Method, coefficient_path, fit_penalized, run_cv


def fit_ols(X: ArrayLike, y: ArrayLike) -> RegularizedSolution:
    """
    Fit ordinary least squares by pivoted QR.

    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)

    Returns:
        RegularizedSolution with lam = 0 and method 'ols'

    Raises:
        SingularMatrixError: If X is rank-deficient (the message advises a
            penalized fit)
    """
    design = Design.from_arrays(X, y)
    result = CPUQRBackend().solve(design)
    _emit(result)
    return RegularizedSolution(_result=result, _design=design)


def fit_ridge(X: ArrayLike, y: ArrayLike, lam: float) -> RegularizedSolution:
    """
    Fit ridge regression in closed form.

    Solves β̂ = (X'X + λI)⁻¹X'y. No intercept is added and every column is
    penalized; centre the data or include a column of ones as needed.

    Args:
        X: Design matrix (n x p). p > n is allowed when lam > 0.
        y: Response vector (n,)
        lam: Penalty λ ≥ 0. λ = 0 reproduces ordinary least squares.

    Returns:
        RegularizedSolution. info['xtx_condition_number'] reports cond(X'X).
        A warning is attached when λ = 0 and X'X is ill-conditioned.

    Raises:
        ValidationError: If lam is negative or non-finite
        DimensionError: If X and y are inconsistent
        SingularMatrixError: If the system cannot be solved

    Example:
        >>> result = fit_ridge(X, y, lam=1.0)
        >>> result.coefficients
    """
    lam = check_nonnegative_scalar(lam, 'lam')
    design = Design.from_arrays(X, y)
    result = CPURidgeBackend(lam).solve(design)
    _emit(result)
    return RegularizedSolution(_result=result, _design=design)


def fit_lasso(
    X: ArrayLike,
    y: ArrayLike,
    lam: float,
    *,
    tol: float = LASSO_TOL,
    max_iter: int = LASSO_MAX_ITER,
    warm_start: ArrayLike | None = None,
) -> RegularizedSolution:
    """
    Fit the LASSO by cyclic coordinate descent.

    Minimizes ||y − Xβ||² + λ||β||₁.

    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)
        lam: Penalty λ ≥ 0; +inf is accepted and yields β = 0.
            Any λ ≥ info['lambda_max'] = 2·max|X'y| yields β = 0.
        tol: Stop once the largest coefficient change in a cycle is < tol
        max_iter: Maximum number of full cycles
        warm_start: Optional starting coefficients (p,)

    Returns:
        RegularizedSolution. If max_iter is reached, converged is False and
        a warning is attached and emitted.

    Raises:
        ValidationError: If lam is negative or NaN
        DimensionError: If shapes are inconsistent
    """
    lam = check_nonnegative_scalar(lam, 'lam', allow_inf=True)
    tol, max_iter = _check_iteration_controls(tol, max_iter)
    design = Design.from_arrays(X, y)

    start = None
    if warm_start is not None:
        start = check_array(warm_start, 'warm_start')
        check_finite(start, 'warm_start')
        if start.shape != (design.p,):
            raise DimensionError(
                f"warm_start: expected shape ({design.p},), got {start.shape}"
            )

    result = CPULassoBackend(lam, tol, max_iter, warm_start=start).solve(design)
    _emit(result)
    return RegularizedSolution(_result=result, _design=design)


def cv_path(
    X: ArrayLike,
    y: ArrayLike,
    lambda_grid: ArrayLike,
    k_folds: int = DEFAULT_K_FOLDS,
    method: Method = 'ridge',
    *,
    seed: int | None = None,
    n_jobs: int = 1,
    tol: float = LASSO_TOL,
    max_iter: int = LASSO_MAX_ITER,
) -> CrossValidationPath:
    """
    K-fold held-out errors for every λ in a grid.

    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)
        lambda_grid: Candidate penalties (non-negative, finite)
        k_folds: Number of folds, 2 ≤ k_folds ≤ n
        method: 'ridge' or 'lasso'
        seed: None for contiguous folds; an int shuffles observations with
            numpy.random.default_rng(seed) before splitting
        n_jobs: Number of folds evaluated concurrently (joblib threads);
            1 runs sequentially, -1 uses all cores
        tol, max_iter: Coordinate-descent controls (LASSO only)

    Returns:
        CrossValidationPath with per-fold and mean errors and the selected λ
    """
    design, grid, k_folds, method, n_jobs = _check_cv_inputs(
        X, y, lambda_grid, k_folds, method, n_jobs
    )
    tol, max_iter = _check_iteration_controls(tol, max_iter)
    path, fold_warnings = run_cv(
        design, grid, k_folds, method,
        seed=seed, n_jobs=n_jobs, tol=tol, max_iter=max_iter,
    )
    _emit_messages(_unique(fold_warnings))
    return path


def cross_validate(
    X: ArrayLike,
    y: ArrayLike,
    lambda_grid: ArrayLike,
    k_folds: int = DEFAULT_K_FOLDS,
    method: Method = 'ridge',
    *,
    seed: int | None = None,
    n_jobs: int = 1,
    tol: float = LASSO_TOL,
    max_iter: int = LASSO_MAX_ITER,
) -> tuple[float, RegularizedSolution]:
    """
    Select λ by k-fold cross-validation and refit on all data.

    For each λ, fits on k − 1 folds and scores mean squared error on the
    held-out fold; fold errors are averaged and the λ with the smallest
    mean wins. Exact ties go to the larger λ (stronger regularization).

    Args:
        See cv_path.

    Returns:
        (best_lambda, solution) where solution is fitted on the full data at
        best_lambda. solution.info additionally carries 'lambda_grid',
        'cv_errors', 'cv_std_errors' and 'k_folds'.

    Example:
        >>> lam, result = cross_validate(X, y, np.logspace(-3, 3, 13), 5, 'ridge')
    """
    design, grid, k_folds, method, n_jobs = _check_cv_inputs(
        X, y, lambda_grid, k_folds, method, n_jobs
    )
    tol, max_iter = _check_iteration_controls(tol, max_iter)
    path, fold_warnings = run_cv(
        design, grid, k_folds, method,
        seed=seed, n_jobs=n_jobs, tol=tol, max_iter=max_iter,
    )

    result = fit_penalized(design, path.best_lambda, method, tol=tol, max_iter=max_iter)
    result = replace(
        result,
        info={
            **result.info,
            'lambda_grid': path.lambda_grid,
            'cv_errors': path.mean_errors,
            'cv_std_errors': path.std_errors,
            'k_folds': k_folds,
        },
        warnings=result.warnings + _unique(fold_warnings),
    )
    _emit(result)
    return path.best_lambda, RegularizedSolution(_result=result, _design=design)


def regularization_path(
    X: ArrayLike,
    y: ArrayLike,
    lambda_grid: ArrayLike,
    method: Method = 'lasso',
    *,
    tol: float = LASSO_TOL,
    max_iter: int = LASSO_MAX_ITER,
) -> NDArray[np.floating[Any]]:
    """
    Coefficients along a λ grid.

    Returns:
        Array of shape (len(lambda_grid), p); row i is the fit at
        lambda_grid[i]. LASSO fits are warm-started from the next larger λ.
    """
    design = Design.from_arrays(X, y)
    grid = _check_lambda_grid(lambda_grid)
    method = _check_method(method)
    tol, max_iter = _check_iteration_controls(tol, max_iter)
    coefs, path_warnings = coefficient_path(design, grid, method, tol=tol, max_iter=max_iter)
    _emit_messages(_unique(path_warnings))
    return coefs


def fit_glm_poisson(
    X: ArrayLike,
    y: ArrayLike,
    tolerance: float = IRLS_TOL,
    max_iter: int = IRLS_MAX_ITER,
    *,
    init: Literal['zero', 'ridge'] = 'ridge',
    ridge_lambda: float = IRLS_PILOT_RIDGE_LAMBDA,
) -> GLMSolution:
    """
    Fit a Poisson log-linear model by IRLS.

    Model: y | x ~ Poisson(μ), log μ = Xβ. No intercept is added; include a
    column of ones in X for one.

    Args:
        X: Design matrix (n x p)
        y: Non-negative counts (n,)
        tolerance: Convergence threshold on ||Δβ||₂
        max_iter: Maximum IRLS iterations
        init: 'ridge' (default) seeds β with a ridge fit of log(max(y, 0.1))
            on X; 'zero' starts from β = 0
        ridge_lambda: Penalty of the pilot ridge fit

    Returns:
        GLMSolution with coefficients, covariance (X'ŴX)⁻¹, standard errors,
        deviance and AIC

    Raises:
        ValidationError: If y has negative values or inputs are invalid
        ConvergenceError: If the iteration cap is reached
        SingularMatrixError: If X'WX becomes non-invertible

    Example:
        >>> X = np.column_stack([np.ones(n), x])
        >>> result = fit_glm_poisson(X, counts)
        >>> print(result.summary())
    """
    tol, max_iter = _check_iteration_controls(tolerance, max_iter, tol_name='tolerance')
    ridge_lambda = check_nonnegative_scalar(ridge_lambda, 'ridge_lambda')
    if init not in ('zero', 'ridge'):
        raise ValidationError(f"init: expected 'zero' or 'ridge', got {init!r}")

    design = Design.from_arrays(X, y)
    if np.any(design.y < 0):
        raise ValidationError(
            f"y: Poisson responses must be non-negative, found "
            f"{int(np.sum(design.y < 0))} negative values"
        )

    backend = CPUIRLSBackend(
        Poisson(), tol=tol, max_iter=max_iter, init=init, ridge_lambda=ridge_lambda,
    )
    result = backend.solve(design)
    _emit(result)
    return GLMSolution(_result=result, _design=design)


# ---------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------

def _check_iteration_controls(
    tol: float, max_iter: int, tol_name: str = 'tol',
) -> tuple[float, int]:
    tol = check_nonnegative_scalar(tol, tol_name)
    if tol == 0.0:
        raise ValidationError(f"{tol_name}: must be > 0")
    return tol, check_positive_int(max_iter, 'max_iter')


def _check_lambda_grid(lambda_grid: ArrayLike) -> NDArray[np.floating[Any]]:
    grid = check_array(lambda_grid, 'lambda_grid')
    if grid.ndim == 0:
        grid = grid.reshape(1)
    if grid.ndim != 1 or grid.shape[0] == 0:
        raise DimensionError(
            f"lambda_grid: expected a non-empty 1D sequence, got shape {grid.shape}"
        )
    check_finite(grid, 'lambda_grid')
    if np.any(grid < 0):
        raise ValidationError(f"lambda_grid: values must be >= 0, got min {grid.min()}")
    grid.setflags(write=False)
    return grid


def _check_method(method: str) -> Method:
    if method not in ('ridge', 'lasso'):
        raise ValidationError(f"method: expected 'ridge' or 'lasso', got {method!r}")
    return method


def _check_cv_inputs(X, y, lambda_grid, k_folds, method, n_jobs):
    design = Design.from_arrays(X, y)
    grid = _check_lambda_grid(lambda_grid)
    method = _check_method(method)
    k_folds = check_positive_int(k_folds, 'k_folds', minimum=2)
    if k_folds > design.n:
        raise ValidationError(
            f"k_folds: cannot exceed the number of observations ({design.n}), got {k_folds}"
        )
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)) or n_jobs == 0:
        raise ValidationError(f"n_jobs: expected a non-zero integer, got {n_jobs!r}")
    return design, grid, k_folds, method, int(n_jobs)


# ---------------------------------------------------------------------
# Warning propagation
# ---------------------------------------------------------------------

def _unique(messages: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(messages))


def _emit(result: Result) -> None:
    _emit_messages(result.warnings, stacklevel=4)


def _emit_messages(messages: tuple[str, ...], stacklevel: int = 3) -> None:
    # stacklevel counts from warnings.warn up to the public function's caller
    for message in messages:
        warnings.warn(message, RuntimeWarning, stacklevel=stacklevel)
