"""
K-fold cross-validation over a penalty grid.

Each fold is independent: it fits every λ on the other k − 1 folds and
scores mean squared error on itself. Folds may therefore be evaluated in
parallel; their error rows are stacked only after every fold finishes,
so no partial result is ever visible.

When n_jobs != 1 the folds are dispatched with joblib using threads.
The heavy work is LAPACK (Cholesky, matrix products), which releases the
GIL, so threads avoid the cost of pickling the design for each worker.
"""

from __future__ import annotations

from typing import Any, Literal
import numpy as np
from numpy.typing import NDArray
from joblib import Parallel, delayed

from pyfitting.core.result import Result
from pyfitting.regression.design import Design
from pyfitting.regression.solution import CrossValidationPath, RegularizedParams
from pyfitting.regression.backends.cpu import CPURidgeBackend
from pyfitting.regression.backends.cpu_lasso import CPULassoBackend

Method = Literal['ridge', 'lasso']


def make_folds(n: int, k_folds: int, seed: int | None) -> list[NDArray[np.intp]]:
    """Partition range(n) into k_folds nearly equal test folds.

    Folds are contiguous blocks when seed is None, otherwise a seeded
    random permutation is split. Each fold is returned sorted.
    """
    order = np.arange(n)
    if seed is not None:
        order = np.random.default_rng(seed).permutation(n)
    return [np.sort(fold) for fold in np.array_split(order, k_folds)]


def fit_penalized(
    design: Design,
    lam: float,
    method: Method,
    *,
    tol: float,
    max_iter: int,
    warm_start: NDArray[np.floating[Any]] | None = None,
) -> Result[RegularizedParams]:
    """Fit one penalty on one design with the backend for method."""
    if method == 'ridge':
        return CPURidgeBackend(lam).solve(design)
    if method == 'lasso':
        return CPULassoBackend(lam, tol, max_iter, warm_start=warm_start).solve(design)
    raise ValueError(f"Unknown method: {method!r}")


def coefficient_path(
    design: Design,
    lambda_grid: NDArray[np.floating[Any]],
    method: Method,
    *,
    tol: float,
    max_iter: int,
) -> tuple[NDArray[np.floating[Any]], tuple[str, ...]]:
    """Coefficients for each λ, shape (n_lambda, p), in grid order.

    LASSO fits run from the largest λ down, each warm-started from the
    previous solution.
    """
    coefs = np.empty((len(lambda_grid), design.p), dtype=np.float64)
    collected: list[str] = []
    warm: NDArray | None = None
    for i in np.argsort(-lambda_grid, kind='stable'):
        result = fit_penalized(
            design, float(lambda_grid[i]), method,
            tol=tol, max_iter=max_iter, warm_start=warm,
        )
        coefs[i] = result.params.coefficients
        collected.extend(result.warnings)
        if method == 'lasso':
            warm = result.params.coefficients
    return coefs, tuple(collected)


def _fold_errors(
    design: Design,
    test_rows: NDArray[np.intp],
    lambda_grid: NDArray[np.floating[Any]],
    method: Method,
    tol: float,
    max_iter: int,
) -> tuple[NDArray[np.floating[Any]], tuple[str, ...]]:
    """Held-out mean squared error of every λ for one fold."""
    train_mask = np.ones(design.n, dtype=bool)
    train_mask[test_rows] = False
    train = design.subset(np.flatnonzero(train_mask))
    test = design.subset(test_rows)

    coefs, fold_warnings = coefficient_path(
        train, lambda_grid, method, tol=tol, max_iter=max_iter,
    )
    residuals = test.y[np.newaxis, :] - coefs @ test.X.T
    return np.mean(residuals ** 2, axis=1), fold_warnings


def run_cv(
    design: Design,
    lambda_grid: NDArray[np.floating[Any]],
    k_folds: int,
    method: Method,
    *,
    seed: int | None,
    n_jobs: int,
    tol: float,
    max_iter: int,
) -> tuple[CrossValidationPath, tuple[str, ...]]:
    """Evaluate every (fold, λ) pair and select the penalty.

    Selection: minimum mean held-out error; exact ties go to the larger λ.
    """
    folds = make_folds(design.n, k_folds, seed)

    # Sequential path avoids joblib overhead for the default n_jobs=1
    if n_jobs == 1:
        outputs = [
            _fold_errors(design, fold, lambda_grid, method, tol, max_iter)
            for fold in folds
        ]
    else:
        outputs = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_fold_errors)(design, fold, lambda_grid, method, tol, max_iter)
            for fold in folds
        )

    fold_errors = np.vstack([errors for errors, _ in outputs])
    collected = tuple(w for _, fold_warnings in outputs for w in fold_warnings)

    mean_errors = fold_errors.mean(axis=0)
    std_errors = fold_errors.std(axis=0, ddof=1) / np.sqrt(k_folds)

    best = np.min(mean_errors)
    ties = np.flatnonzero(mean_errors == best)
    best_index = int(ties[np.argmax(lambda_grid[ties])])

    path = CrossValidationPath(
        lambda_grid=lambda_grid,
        fold_errors=fold_errors,
        mean_errors=mean_errors,
        std_errors=std_errors,
        best_index=best_index,
        method=method,
        k_folds=k_folds,
    )
    return path, collected
