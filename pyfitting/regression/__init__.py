"""
Penalized least squares and Poisson generalized linear models.

Public API:
    fit_ols(X, y) -> RegularizedSolution
    fit_ridge(X, y, lam) -> RegularizedSolution
    fit_lasso(X, y, lam, ...) -> RegularizedSolution
    cross_validate(X, y, lambda_grid, k_folds, method) -> (best_lambda, RegularizedSolution)
    cv_path(X, y, lambda_grid, k_folds, method) -> CrossValidationPath
    regularization_path(X, y, lambda_grid, method) -> ndarray
    fit_glm_poisson(X, y, tolerance, max_iter) -> GLMSolution

No intercept is ever added; include a column of ones in X when one is
wanted. Every column, intercept included, is penalized by ridge and LASSO.

Example:
    >>> from pyfitting.regression import cross_validate
    >>> lam, result = cross_validate(X, y, np.logspace(-3, 3, 13), 5, 'lasso')
    >>> print(result.summary())
"""

from pyfitting.regression.design import Design
from pyfitting.regression.families import Family, LogLink, Poisson
from pyfitting.regression.solution import (
    CrossValidationPath,
    GLMParams,
    GLMSolution,
    RegularizedParams,
    RegularizedSolution,
)
from pyfitting.regression.solvers import (
    cross_validate,
    cv_path,
    fit_glm_poisson,
    fit_lasso,
    fit_ols,
    fit_ridge,
    regularization_path,
)

__all__ = [
    "fit_ols",
    "fit_ridge",
    "fit_lasso",
    "cross_validate",
    "cv_path",
    "regularization_path",
    "fit_glm_poisson",
    "Design",
    "Family",
    "LogLink",
    "Poisson",
    "RegularizedParams",
    "RegularizedSolution",
    "CrossValidationPath",
    "GLMParams",
    "GLMSolution",
]
