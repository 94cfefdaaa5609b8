"""
Regression solution types.

Contains the parameter payloads computed by backends and the user-facing
solution wrappers. Solutions are frozen: a re-fit produces a new object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from pyfitting.core.result import Result
from pyfitting.core.exceptions import DimensionError, ValidationError
from pyfitting.core.validation import check_array, check_finite

if TYPE_CHECKING:
    from pyfitting.regression.design import Design


# =====================================================================
# Ridge / LASSO / OLS
# =====================================================================

@dataclass(frozen=True)
class RegularizedParams:
    """
    Parameter payload for penalized (and unpenalized) least squares.

    Attributes:
        coefficients: β̂ (p,)
        fitted_values: Xβ̂ (n,)
        residuals: y − Xβ̂ (n,)
        rss: Residual sum of squares
        tss: Total sum of squares about the mean of y
        lam: Penalty strength λ (0 for OLS)
        objective: Value of the minimized objective at β̂
        effective_df: Effective degrees of freedom (trace of the hat
            matrix for ridge/OLS, number of non-zero coefficients for LASSO)
        n_iter: Coordinate-descent cycles (0 for closed-form methods)
        converged: Always True for closed-form methods
        max_change: Largest coefficient change in the final cycle
    """
    coefficients: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    rss: float
    tss: float
    lam: float
    objective: float
    effective_df: float
    n_iter: int = 0
    converged: bool = True
    max_change: float = 0.0


@dataclass(frozen=True)
class RegularizedSolution:
    """
    User-facing results of a ridge, LASSO or OLS fit.

    Wraps the backend Result and provides convenient accessors.
    """
    _result: Result[RegularizedParams]
    _design: 'Design'

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def mse(self) -> float:
        """Mean squared training error."""
        return self.rss / self._design.n

    @property
    def lam(self) -> float:
        return self._result.params.lam

    @property
    def method(self) -> str:
        return self._result.info['method']

    @property
    def objective(self) -> float:
        return self._result.params.objective

    @property
    def effective_df(self) -> float:
        return self._result.params.effective_df

    @property
    def n_nonzero(self) -> int:
        return int(np.count_nonzero(self.coefficients))

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def xtx_condition_number(self) -> float:
        """Condition number of X'X alone (before any penalty)."""
        return self._result.info['xtx_condition_number']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def predict(self, X_new: ArrayLike) -> NDArray[np.floating[Any]]:
        """Predict responses for new observations (m x p)."""
        return _predict_linear(X_new, self.coefficients)

    def summary(self) -> str:
        """Generate a plain-text summary."""
        title = {
            'ridge': 'Ridge Regression Results',
            'lasso': 'LASSO Regression Results',
            'ols': 'Linear Regression Results',
        }.get(self.method, 'Regression Results')

        lines = [
            title,
            "=" * 60,
            f"Observations: {self._design.n}",
            f"Predictors: {self._design.p}",
            f"Lambda: {self.lam:.6g}",
            f"R-squared: {self.r_squared:.6f}",
            f"Effective DF: {self.effective_df:.3f}",
            f"cond(X'X): {self.xtx_condition_number:.3e}",
        ]
        if self.method == 'lasso':
            lines.append(
                f"Coordinate descent: {self.n_iter} cycles, "
                f"converged={self.converged}, non-zero={self.n_nonzero}"
            )
        lines += [
            "",
            "Coefficients:",
            "-" * 60,
        ]
        for i, coef in enumerate(self.coefficients):
            if np.isnan(coef):
                lines.append(f"  β[{i}]:         (aliased)")
            else:
                lines.append(f"  β[{i}]: {coef:14.6f}")
        lines.append("-" * 60)
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"RegularizedSolution(method={self.method!r}, lam={self.lam:.4g}, "
            f"n={self._design.n}, p={self._design.p}, r_squared={self.r_squared:.4f})"
        )


# =====================================================================
# Cross-validation
# =====================================================================

@dataclass(frozen=True)
class CrossValidationPath:
    """
    Held-out errors over a λ grid.

    Attributes:
        lambda_grid: Candidate penalties, in the order supplied
        fold_errors: Mean held-out squared error, shape (k_folds, n_lambda)
        mean_errors: fold_errors averaged over folds (n_lambda,)
        std_errors: Standard error of mean_errors across folds (n_lambda,)
        best_index: Index into lambda_grid of the selected penalty
        method: 'ridge' or 'lasso'
        k_folds: Number of folds
    """
    lambda_grid: NDArray[np.floating[Any]]
    fold_errors: NDArray[np.floating[Any]]
    mean_errors: NDArray[np.floating[Any]]
    std_errors: NDArray[np.floating[Any]]
    best_index: int
    method: str
    k_folds: int

    @property
    def best_lambda(self) -> float:
        return float(self.lambda_grid[self.best_index])

    @property
    def best_error(self) -> float:
        return float(self.mean_errors[self.best_index])


# =====================================================================
# Poisson GLM
# =====================================================================

@dataclass(frozen=True)
class GLMParams:
    """
    Parameter payload for a GLM fitted by IRLS.

    Attributes:
        coefficients: β̂ (p,)
        covariance: Asymptotic covariance (X'ŴX)⁻¹ (p x p)
        fitted_values: μ̂ = g⁻¹(Xβ̂) (n,)
        linear_predictor: η̂ = Xβ̂ (n,)
        residuals_response: y − μ̂
        residuals_pearson: (y − μ̂) / √V(μ̂)
        residuals_deviance: signed √(unit deviance)
        deviance: Model deviance
        null_deviance: Deviance of the null model
        log_likelihood: Maximized log-likelihood
        aic: −2 loglik + 2 rank
        df_residual: n − p
        df_null: n − 1 with an intercept column, n otherwise
        n_iter: IRLS iterations
        converged: Always True (non-convergence raises)
        step_size: ||Δβ|| of the final iteration
        score_norm: Norm of the score X'(y − μ) at the returned coefficients
        family_name: e.g. 'poisson'
        link_name: e.g. 'log'
    """
    coefficients: NDArray[np.floating[Any]]
    covariance: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    linear_predictor: NDArray[np.floating[Any]]
    residuals_response: NDArray[np.floating[Any]]
    residuals_pearson: NDArray[np.floating[Any]]
    residuals_deviance: NDArray[np.floating[Any]]
    deviance: float
    null_deviance: float
    log_likelihood: float
    aic: float
    df_residual: int
    df_null: int
    n_iter: int
    converged: bool
    step_size: float
    score_norm: float
    family_name: str
    link_name: str


@dataclass(frozen=True)
class GLMSolution:
    """
    User-facing GLM results.

    Standard errors, z statistics and p-values are Wald quantities derived
    from the reported covariance matrix.
    """
    _result: Result[GLMParams]
    _design: 'Design'

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def covariance(self) -> NDArray[np.floating[Any]]:
        return self._result.params.covariance

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        return np.sqrt(np.maximum(np.diag(self.covariance), 0.0))

    @property
    def z_statistics(self) -> NDArray[np.floating[Any]]:
        se = self.standard_errors
        with np.errstate(divide='ignore', invalid='ignore'):
            z = self.coefficients / se
        return np.where(np.isfinite(z), z, np.nan)

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        return 2.0 * stats.norm.sf(np.abs(self.z_statistics))

    def confint(self, level: float = 0.95) -> NDArray[np.floating[Any]]:
        """Wald confidence intervals, shape (p, 2)."""
        if not 0.0 < level < 1.0:
            raise ValidationError(f"level: must be in (0, 1), got {level}")
        q = stats.norm.ppf(0.5 + level / 2.0)
        half = q * self.standard_errors
        return np.column_stack([self.coefficients - half, self.coefficients + half])

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def linear_predictor(self) -> NDArray[np.floating[Any]]:
        return self._result.params.linear_predictor

    @property
    def residuals_response(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals_response

    @property
    def residuals_pearson(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals_pearson

    @property
    def residuals_deviance(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals_deviance

    @property
    def deviance(self) -> float:
        return self._result.params.deviance

    @property
    def null_deviance(self) -> float:
        return self._result.params.null_deviance

    @property
    def log_likelihood(self) -> float:
        return self._result.params.log_likelihood

    @property
    def aic(self) -> float:
        return self._result.params.aic

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def df_null(self) -> int:
        return self._result.params.df_null

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def score_norm(self) -> float:
        """||X'(y − μ̂)||₂ at the fitted coefficients."""
        return self._result.params.score_norm

    @property
    def family_name(self) -> str:
        return self._result.params.family_name

    @property
    def link_name(self) -> str:
        return self._result.params.link_name

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def predict(
        self,
        X_new: ArrayLike,
        type: Literal['response', 'link'] = 'response',
    ) -> NDArray[np.floating[Any]]:
        """
        Predict for new observations.

        Args:
            X_new: New design rows (m x p)
            type: 'link' for η = Xβ, 'response' for μ = exp(η)
        """
        eta = _predict_linear(X_new, self.coefficients)
        if type == 'link':
            return eta
        if type == 'response':
            return np.exp(eta)
        raise ValidationError(f"type: expected 'response' or 'link', got {type!r}")

    def summary(self) -> str:
        """Generate R-style summary output."""
        lines = [
            "Generalized Linear Model Results",
            "=" * 70,
            f"Family: {self.family_name}    Link: {self.link_name}",
            f"Observations: {self._design.n}",
            f"Iterations: {self.n_iter}",
            "",
            "Coefficients:",
            "-" * 70,
            f"{'':8} {'Estimate':>12} {'Std.Error':>12} {'z value':>10} {'Pr(>|z|)':>12}",
            "-" * 70,
        ]
        for i, (coef, se, z, p) in enumerate(zip(
            self.coefficients, self.standard_errors, self.z_statistics, self.p_values
        )):
            lines.append(f"  β[{i}]: {coef:12.6f} {se:12.6f} {z:10.3f} {p:12.4g}")
        lines += [
            "-" * 70,
            f"Null deviance: {self.null_deviance:.4f} on {self.df_null} DF",
            f"Residual deviance: {self.deviance:.4f} on {self.df_residual} DF",
            f"AIC: {self.aic:.4f}",
            f"Backend: {self.backend_name}",
        ]
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"GLMSolution(family={self.family_name!r}, n={self._design.n}, "
            f"p={self._design.p}, deviance={self.deviance:.4f})"
        )


def _predict_linear(
    X_new: ArrayLike,
    coefficients: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    X_arr = check_array(X_new, 'X_new')
    if X_arr.ndim == 1:
        X_arr = X_arr.reshape(-1, 1) if coefficients.shape[0] == 1 else X_arr.reshape(1, -1)
    if X_arr.ndim != 2 or X_arr.shape[1] != coefficients.shape[0]:
        raise DimensionError(
            f"X_new: expected {coefficients.shape[0]} columns, got shape {X_arr.shape}"
        )
    check_finite(X_arr, 'X_new')
    return X_arr @ coefficients
