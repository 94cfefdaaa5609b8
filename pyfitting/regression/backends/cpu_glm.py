"""
CPU backend for Generalized Linear Models via IRLS.

Each IRLS iteration solves a weighted least squares problem on the normal
equations (X'WX)β = X'Wz by Cholesky. The loop itself is the shared
iterate() engine; IRLSStep is the update strategy.

Algorithm:
    Initialize β (zero vector, or a ridge pilot fit of log(max(y, 0.1)) on X)
    For iteration 1..max_iter:
        η = Xβ,  μ = g⁻¹(η)
        w = (dμ/dη)² / V(μ)                  # = μ for Poisson/log
        z = η + (y − μ) / (dμ/dη)            # = η + (y − μ)/μ
        β_new = (X'WX)⁻¹ X'Wz
        Stop once ||β_new − β||₂ < tol
    Covariance: (X'ŴX)⁻¹ evaluated at the final β
"""

from __future__ import annotations

from typing import Any, Literal
import numpy as np
from numpy.typing import NDArray

from pyfitting.core.result import Result
from pyfitting.core.exceptions import ConvergenceError
from pyfitting.core.compute.timing import Timer
from pyfitting.core.compute.linalg.solve import cross, gram, solve_spd
from pyfitting.core.compute.optimization.iterative import (
    OptimizerState,
    UpdateStep,
    iterate,
)
from pyfitting.regression.design import Design
from pyfitting.regression.families import Family
from pyfitting.regression.solution import GLMParams


class IRLSStep(UpdateStep):
    """One IRLS (Fisher scoring) update for a GLM family."""

    def __init__(self, X: NDArray, y: NDArray, family: Family):
        self._X = X
        self._y = y
        self._family = family
        self.max_condition_number = 0.0
        self.ill_conditioned_iterations = 0

    @property
    def name(self) -> str:
        return 'irls'

    def working_quantities(
        self, beta: NDArray,
    ) -> tuple[NDArray, NDArray, NDArray, NDArray]:
        """Return (η, μ, w, z) at β."""
        link = self._family.link
        eta = self._X @ beta
        mu = link.linkinv(eta)
        mu_eta_val = link.mu_eta(eta)
        w = (mu_eta_val ** 2) / self._family.variance(mu)
        z = eta + (self._y - mu) / mu_eta_val
        return eta, mu, w, z

    def score(self, eta: NDArray, mu: NDArray) -> NDArray:
        """Score of the log-likelihood; X'(y − μ) for a canonical link."""
        link = self._family.link
        return self._X.T @ (
            (self._y - mu) * link.mu_eta(eta) / self._family.variance(mu)
        )

    def gradient(self, theta: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        eta, mu, _, _ = self.working_quantities(theta)
        return self.score(eta, mu)

    def update(self, state: OptimizerState) -> NDArray[np.floating[Any]]:
        eta, mu, w, z = self.working_quantities(state.theta)

        XtWX = gram(self._X, w)
        state.gradient = self.score(eta, mu)
        state.hessian = XtWX

        sol = solve_spd(XtWX, cross(self._X, z, w), name="X'WX")
        self.max_condition_number = max(self.max_condition_number, sol.condition_number)
        if sol.ill_conditioned:
            self.ill_conditioned_iterations += 1
        return sol.x


class CPUIRLSBackend:
    """CPU backend using IRLS with a Cholesky inner solve.

    Args:
        family: GLM family specification
        tol: Convergence tolerance on ||Δβ||₂
        max_iter: Maximum IRLS iterations
        init: 'zero' starts from β = 0; 'ridge' starts from a ridge pilot fit
        ridge_lambda: Penalty of the pilot fit
    """

    def __init__(
        self,
        family: Family,
        tol: float,
        max_iter: int,
        init: Literal['zero', 'ridge'] = 'ridge',
        ridge_lambda: float = 1e-3,
    ):
        self._family = family
        self._tol = tol
        self._max_iter = max_iter
        self._init = init
        self._ridge_lambda = ridge_lambda

    @property
    def name(self) -> str:
        return 'cpu_irls'

    def solve(self, design: Design) -> Result[GLMParams]:
        """Run IRLS to fit the GLM.

        Returns:
            Result[GLMParams] with coefficients, covariance, deviance, etc.

        Raises:
            ConvergenceError: If ||Δβ|| is still ≥ tol after max_iter iterations
            SingularMatrixError: If X'WX becomes non-invertible (e.g. complete
                separation, or a column that is zero wherever y > 0)
        """
        timer = Timer()
        timer.start()

        X, y = design.X, design.y
        n, p = design.n, design.p
        family = self._family
        link = family.link
        warnings_list: list[str] = []

        # ------------------------------------------------------------------
        # Starting values
        # ------------------------------------------------------------------
        with timer.section('initialize'):
            beta0 = self._initial_beta(X, y)

        # ------------------------------------------------------------------
        # IRLS loop
        # ------------------------------------------------------------------
        step = IRLSStep(X, y, family)
        with timer.section('irls'):
            outcome = iterate(step, beta0, tol=self._tol, max_iter=self._max_iter)

        if not outcome.converged:
            raise ConvergenceError(
                f"IRLS did not converge in {self._max_iter} iterations "
                f"(||Δβ|| = {outcome.step_size:.3e}, tolerance {self._tol:.1e})",
                iterations=outcome.iterations,
                final_change=outcome.step_size,
                reason='max_iterations',
                threshold=self._tol,
            )

        coefficients = outcome.theta

        # ------------------------------------------------------------------
        # Covariance (X'ŴX)⁻¹ at the final estimate
        # ------------------------------------------------------------------
        with timer.section('covariance'):
            eta, mu, w, _ = step.working_quantities(coefficients)
            cov_sol = solve_spd(gram(X, w), np.eye(p), name="X'ŴX")
            covariance = cov_sol.x
            covariance = 0.5 * (covariance + covariance.T)

        if step.ill_conditioned_iterations > 0 or cov_sol.ill_conditioned:
            warnings_list.append(
                f"X'WX was ill-conditioned (max condition number "
                f"{max(step.max_condition_number, cov_sol.condition_number):.3e}); "
                f"standard errors may be unreliable"
            )

        # ------------------------------------------------------------------
        # Deviance, likelihood, residuals
        # ------------------------------------------------------------------
        with timer.section('statistics'):
            has_intercept = design.has_intercept()
            deviance = family.deviance(y, mu)
            null_deviance = self._null_deviance(y, family, has_intercept)
            log_likelihood = family.log_likelihood(y, mu)
            aic = family.aic(y, mu, p)

            resid_response = y - mu
            resid_pearson = resid_response / np.sqrt(family.variance(mu))
            resid_deviance = np.sign(resid_response) * np.sqrt(
                np.maximum(family.unit_deviance(y, mu), 0.0)
            )

        timer.stop()

        params = GLMParams(
            coefficients=coefficients,
            covariance=covariance,
            fitted_values=mu,
            linear_predictor=eta,
            residuals_response=resid_response,
            residuals_pearson=resid_pearson,
            residuals_deviance=resid_deviance,
            deviance=deviance,
            null_deviance=null_deviance,
            log_likelihood=log_likelihood,
            aic=aic,
            df_residual=n - p,
            df_null=n - 1 if has_intercept else n,
            n_iter=outcome.iterations,
            converged=True,
            step_size=outcome.step_size,
            score_norm=outcome.gradient_norm,
            family_name=family.name,
            link_name=link.name,
        )

        return Result(
            params=params,
            info={
                'method': 'irls',
                'init': self._init,
                'converged': True,
                'iterations': outcome.iterations,
                'max_condition_number': step.max_condition_number,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _initial_beta(self, X: NDArray, y: NDArray) -> NDArray:
        p = X.shape[1]
        if self._init == 'zero':
            return np.zeros(p, dtype=np.float64)

        # Ridge pilot: regress g(μ₀) on X with a small penalty
        eta0 = self._family.link.link(self._family.initialize(y))
        A = gram(X) + self._ridge_lambda * np.eye(p)
        return solve_spd(A, cross(X, eta0), name="X'X + λI (pilot)").x

    @staticmethod
    def _null_deviance(y: NDArray, family: Family, has_intercept: bool) -> float:
        """Deviance of the null model.

        With an intercept column the null model fits the overall mean;
        without one it is μ = g⁻¹(0).
        """
        if has_intercept:
            mu_null = np.full_like(y, np.mean(y))
        else:
            mu_null = family.link.linkinv(np.zeros_like(y))
        return family.deviance(y, mu_null)
