"""
Tests for ridge regression and the OLS reference fit.
"""

import warnings

import numpy as np
import pytest

from pyfitting.core.compute.tolerances import CPU_FP64
from pyfitting.core.exceptions import DimensionError, SingularMatrixError, ValidationError
from pyfitting.regression import RegularizedSolution, fit_ols, fit_ridge


def _near_collinear(rng, n=100, eps=1e-6):
    """cond(X'X) around 1e12: past the warning threshold, short of singular."""
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    X = np.column_stack([x1, x2, x1 + eps * rng.standard_normal(n)])
    y = x1 + x2 + rng.standard_normal(n) * 0.1
    return X, y


# =====================================================================
# OLS reference
# =====================================================================

class TestFitOLS:

    def test_matches_lstsq(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ols(X, y)
        expected, *_ = np.linalg.lstsq(X, y, rcond=None)
        np.testing.assert_allclose(
            result.coefficients, expected, rtol=CPU_FP64.rtol, atol=CPU_FP64.atol
        )
        assert result.method == 'ols'
        assert result.lam == 0.0
        assert result.info['rank'] == 3

    def test_residuals_sum_to_zero_with_intercept(self, rng):
        n = 100
        X = np.column_stack([np.ones(n), rng.standard_normal(n), rng.standard_normal(n)])
        y = X @ [1.0, 2.0, -0.5] + rng.standard_normal(n) * 0.1
        result = fit_ols(X, y)
        assert abs(result.residuals.sum()) < 1e-10

    def test_rank_deficient_advises_penalty(self, collinear_data):
        X, y = collinear_data
        with pytest.raises(SingularMatrixError, match="lam > 0") as exc_info:
            fit_ols(X, y)
        assert exc_info.value.rank == 2

    def test_ill_conditioned_warns(self, rng):
        X, y = _near_collinear(rng)
        with pytest.warns(RuntimeWarning, match="ill-conditioned"):
            result = fit_ols(X, y)
        assert result.xtx_condition_number > 1e10


# =====================================================================
# Ridge
# =====================================================================

class TestFitRidge:

    def test_returns_solution(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 1.0)
        assert isinstance(result, RegularizedSolution)
        assert result.coefficients.shape == (3,)
        assert result.method == 'ridge'
        assert result.backend_name == 'cpu_ridge'

    def test_lambda_zero_equals_ols(self, simple_regression_data):
        X, y, _ = simple_regression_data
        ridge = fit_ridge(X, y, 0.0)
        ols = fit_ols(X, y)
        np.testing.assert_allclose(
            ridge.coefficients, ols.coefficients, rtol=CPU_FP64.rtol, atol=CPU_FP64.atol
        )
        assert ridge.effective_df == pytest.approx(3.0)

    @pytest.mark.parametrize("lam", [0.1, 1.0, 50.0])
    def test_closed_form(self, simple_regression_data, lam):
        X, y, _ = simple_regression_data
        expected = np.linalg.solve(X.T @ X + lam * np.eye(3), X.T @ y)
        result = fit_ridge(X, y, lam)
        np.testing.assert_allclose(
            result.coefficients, expected, rtol=CPU_FP64.rtol, atol=CPU_FP64.atol
        )
        assert result.lam == lam

    def test_objective(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 2.0)
        beta = result.coefficients
        expected = np.sum((y - X @ beta) ** 2) + 2.0 * np.sum(beta ** 2)
        assert result.objective == pytest.approx(expected, rel=1e-12)

    def test_shrinkage_monotone(self, simple_regression_data):
        X, y, _ = simple_regression_data
        norms = [
            np.linalg.norm(fit_ridge(X, y, lam).coefficients)
            for lam in [0.0, 1.0, 10.0, 100.0, 1000.0]
        ]
        assert all(a > b for a, b in zip(norms, norms[1:]))

    def test_effective_df_matches_hat_trace(self, simple_regression_data):
        X, y, _ = simple_regression_data
        lam = 5.0
        H = X @ np.linalg.solve(X.T @ X + lam * np.eye(3), X.T)
        assert fit_ridge(X, y, lam).effective_df == pytest.approx(np.trace(H), rel=1e-10)

    def test_more_predictors_than_observations(self, rng):
        n, p = 20, 50
        X = rng.standard_normal((n, p))
        y = rng.standard_normal(n)
        result = fit_ridge(X, y, 1.0)
        # dual form: β = X'(XX' + λI)⁻¹y
        expected = X.T @ np.linalg.solve(X @ X.T + np.eye(n), y)
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-8, atol=1e-10)
        assert result.xtx_condition_number == np.inf or result.xtx_condition_number > 1e10

    def test_lambda_zero_singular_advises_penalty(self, collinear_data):
        X, y = collinear_data
        with pytest.raises(SingularMatrixError, match="lam > 0"):
            fit_ridge(X, y, 0.0)

    def test_penalty_rescues_collinear_design(self, collinear_data):
        X, y = collinear_data
        result = fit_ridge(X, y, 1.0)
        assert np.all(np.isfinite(result.coefficients))

    def test_reports_xtx_condition_number(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 1.0)
        assert result.xtx_condition_number == pytest.approx(
            np.linalg.cond(X.T @ X), rel=1e-8
        )
        assert result.info['system_condition_number'] < result.xtx_condition_number

    def test_ill_conditioned_lambda_zero_warns(self, rng):
        X, y = _near_collinear(rng)
        with pytest.warns(RuntimeWarning, match="ill-conditioned") as record:
            result = fit_ridge(X, y, 0.0)
        assert record[0].filename == __file__
        assert result.warnings
        assert result._result.has_warning("penalized fit")

    def test_well_conditioned_no_warning(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = fit_ridge(X, y, 0.0)
        assert result.warnings == ()

    def test_inputs_not_modified(self, simple_regression_data):
        X, y, _ = simple_regression_data
        X_before, y_before = X.copy(), y.copy()
        fit_ridge(X, y, 1.0)
        np.testing.assert_array_equal(X, X_before)
        np.testing.assert_array_equal(y, y_before)


class TestRidgeValidation:

    def test_negative_lambda(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValidationError, match="lam"):
            fit_ridge(X, y, -1.0)

    def test_infinite_lambda(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValidationError, match="finite"):
            fit_ridge(X, y, np.inf)

    def test_length_mismatch(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(DimensionError, match="Inconsistent lengths"):
            fit_ridge(X, y[:-1], 1.0)

    def test_nan_in_X(self, simple_regression_data):
        X, y, _ = simple_regression_data
        X = X.copy()
        X[0, 0] = np.nan
        with pytest.raises(ValidationError, match="NaN"):
            fit_ridge(X, y, 1.0)


class TestRegularizedSolution:

    def test_predict(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 1.0)
        np.testing.assert_allclose(result.predict(X[:5]), result.fitted_values[:5])

    def test_predict_wrong_columns(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 1.0)
        with pytest.raises(DimensionError, match="X_new"):
            result.predict(np.ones((2, 4)))

    def test_r_squared_and_mse(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 0.0)
        assert 0.99 < result.r_squared <= 1.0
        assert result.mse == pytest.approx(result.rss / 100)

    def test_summary_and_repr(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit_ridge(X, y, 1.0)
        summary = result.summary()
        assert "Ridge Regression Results" in summary
        assert "Lambda: 1" in summary
        assert "method='ridge'" in repr(result)

    def test_timing_recorded(self, simple_regression_data):
        X, y, _ = simple_regression_data
        timing = fit_ridge(X, y, 1.0).timing
        assert 'total_seconds' in timing
        assert 'solve' in timing
