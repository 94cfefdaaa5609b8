"""
Tests for the LASSO coordinate-descent solver and regularization paths.
"""

import numpy as np
import pytest

from pyfitting.core.compute.tolerances import CPU_FP64, select_tolerance
from pyfitting.core.exceptions import DimensionError, ValidationError
from pyfitting.regression import fit_lasso, fit_ols, regularization_path
from pyfitting.regression.backends.cpu_lasso import soft_threshold


class TestSoftThreshold:

    @pytest.mark.parametrize("z,t,expected", [
        (3.0, 1.0, 2.0),
        (-3.0, 1.0, -2.0),
        (0.5, 1.0, 0.0),
        (-1.0, 1.0, 0.0),
        (2.0, 0.0, 2.0),
        (1e300, np.inf, 0.0),
    ])
    def test_values(self, z, t, expected):
        assert soft_threshold(z, t) == expected


class TestFitLasso:

    def test_large_lambda_gives_zero_vector(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        lambda_max = 2.0 * np.max(np.abs(X.T @ y))
        result = fit_lasso(X, y, lambda_max * 1.01)
        np.testing.assert_array_equal(result.coefficients, np.zeros(8))
        assert result.info['lambda_max'] == pytest.approx(lambda_max)
        assert result.converged

    def test_just_below_lambda_max_is_nonzero(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        lambda_max = 2.0 * np.max(np.abs(X.T @ y))
        assert fit_lasso(X, y, 0.9 * lambda_max).n_nonzero >= 1

    def test_infinite_lambda(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        result = fit_lasso(X, y, np.inf)
        np.testing.assert_array_equal(result.coefficients, np.zeros(8))
        assert result.objective == pytest.approx(np.sum(y ** 2))

    def test_lambda_zero_matches_ols(self, simple_regression_data):
        X, y, _ = simple_regression_data
        lasso = fit_lasso(X, y, 0.0)
        ols = fit_ols(X, y)
        tier = select_tolerance(is_ill_conditioned=True)
        np.testing.assert_allclose(
            lasso.coefficients, ols.coefficients, rtol=tier.rtol, atol=tier.atol
        )

    def test_orthonormal_design_closed_form(self, rng):
        """With X'X = I the solution is S(X'y, λ/2) coordinate-wise."""
        Q, _ = np.linalg.qr(rng.standard_normal((50, 5)))
        y = Q @ np.array([4.0, -3.0, 0.5, 0.0, 2.0]) + rng.standard_normal(50) * 0.1
        lam = 2.0
        expected = np.array([soft_threshold(z, lam / 2) for z in Q.T @ y])
        result = fit_lasso(Q, y, lam)
        np.testing.assert_allclose(result.coefficients, expected, atol=1e-10)

    def test_kkt_conditions(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        lam = 40.0
        result = fit_lasso(X, y, lam)
        beta = result.coefficients
        score = 2.0 * X.T @ (y - X @ beta)
        active = beta != 0
        assert active.any() and not active.all()
        np.testing.assert_allclose(score[active], lam * np.sign(beta[active]), atol=1e-6)
        assert np.all(np.abs(score[~active]) <= lam + 1e-6)

    def test_recovers_sparsity(self, sparse_regression_data):
        X, y, beta_true = sparse_regression_data
        result = fit_lasso(X, y, 60.0)
        # the three large signals survive
        assert np.all(result.coefficients[beta_true != 0] != 0)
        assert result.n_nonzero < 8

    def test_objective(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        result = fit_lasso(X, y, 10.0)
        beta = result.coefficients
        expected = np.sum((y - X @ beta) ** 2) + 10.0 * np.sum(np.abs(beta))
        assert result.objective == pytest.approx(expected, rel=1e-10)
        assert result.effective_df == result.n_nonzero

    def test_zero_column_stays_zero(self, simple_regression_data):
        X, y, _ = simple_regression_data
        X = np.column_stack([X, np.zeros(len(y))])
        result = fit_lasso(X, y, 1.0)
        assert result.coefficients[3] == 0.0

    def test_warm_start_same_solution(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        cold = fit_lasso(X, y, 10.0)
        warm = fit_lasso(X, y, 10.0, warm_start=np.ones(8))
        np.testing.assert_allclose(warm.coefficients, cold.coefficients, atol=1e-8)

    def test_iteration_cap_reports_non_convergence(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        with pytest.warns(RuntimeWarning, match="did not converge"):
            result = fit_lasso(X, y, 1.0, max_iter=1)
        assert not result.converged
        assert result.n_iter == 1
        assert result.info['converged'] is False

    def test_non_convergence_warning_points_at_caller(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        with pytest.warns(RuntimeWarning, match="did not converge") as record:
            fit_lasso(X, y, 1.0, max_iter=1)
        assert record[0].filename == __file__

    def test_reports_xtx_condition_number(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        result = fit_lasso(X, y, 1.0)
        assert result.xtx_condition_number == pytest.approx(
            np.linalg.cond(X.T @ X), rel=1e-8
        )

    def test_summary(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        summary = fit_lasso(X, y, 10.0).summary()
        assert "LASSO Regression Results" in summary
        assert "Coordinate descent" in summary


class TestLassoValidation:

    def test_negative_lambda(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValidationError, match="lam"):
            fit_lasso(X, y, -0.5)

    def test_nan_lambda(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValidationError, match="NaN"):
            fit_lasso(X, y, np.nan)

    def test_warm_start_shape(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(DimensionError, match="warm_start"):
            fit_lasso(X, y, 1.0, warm_start=np.zeros(2))

    def test_invalid_tol(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValidationError, match="tol"):
            fit_lasso(X, y, 1.0, tol=0.0)


class TestRegularizationPath:

    def test_rows_match_individual_fits(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        grid = np.array([1.0, 100.0, 10.0])
        coefs = regularization_path(X, y, grid, 'lasso')
        assert coefs.shape == (3, 8)
        for lam, row in zip(grid, coefs):
            np.testing.assert_allclose(row, fit_lasso(X, y, lam).coefficients, atol=1e-8)

    def test_ridge_path(self, simple_regression_data):
        X, y, _ = simple_regression_data
        grid = [0.0, 1.0]
        coefs = regularization_path(X, y, grid, 'ridge')
        np.testing.assert_allclose(
            coefs[0], fit_ols(X, y).coefficients, rtol=CPU_FP64.rtol, atol=CPU_FP64.atol
        )

    def test_large_lambda_row_is_zero(self, sparse_regression_data):
        X, y, _ = sparse_regression_data
        lambda_max = 2.0 * np.max(np.abs(X.T @ y))
        coefs = regularization_path(X, y, [2 * lambda_max, 1.0])
        np.testing.assert_array_equal(coefs[0], np.zeros(8))

    def test_unknown_method(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValidationError, match="method"):
            regularization_path(X, y, [1.0], 'elastic_net')
