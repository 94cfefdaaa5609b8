"""
Tests for Newton-Raphson root and extremum finding.

The quartic f(x) = 0.75x⁴ − x³ − 1.5x² + x + 0.5 has stationary points
near −0.793, 0.334 and 1.515; the first and last are minima.
"""

import warnings

import numpy as np
import pytest

from pyfitting.core.exceptions import (
    DimensionError,
    NonInvertibleHessianError,
    NumericalError,
    SingularMatrixError,
    ValidationError,
    ZeroDerivativeError,
)
from pyfitting.optimize import NewtonDiagnostics, newton_raphson, newton_scalar


def quartic_grad(x):
    return 3 * x**3 - 3 * x**2 - 3 * x + 1


def quartic_hess(x):
    return 9 * x**2 - 6 * x - 3


# ═══════════════════════════════════════════════════════════════════════
# Scalar extremum finding
# ═══════════════════════════════════════════════════════════════════════


class TestQuarticExtrema:

    def test_left_minimum(self):
        x, diag = newton_raphson(-0.5, quartic_grad, quartic_hess, tolerance=1e-3, max_iter=10)
        assert isinstance(x, float)
        assert x == pytest.approx(-0.793, abs=2e-3)
        assert diag.converged
        assert diag.iterations <= 10

    def test_right_minimum(self):
        x, diag = newton_raphson(1.1, quartic_grad, quartic_hess, tolerance=1e-3, max_iter=10)
        assert x == pytest.approx(1.515, abs=2e-3)
        assert diag.converged

    def test_stationary_point_has_small_gradient(self):
        x, diag = newton_raphson(1.1, quartic_grad, quartic_hess, tolerance=1e-10)
        assert abs(quartic_grad(x)) < 1e-8
        assert quartic_hess(x) > 0

    def test_gradient_norm_at_returned_point(self):
        x, diag = newton_raphson(-0.5, quartic_grad, quartic_hess, tolerance=1e-3, max_iter=10)
        assert diag.gradient_norm == pytest.approx(abs(quartic_grad(x)), rel=1e-12, abs=1e-15)
        # quadratic convergence: far below the 1e-3 step tolerance
        assert diag.gradient_norm < 1e-5

    def test_scalar_root_residual_at_returned_point(self):
        x, diag = newton_scalar(lambda x: x**2 - 2, lambda x: 2 * x, 1.0, tolerance=1e-3)
        assert diag.gradient_norm == pytest.approx(abs(x**2 - 2), rel=1e-12, abs=1e-15)

    def test_diagnostics_type(self):
        _, diag = newton_raphson(-0.5, quartic_grad, quartic_hess)
        assert isinstance(diag, NewtonDiagnostics)
        assert diag.method == 'newton_raphson'
        assert diag.step_size < 1e-8
        assert "converged=True" in repr(diag)


# ═══════════════════════════════════════════════════════════════════════
# Multivariate
# ═══════════════════════════════════════════════════════════════════════


class TestMultivariate:

    def test_quadratic_in_one_step(self):
        """Newton solves a quadratic exactly in one update."""
        A = np.array([[3.0, 1.0], [1.0, 2.0]])
        b = np.array([1.0, -1.0])
        theta, diag = newton_raphson(
            np.zeros(2), lambda t: A @ t - b, lambda t: A, tolerance=1e-12,
        )
        np.testing.assert_allclose(theta, np.linalg.solve(A, b), rtol=1e-10)
        # second update confirms the step is zero
        assert diag.iterations == 2

    def test_rosenbrock_minimum(self):
        def grad(t):
            x, y = t
            return np.array([
                -2 * (1 - x) - 400 * x * (y - x**2),
                200 * (y - x**2),
            ])

        def hess(t):
            x, y = t
            return np.array([
                [2 - 400 * (y - x**2) + 800 * x**2, -400 * x],
                [-400 * x, 200.0],
            ])

        theta, diag = newton_raphson(np.array([-1.2, 1.0]), grad, hess)
        np.testing.assert_allclose(theta, [1.0, 1.0], atol=1e-8)
        assert diag.converged
        assert diag.gradient_norm == pytest.approx(np.linalg.norm(grad(theta)), abs=1e-15)
        assert diag.max_condition_number > 1.0

    def test_maximum_found_with_negative_definite_hessian(self):
        # f(θ) = −(θ₁ − 1)² − 2(θ₂ + 3)²
        theta, _ = newton_raphson(
            [5.0, 5.0],
            lambda t: np.array([-2 * (t[0] - 1), -4 * (t[1] + 3)]),
            lambda t: np.diag([-2.0, -4.0]),
        )
        np.testing.assert_allclose(theta, [1.0, -3.0])

    def test_flat_hessian_is_reshaped(self):
        theta, _ = newton_raphson(
            np.zeros(2),
            lambda t: t - np.array([1.0, 2.0]),
            lambda t: [1.0, 0.0, 0.0, 1.0],
        )
        np.testing.assert_allclose(theta, [1.0, 2.0])

    def test_theta0_not_modified(self):
        theta0 = np.array([2.0, 2.0])
        newton_raphson(theta0, lambda t: t, lambda t: np.eye(2))
        np.testing.assert_array_equal(theta0, [2.0, 2.0])


# ═══════════════════════════════════════════════════════════════════════
# Failure modes
# ═══════════════════════════════════════════════════════════════════════


class TestFailures:

    def test_inflection_point_raises(self):
        """f(x) = x³ has H(0) = 0."""
        with pytest.raises(NonInvertibleHessianError) as exc_info:
            newton_raphson(0.0, lambda x: 3 * x**2, lambda x: 6 * x)
        err = exc_info.value
        assert err.iteration == 1
        assert isinstance(err, SingularMatrixError)
        np.testing.assert_array_equal(err.theta, [0.0])

    def test_singular_multivariate_hessian(self):
        with pytest.raises(NonInvertibleHessianError, match="perturbed"):
            newton_raphson(
                np.ones(2), lambda t: t, lambda t: np.array([[1.0, 1.0], [1.0, 1.0]]),
            )

    def test_budget_exhausted_warns(self):
        with pytest.warns(RuntimeWarning, match="did not converge"):
            x, diag = newton_raphson(1.1, quartic_grad, quartic_hess, tolerance=1e-12, max_iter=2)
        assert not diag.converged
        assert diag.iterations == 2

    def test_wrong_gradient_shape(self):
        with pytest.raises(DimensionError, match="grad_fn"):
            newton_raphson(np.zeros(2), lambda t: np.zeros(3), lambda t: np.eye(2))

    def test_wrong_hessian_shape(self):
        with pytest.raises(DimensionError, match="hess_fn"):
            newton_raphson(np.zeros(2), lambda t: t, lambda t: np.eye(3))

    def test_non_finite_iterate(self):
        with pytest.raises(NumericalError, match="non-finite"):
            newton_raphson(1.0, lambda x: np.inf, lambda x: 1.0)

    @pytest.mark.parametrize("tolerance", [0.0, -1.0, np.nan])
    def test_invalid_tolerance(self, tolerance):
        with pytest.raises(ValidationError):
            newton_raphson(0.0, quartic_grad, quartic_hess, tolerance=tolerance)

    def test_invalid_max_iter(self):
        with pytest.raises(ValidationError, match="max_iter"):
            newton_raphson(0.0, quartic_grad, quartic_hess, max_iter=0)

    def test_matrix_theta0_rejected(self):
        with pytest.raises(DimensionError):
            newton_raphson(np.zeros((2, 2)), lambda t: t, lambda t: np.eye(4))


# ═══════════════════════════════════════════════════════════════════════
# Scalar root-finding
# ═══════════════════════════════════════════════════════════════════════


class TestNewtonScalar:

    def test_square_root_of_two(self):
        x, diag = newton_scalar(lambda x: x**2 - 2, lambda x: 2 * x, 1.0)
        assert x == pytest.approx(np.sqrt(2), rel=1e-12)
        assert diag.converged
        assert diag.method == 'newton_scalar'

    def test_roots_of_quartic_gradient(self):
        x, _ = newton_scalar(quartic_grad, quartic_hess, -0.5, tolerance=1e-3)
        assert x == pytest.approx(-0.793, abs=2e-3)

    def test_zero_derivative_raises(self):
        with pytest.raises(ZeroDerivativeError) as exc_info:
            newton_scalar(lambda x: x**2 + 1, lambda x: 2 * x, 0.0)
        err = exc_info.value
        assert err.iteration == 1
        assert err.x == 0.0
        assert err.derivative == 0.0

    def test_non_finite_derivative_raises(self):
        with pytest.raises(ZeroDerivativeError):
            newton_scalar(lambda x: x, lambda x: np.nan, 1.0)

    def test_budget_exhausted_warns(self):
        with pytest.warns(RuntimeWarning):
            _, diag = newton_scalar(lambda x: x**2 - 2, lambda x: 2 * x, 100.0, max_iter=3)
        assert not diag.converged

    def test_vector_start_rejected(self):
        with pytest.raises(DimensionError):
            newton_scalar(lambda x: x, lambda x: 1.0, [1.0, 2.0])

    def test_no_warning_when_converged(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            newton_scalar(lambda x: x - 3.0, lambda x: 1.0, 0.0)
