"""
Tests for the Backend protocol and tolerance tiers.
"""

import numpy as np
import pytest

from pyfitting.core import Backend, Result
from pyfitting.core.compute.tolerances import (
    CPU_FP64,
    CPU_FP64_ILL_CONDITIONED,
    select_tolerance,
)
from pyfitting.regression import Design, Poisson
from pyfitting.regression.backends import (
    CPUIRLSBackend,
    CPULassoBackend,
    CPUQRBackend,
    CPURidgeBackend,
)
from pyfitting.smoothing.backends import CPUSplineBackend
from pyfitting.smoothing.design import SmoothingDesign


class TestBackendProtocol:

    @pytest.mark.parametrize("backend", [
        CPUQRBackend(),
        CPURidgeBackend(lam=1.0),
        CPULassoBackend(lam=1.0, tol=1e-10, max_iter=100),
        CPUIRLSBackend(family=Poisson(), tol=1e-8, max_iter=25),
        CPUSplineBackend(degree=2, knots=np.array([0.5]), tol=1e-10),
    ])
    def test_backends_satisfy_protocol(self, backend):
        assert isinstance(backend, Backend)
        assert backend.name.startswith('cpu_')

    def test_backend_solve_returns_result(self, simple_regression_data):
        X, y, _ = simple_regression_data
        design = Design.from_arrays(X, y)
        result = CPURidgeBackend(lam=1.0).solve(design)
        assert isinstance(result, Result)
        assert result.backend_name == 'cpu_ridge'
        assert result.params.coefficients.shape == (3,)
        assert 'total_seconds' in result.timing

    def test_spline_backend_on_smoothing_design(self):
        x = np.linspace(0.0, 1.0, 20)
        design = SmoothingDesign.from_arrays(x, 1.0 + 2.0 * x)
        result = CPUSplineBackend(degree=2, knots=np.array([]), tol=1e-10).solve(design)
        np.testing.assert_allclose(result.params.coefficients, [1.0, 2.0], atol=1e-12)


class TestToleranceTiers:

    def test_select(self):
        assert select_tolerance() is CPU_FP64
        assert select_tolerance(is_ill_conditioned=True) is CPU_FP64_ILL_CONDITIONED

    def test_tiers_ordered(self):
        assert CPU_FP64.rtol < CPU_FP64_ILL_CONDITIONED.rtol
        assert CPU_FP64.atol < CPU_FP64_ILL_CONDITIONED.atol
