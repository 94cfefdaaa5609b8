"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Simple regression dataset for basic tests."""
    n, p = 100, 3
    X = rng.standard_normal((n, p))
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * 0.1
    return X, y, beta_true


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2  # Perfect collinearity
    X = np.column_stack([x1, x2, x3])
    y = rng.standard_normal(n)
    return X, y


@pytest.fixture
def sparse_regression_data(rng):
    """More predictors than signals; several true coefficients are zero."""
    n, p = 80, 8
    X = rng.standard_normal((n, p))
    beta_true = np.array([3.0, 0.0, -2.0, 0.0, 0.0, 1.5, 0.0, 0.0])
    y = X @ beta_true + rng.standard_normal(n)
    return X, y, beta_true


@pytest.fixture
def poisson_data(rng):
    """Counts from log E[y] = 0.5 + 0.3 x."""
    n = 500
    x = rng.standard_normal(n)
    X = np.column_stack([np.ones(n), x])
    beta_true = np.array([0.5, 0.3])
    y = rng.poisson(np.exp(X @ beta_true)).astype(float)
    return X, y, beta_true


@pytest.fixture
def smooth_curve_data(rng):
    """Noisy samples of sin(x) on [0, 2π]."""
    n = 200
    x = np.sort(rng.uniform(0.0, 2 * np.pi, n))
    y = np.sin(x) + rng.standard_normal(n) * 0.1
    return x, y
