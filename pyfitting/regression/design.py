"""
Regression Design.

Design holds the validated design matrix X and response y for a fit.
It is built once at the public boundary; backends trust it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyfitting.core.validation import (
    check_array,
    check_finite,
    check_2d,
    check_1d,
    check_consistent_length,
    check_min_samples,
)


@dataclass(frozen=True)
class Design:
    """
    Regression design matrix specification.

    Immutable after construction. X and y are private float64 copies, so
    callers' arrays are never aliased or modified by a fit.

    Construction:
        Design.from_arrays(X, y)
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _p: int

    @classmethod
    def from_arrays(cls, X: ArrayLike, y: ArrayLike) -> Design:
        """
        Build Design directly from array-likes.

        A 1D X is treated as a single predictor column; a (n, 1) y is
        flattened. p > n is allowed (ridge and LASSO remain well defined).

        Raises:
            ValidationError: If inputs are non-numeric, non-finite or empty
            DimensionError: If shapes are wrong or X and y lengths differ
        """
        X_arr = check_array(X, 'X')
        y_arr = check_array(y, 'y')

        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        if y_arr.ndim == 2 and y_arr.shape[1] == 1:
            y_arr = y_arr.ravel()

        check_2d(X_arr, 'X')
        check_1d(y_arr, 'y')
        check_finite(X_arr, 'X')
        check_finite(y_arr, 'y')
        check_consistent_length(X_arr, y_arr, names=('X', 'y'))
        check_min_samples(X_arr, 1, 'X')

        X_arr.setflags(write=False)
        y_arr.setflags(write=False)

        n, p = X_arr.shape
        return cls(_X=X_arr, _y=y_arr, _n=n, _p=p)

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p), read-only."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,), read-only."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of predictors."""
        return self._p

    def subset(self, rows: NDArray[np.intp]) -> Design:
        """Design restricted to the given observation indices (e.g. a CV fold)."""
        X_sub = self._X[rows]
        y_sub = self._y[rows]
        X_sub.setflags(write=False)
        y_sub.setflags(write=False)
        return Design(_X=X_sub, _y=y_sub, _n=X_sub.shape[0], _p=self._p)

    def has_intercept(self) -> bool:
        """True if some column of X is a non-zero constant."""
        if self._n == 0:
            return False
        first = self._X[0]
        constant = np.all(self._X == first, axis=0) & (first != 0)
        return bool(np.any(constant))
