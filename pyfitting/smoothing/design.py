"""
Smoothing Design.

A one-predictor design: paired training vectors x and y for kernel
regression and spline fits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyfitting.core.validation import (
    check_array,
    check_finite,
    check_1d,
    check_consistent_length,
    check_min_samples,
)


@dataclass(frozen=True)
class SmoothingDesign:
    """
    Validated scalar-predictor training data.

    Construction:
        SmoothingDesign.from_arrays(x, y)
    """
    _x: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int

    @classmethod
    def from_arrays(
        cls,
        x: ArrayLike,
        y: ArrayLike,
        x_name: str = 'x',
        y_name: str = 'y',
    ) -> SmoothingDesign:
        """
        Build from array-likes. (n, 1) columns are flattened.

        Raises:
            ValidationError: If inputs are non-numeric, non-finite or empty
            DimensionError: If either input is not 1D or lengths differ
        """
        x_arr = _as_vector(x, x_name)
        y_arr = _as_vector(y, y_name)

        check_finite(x_arr, x_name)
        check_finite(y_arr, y_name)
        check_consistent_length(x_arr, y_arr, names=(x_name, y_name))
        check_min_samples(x_arr, 1, x_name)

        x_arr.setflags(write=False)
        y_arr.setflags(write=False)
        return cls(_x=x_arr, _y=y_arr, _n=x_arr.shape[0])

    @property
    def x(self) -> NDArray[np.floating[Any]]:
        return self._x

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        return self._y

    @property
    def n(self) -> int:
        return self._n


def _as_vector(values: ArrayLike, name: str) -> NDArray[np.floating[Any]]:
    arr = check_array(values, name)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr.ravel()
    check_1d(arr, name)
    return arr
