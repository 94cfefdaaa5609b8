"""
Input validation utilities for PyFitting.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pyfitting.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Accepts any array-like and converts to a numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).
    The returned array never aliases a caller-owned float64 buffer, so
    downstream code may treat it as private.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with float64 dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    # Reject non-numeric dtypes (strings, bytes, datetime, etc.)
    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if np.issubdtype(result.dtype, np.complexfloating):
        raise ValidationError(f"{name}: complex dtype {result.dtype} not supported")

    return np.array(result, dtype=np.float64, copy=True)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Args:
        array: Array to check
        ndim: Required number of dimensions
        name: Parameter name for error messages

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Args:
        array: Array to check
        min_samples: Minimum required samples (first dimension)
        name: Parameter name for error messages

    Raises:
        ValidationError: If array has fewer than min_samples
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_nonnegative_scalar(value: Any, name: str, *, allow_inf: bool = False) -> float:
    """
    Validate a non-negative real hyperparameter (penalty, radius).

    Args:
        value: Scalar to check
        name: Parameter name for error messages
        allow_inf: Whether +inf is an acceptable value

    Returns:
        The value as a Python float

    Raises:
        ValidationError: If value is not a real number, is NaN, negative,
            or infinite when allow_inf is False
    """
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name}: expected a real scalar, got {value!r}") from e

    if math.isnan(result):
        raise ValidationError(f"{name}: must not be NaN")
    if result < 0:
        raise ValidationError(f"{name}: must be >= 0, got {result}")
    if math.isinf(result) and not allow_inf:
        raise ValidationError(f"{name}: must be finite, got {result}")
    return result


def check_positive_int(value: Any, name: str, *, minimum: int = 1) -> int:
    """
    Validate an integer hyperparameter with a lower bound.

    Args:
        value: Value to check
        name: Parameter name for error messages
        minimum: Smallest acceptable value

    Returns:
        The value as a Python int

    Raises:
        ValidationError: If value is not integral or is below minimum
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValidationError(f"{name}: expected an integer, got {value!r}")
    if value < minimum:
        raise ValidationError(f"{name}: must be >= {minimum}, got {value}")
    return int(value)


def check_strictly_increasing(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify a 1D array is strictly increasing.

    Args:
        array: 1D array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If any consecutive pair is not strictly increasing
    """
    if array.size < 2:
        return
    bad = np.where(np.diff(array) <= 0)[0]
    if len(bad) > 0:
        i = int(bad[0])
        raise ValidationError(
            f"{name}: must be strictly increasing, but {name}[{i}]={array[i]} "
            f">= {name}[{i + 1}]={array[i + 1]}"
        )
