"""
Compactly supported kernels for fixed-radius regression.

Every kernel is a function of the scaled distance u = |x − xᵢ| / h and is
zero for u ≥ 1, so only training points strictly inside the radius
contribute. With h = inf every u is 0 and all points weigh the same.
"""

from typing import Any, Callable
import numpy as np
from numpy.typing import NDArray

KernelFunction = Callable[[NDArray[np.floating[Any]]], NDArray[np.floating[Any]]]


def uniform(u: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    return np.ones_like(u)


def triangular(u: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    return 1.0 - u


def epanechnikov(u: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    return 0.75 * (1.0 - u ** 2)


KERNELS: dict[str, KernelFunction] = {
    'uniform': uniform,
    'triangular': triangular,
    'epanechnikov': epanechnikov,
}


def weight_matrix(
    x_train: NDArray[np.floating[Any]],
    x_query: NDArray[np.floating[Any]],
    radius: float,
    kernel: str,
) -> NDArray[np.floating[Any]]:
    """
    Kernel weights of every training point for every query point.

    Args:
        x_train: Training predictors (n,)
        x_query: Query points (m,)
        radius: h ≥ 0, may be inf
        kernel: Key into KERNELS

    Returns:
        Array (m, n); row i is zero outside |x_query[i] − x_train| < h
    """
    distance = np.abs(x_query[:, np.newaxis] - x_train[np.newaxis, :])
    inside = distance < radius

    weights = np.zeros_like(distance)
    if np.any(inside):
        # inside is non-empty only when radius > 0, so the division is safe
        u = distance[inside] / radius
        weights[inside] = KERNELS[kernel](u)
    return weights
