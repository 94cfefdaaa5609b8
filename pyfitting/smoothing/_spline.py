"""
Truncated-power spline basis.

For degree K and interior knots κ₁ < … < κ_L the basis has K + L columns:

    1, x, x², …, x^(K−1), (x − κ₁)₊^K, …, (x − κ_L)₊^K

With no knots it is the polynomial basis of degree K − 1.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray


def basis_matrix(
    x: NDArray[np.floating[Any]],
    degree: int,
    knots: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """Evaluate the basis at x. Returns shape (len(x), degree + len(knots))."""
    powers = np.power.outer(x, np.arange(degree, dtype=np.float64))
    truncated = np.maximum(x[:, np.newaxis] - knots[np.newaxis, :], 0.0) ** degree
    return np.hstack([powers, truncated])
