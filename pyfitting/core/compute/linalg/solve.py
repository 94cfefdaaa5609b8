"""
Symmetric and general linear solves with conditioning diagnostics.

Every solve reports the condition number of the system it solved. A
system beyond `singular_threshold` raises SingularMatrixError; one beyond
`warn_threshold` is solved but flagged so the caller can prefer a
regularized fit.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import cho_factor, cho_solve, solve, LinAlgError

from pyfitting.core.exceptions import SingularMatrixError, DimensionError
from pyfitting.core.compute.tolerances import (
    SINGULAR_CONDITION_THRESHOLD,
    ILL_CONDITION_THRESHOLD,
)


@dataclass(frozen=True)
class SolveResult:
    """
    Solution of A x = b.

    Attributes:
        x: Solution vector (or matrix, for a matrix right-hand side)
        condition_number: Condition number of A
        ill_conditioned: True when the condition number exceeded the
            warning threshold but not the singular threshold
    """
    x: NDArray[np.floating[Any]]
    condition_number: float
    ill_conditioned: bool


def gram(
    X: NDArray[np.floating[Any]],
    w: NDArray[np.floating[Any]] | None = None,
) -> NDArray[np.floating[Any]]:
    """Compute X'X, or X'WX for diagonal weights w."""
    if w is None:
        return X.T @ X
    return X.T @ (X * w[:, np.newaxis])


def cross(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    w: NDArray[np.floating[Any]] | None = None,
) -> NDArray[np.floating[Any]]:
    """Compute X'y, or X'Wy for diagonal weights w."""
    if w is None:
        return X.T @ y
    return X.T @ (w * y)


def condition_number(
    A: NDArray[np.floating[Any]],
    assume_symmetric: bool = True,
) -> float:
    """
    Condition number of a square matrix.

    For symmetric A this is max|λ| / min|λ| over the eigenvalues (equal to
    the 2-norm condition number). Otherwise the singular-value ratio is used.

    Returns:
        The condition number; inf when the smallest magnitude is zero or
        the matrix contains non-finite values.
    """
    _check_square(A, 'A')
    if A.shape[0] == 0:
        return 1.0
    if not np.all(np.isfinite(A)):
        return float('inf')

    if assume_symmetric:
        spectrum = np.abs(np.linalg.eigvalsh(A))
    else:
        spectrum = np.linalg.svd(A, compute_uv=False)

    hi = float(np.max(spectrum))
    lo = float(np.min(spectrum))
    if hi == 0.0 or lo == 0.0:
        return float('inf')
    return hi / lo


def min_eigenvalue(A: NDArray[np.floating[Any]]) -> float:
    """Smallest eigenvalue of a symmetric matrix."""
    _check_square(A, 'A')
    return float(np.linalg.eigvalsh(A)[0])


def solve_spd(
    A: NDArray[np.floating[Any]],
    b: NDArray[np.floating[Any]],
    *,
    singular_threshold: float = SINGULAR_CONDITION_THRESHOLD,
    warn_threshold: float = ILL_CONDITION_THRESHOLD,
    name: str = 'A',
) -> SolveResult:
    """
    Solve a symmetric positive (semi-)definite system via Cholesky.

    Args:
        A: Symmetric positive definite matrix (p x p)
        b: Right-hand side (p,) or (p, k)
        singular_threshold: Condition number above which A is singular
        warn_threshold: Condition number above which the result is flagged
        name: Matrix name for error messages (e.g. "X'X + λI")

    Returns:
        SolveResult

    Raises:
        DimensionError: If A is not square or b does not match
        SingularMatrixError: If A is numerically singular or not
            positive definite
    """
    _check_square(A, name)
    _check_rhs(A, b, name)

    cond = condition_number(A, assume_symmetric=True)
    if not cond <= singular_threshold:
        raise SingularMatrixError(
            f"{name} is numerically singular (condition number {cond:.3e} "
            f"exceeds {singular_threshold:.1e})",
            matrix_name=name,
            condition_number=cond,
        )

    try:
        factor = cho_factor(A, lower=False, check_finite=False)
    except LinAlgError as e:
        raise SingularMatrixError(
            f"{name} is not positive definite: {e}",
            matrix_name=name,
            condition_number=cond,
        ) from e

    x = cho_solve(factor, b, check_finite=False)
    return SolveResult(x=x, condition_number=cond, ill_conditioned=cond > warn_threshold)


def solve_general(
    A: NDArray[np.floating[Any]],
    b: NDArray[np.floating[Any]],
    *,
    singular_threshold: float = SINGULAR_CONDITION_THRESHOLD,
    warn_threshold: float = ILL_CONDITION_THRESHOLD,
    assume_symmetric: bool = True,
    name: str = 'A',
) -> SolveResult:
    """
    Solve a square, possibly indefinite system via LU.

    Newton Hessians are symmetric but need not be definite (a maximum has a
    negative definite Hessian), so Cholesky is not applicable there.

    Args:
        A: Square matrix (p x p)
        b: Right-hand side (p,) or (p, k)
        singular_threshold: Condition number above which A is singular
        warn_threshold: Condition number above which the result is flagged
        assume_symmetric: Use eigenvalues (True) or singular values for the
            condition number
        name: Matrix name for error messages

    Returns:
        SolveResult

    Raises:
        DimensionError: If A is not square or b does not match
        SingularMatrixError: If A is numerically singular
    """
    _check_square(A, name)
    _check_rhs(A, b, name)

    cond = condition_number(A, assume_symmetric=assume_symmetric)
    if not cond <= singular_threshold:
        raise SingularMatrixError(
            f"{name} is numerically singular (condition number {cond:.3e} "
            f"exceeds {singular_threshold:.1e})",
            matrix_name=name,
            condition_number=cond,
        )

    try:
        x = solve(A, b, assume_a='sym' if assume_symmetric else 'gen', check_finite=False)
    except LinAlgError as e:
        raise SingularMatrixError(
            f"{name} could not be factorized: {e}",
            matrix_name=name,
            condition_number=cond,
        ) from e

    return SolveResult(x=x, condition_number=cond, ill_conditioned=cond > warn_threshold)


def _check_square(A: NDArray, name: str) -> None:
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise DimensionError(f"{name}: expected a square matrix, got shape {A.shape}")


def _check_rhs(A: NDArray, b: NDArray, name: str) -> None:
    if b.shape[0] != A.shape[0]:
        raise DimensionError(
            f"Right-hand side has {b.shape[0]} rows, but {name} is "
            f"{A.shape[0]}x{A.shape[1]}"
        )
