"""
Pivoted QR decomposition and least squares.

Used where the design matrix itself is expected to be ill-conditioned
(truncated-power spline bases, the OLS reference fit): working on X
directly rather than on X'X keeps cond(X) instead of squaring it.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import qr, solve_triangular

from pyfitting.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """
    Result of a column-pivoted QR decomposition X[:, pivot] = QR.

    Attributes:
        Q: Orthonormal matrix (n x k where k = min(n, p))
        R: Upper triangular matrix (k x p)
        pivot: Column permutation applied to X
        rank: Numerical rank determined from the R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    pivot: NDArray[np.intp]
    rank: int

    @property
    def condition_number(self) -> float:
        """2-norm condition number of X, computed from the leading R block."""
        if self.rank == 0:
            return float('inf')
        return float(np.linalg.cond(self.R[:self.rank, :self.rank]))


def qr_decompose(
    X: NDArray[np.floating[Any]],
    tol: float | None = None,
) -> QRResult:
    """
    Column-pivoted economy QR decomposition using LAPACK (via SciPy).

    Args:
        X: Matrix to decompose (n x p)
        tol: Relative rank tolerance. Column i counts towards the rank when
            |R_ii| > tol * |R_00|. Defaults to max(n, p) * machine epsilon.

    Returns:
        QRResult with Q, R, pivot and numerical rank
    """
    Q, R, pivot = qr(X, mode='economic', pivoting=True)

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R[0] > 0:
        if tol is None:
            tol = max(X.shape) * np.finfo(X.dtype).eps
        rank = int(np.sum(diag_R > tol * diag_R[0]))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, pivot=pivot, rank=rank)


def qr_solve(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    *,
    tol: float | None = None,
    check_rank: bool = True,
) -> tuple[NDArray[np.floating[Any]], QRResult]:
    """
    Solve least squares via pivoted QR decomposition.

    Solves min_β ||y - Xβ||² as β = R⁻¹ Q'y on the pivoted columns.

    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)
        tol: Relative rank tolerance passed to qr_decompose
        check_rank: If True, raise SingularMatrixError on rank-deficient X.
            If False, aliased coefficients are returned as NaN.

    Returns:
        (coefficients, qr_result)

    Raises:
        SingularMatrixError: If X is rank-deficient and check_rank=True
    """
    p = X.shape[1]
    qr_result = qr_decompose(X, tol=tol)
    rank = qr_result.rank

    if check_rank and rank < p:
        raise SingularMatrixError(
            f"Design matrix is rank-deficient: rank={rank}, expected={p}. "
            f"This indicates perfect multicollinearity or too few observations.",
            matrix_name='X',
            rank=rank,
            expected_rank=p,
        )

    Qty = qr_result.Q.T @ y
    coef_active = solve_triangular(qr_result.R[:rank, :rank], Qty[:rank], lower=False)

    coefficients = np.full(p, np.nan, dtype=np.float64)
    coefficients[qr_result.pivot[:rank]] = coef_active

    return coefficients, qr_result
