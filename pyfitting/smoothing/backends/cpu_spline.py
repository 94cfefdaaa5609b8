"""
CPU backend for truncated-power spline regression.

Truncated powers of high degree span very different magnitudes, so the
basis is badly conditioned. The columns are scaled to unit norm before a
pivoted QR solve; the rank decision is made on the scaled matrix at a
caller-supplied relative tolerance. Poor conditioning that does not lose
rank is reported, not raised.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyfitting.core.result import Result
from pyfitting.core.exceptions import SingularMatrixError
from pyfitting.core.compute.timing import Timer
from pyfitting.core.compute.tolerances import ILL_CONDITION_THRESHOLD
from pyfitting.core.compute.linalg.qr import qr_solve
from pyfitting.smoothing._spline import basis_matrix
from pyfitting.smoothing.design import SmoothingDesign
from pyfitting.smoothing.solution import SplineParams


class CPUSplineBackend:
    """
    Ordinary least squares on the truncated-power basis.

    Args:
        degree: K ≥ 1
        knots: Strictly increasing interior knots (may be empty)
        tol: Relative rank tolerance for the pivoted QR
    """

    def __init__(self, degree: int, knots: NDArray[np.floating[Any]], tol: float):
        self._degree = degree
        self._knots = knots
        self._tol = tol

    @property
    def name(self) -> str:
        return 'cpu_spline_qr'

    def solve(self, design: SmoothingDesign) -> Result[SplineParams]:
        """
        Raises:
            SingularMatrixError: If the basis is rank-deficient at tol, e.g.
                a knot with no observations beyond it or fewer distinct x
                values than basis columns
        """
        timer = Timer()
        timer.start()

        x, y = design.x, design.y
        warnings_list: list[str] = []

        with timer.section('basis'):
            B = basis_matrix(x, self._degree, self._knots)
            scale = np.sqrt(np.einsum('ij,ij->j', B, B))
            scale[scale == 0] = 1.0
            B_scaled = B / scale

        with timer.section('qr_solve'):
            try:
                scaled_coef, qr_result = qr_solve(B_scaled, y, tol=self._tol, check_rank=True)
            except SingularMatrixError as e:
                raise SingularMatrixError(
                    f"{e} The spline basis (degree {self._degree}, "
                    f"{len(self._knots)} knots) cannot be fitted to {design.n} "
                    f"observations; use fewer knots or move knots inside the data.",
                    matrix_name='B',
                    rank=e.rank,
                    expected_rank=e.expected_rank,
                ) from e

        coefficients = scaled_coef / scale

        with timer.section('conditioning'):
            cond_raw = float(np.linalg.cond(B))
            cond_scaled = qr_result.condition_number

        # Same threshold the normal-equation solvers apply to X'X
        if cond_scaled ** 2 > ILL_CONDITION_THRESHOLD:
            warnings_list.append(
                f"Spline basis is ill-conditioned (condition number "
                f"{cond_scaled:.3e} after column scaling); coefficients may be "
                f"inaccurate even though fitted values are stable"
            )

        with timer.section('residuals'):
            fitted_values = B @ coefficients
            residuals = y - fitted_values
            rss = float(residuals @ residuals)
            centered = y - np.mean(y)
            tss = float(centered @ centered)

        timer.stop()

        params = SplineParams(
            coefficients=coefficients,
            fitted_values=fitted_values,
            residuals=residuals,
            rss=rss,
            tss=tss,
            degree=self._degree,
            knots=self._knots,
            rank=qr_result.rank,
        )

        return Result(
            params=params,
            info={
                'method': 'truncated_power_spline',
                'condition_number': cond_raw,
                'scaled_condition_number': cond_scaled,
                'rank': qr_result.rank,
                'rank_tol': self._tol,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
