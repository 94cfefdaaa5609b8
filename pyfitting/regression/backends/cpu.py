"""
CPU backends for closed-form least squares.

CPUQRBackend solves ordinary least squares by pivoted QR on X; it is the
reference the penalized fits are checked against. CPURidgeBackend solves
the Tikhonov-regularized normal equations (X'X + λI)β = X'y by Cholesky.

Both report the condition number of X'X alone in info so callers can see
when an unpenalized fit is unreliable.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyfitting.core.result import Result
from pyfitting.core.exceptions import SingularMatrixError
from pyfitting.core.compute.timing import Timer
from pyfitting.core.compute.tolerances import ILL_CONDITION_THRESHOLD
from pyfitting.core.compute.linalg.qr import qr_solve
from pyfitting.core.compute.linalg.solve import condition_number, cross, gram, solve_spd
from pyfitting.regression.design import Design
from pyfitting.regression.solution import RegularizedParams


class CPUQRBackend:
    """
    CPU backend for OLS using pivoted QR decomposition.

    Implements the Backend protocol for Design -> RegularizedParams.
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: Design) -> Result[RegularizedParams]:
        """
        Solve OLS via QR decomposition.

        Algorithm:
            1. Compute pivoted QR: X P = QR
            2. Solve: β = P R⁻¹ Q'y
            3. Compute residuals, fitted values, and diagnostics

        Raises:
            SingularMatrixError: If X is rank-deficient
        """
        timer = Timer()
        timer.start()

        X, y = design.X, design.y
        warnings_list: list[str] = []

        with timer.section('qr_solve'):
            try:
                coefficients, qr_result = qr_solve(X, y, check_rank=True)
            except SingularMatrixError as e:
                raise SingularMatrixError(
                    f"{e} Ordinary least squares is undefined; use a ridge or "
                    f"LASSO penalty (lam > 0).",
                    matrix_name=e.matrix_name,
                    condition_number=e.condition_number,
                    rank=e.rank,
                    expected_rank=e.expected_rank,
                ) from e

        # cond(X'X) = cond(X)²
        xtx_cond = qr_result.condition_number ** 2
        if xtx_cond > ILL_CONDITION_THRESHOLD:
            warnings_list.append(_ill_conditioned_message(xtx_cond))

        with timer.section('residuals'):
            params = build_params(
                design, coefficients, lam=0.0,
                objective=None, effective_df=float(qr_result.rank),
            )

        timer.stop()

        return Result(
            params=params,
            info={
                'method': 'ols',
                'rank': qr_result.rank,
                'pivot': qr_result.pivot.tolist(),
                'xtx_condition_number': xtx_cond,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )


class CPURidgeBackend:
    """
    CPU backend for ridge regression in closed form.

    β̂ = (X'X + λI)⁻¹X'y. No iteration; λ = 0 reproduces OLS whenever X'X
    is invertible. For λ > 0 the system is positive definite even when
    p > n.
    """

    def __init__(self, lam: float):
        self._lam = lam

    @property
    def name(self) -> str:
        return 'cpu_ridge'

    def solve(self, design: Design) -> Result[RegularizedParams]:
        """
        Solve the ridge normal equations by Cholesky.

        The Cholesky factor of X'X + λI is reused to obtain the effective
        degrees of freedom tr((X'X + λI)⁻¹X'X).

        Raises:
            SingularMatrixError: If X'X + λI is numerically singular. For
                λ = 0 the message advises a penalized fit.
        """
        timer = Timer()
        timer.start()

        X, y, p = design.X, design.y, design.p
        lam = self._lam
        warnings_list: list[str] = []

        with timer.section('gram'):
            XtX = gram(X)
            Xty = cross(X, y)

        with timer.section('conditioning'):
            xtx_cond = condition_number(XtX)

        with timer.section('solve'):
            A = XtX + lam * np.eye(p)
            rhs = np.column_stack([Xty, XtX])
            try:
                sol = solve_spd(A, rhs, name="X'X + λI" if lam > 0 else "X'X")
            except SingularMatrixError as e:
                if lam > 0:
                    raise
                raise SingularMatrixError(
                    f"{e}. X'X alone is not invertible; use a ridge or LASSO "
                    f"penalty (lam > 0) instead of ordinary least squares.",
                    matrix_name="X'X",
                    condition_number=e.condition_number,
                ) from e

        coefficients = sol.x[:, 0]
        effective_df = float(np.trace(sol.x[:, 1:]))

        if lam == 0 and xtx_cond > ILL_CONDITION_THRESHOLD:
            warnings_list.append(_ill_conditioned_message(xtx_cond))
        elif sol.ill_conditioned:
            warnings_list.append(
                f"X'X + λI is ill-conditioned (condition number "
                f"{sol.condition_number:.3e}); consider a larger lam"
            )

        with timer.section('residuals'):
            params = build_params(
                design, coefficients, lam=lam,
                objective=None, effective_df=effective_df,
            )

        timer.stop()

        return Result(
            params=params,
            info={
                'method': 'ridge',
                'xtx_condition_number': xtx_cond,
                'system_condition_number': sol.condition_number,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )


def build_params(
    design: Design,
    coefficients: NDArray[np.floating[Any]],
    *,
    lam: float,
    objective: float | None,
    effective_df: float,
    n_iter: int = 0,
    converged: bool = True,
    max_change: float = 0.0,
) -> RegularizedParams:
    """Assemble RegularizedParams from a coefficient vector.

    When objective is None the ridge objective ||y − Xβ||² + λ||β||² is used.
    """
    X, y = design.X, design.y
    fitted_values = X @ coefficients
    residuals = y - fitted_values
    rss = float(residuals @ residuals)
    tss = float(np.sum((y - np.mean(y)) ** 2))
    if objective is None:
        objective = rss + lam * float(coefficients @ coefficients)

    return RegularizedParams(
        coefficients=coefficients,
        fitted_values=fitted_values,
        residuals=residuals,
        rss=rss,
        tss=tss,
        lam=lam,
        objective=objective,
        effective_df=effective_df,
        n_iter=n_iter,
        converged=converged,
        max_change=max_change,
    )


def _ill_conditioned_message(xtx_cond: float) -> str:
    return (
        f"X'X is ill-conditioned (condition number {xtx_cond:.3e}); "
        f"ordinary least squares is unstable here, a penalized fit "
        f"(ridge or LASSO with lam > 0) is advised"
    )
