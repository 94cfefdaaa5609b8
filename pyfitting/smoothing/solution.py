"""
Smoothing solution types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyfitting.core.result import Result
from pyfitting.core.validation import check_array, check_finite
from pyfitting.smoothing._spline import basis_matrix

if TYPE_CHECKING:
    from pyfitting.smoothing.design import SmoothingDesign


@dataclass(frozen=True)
class SplineParams:
    """
    Parameter payload for a truncated-power spline fit.

    Attributes:
        coefficients: β̂ over the basis {1, x, …, x^(K−1)} ∪ {(x − κ)₊^K}
        fitted_values: Bβ̂ (n,)
        residuals: y − Bβ̂ (n,)
        rss: Residual sum of squares
        tss: Total sum of squares about the mean of y
        degree: K
        knots: Interior knots κ₁ < … < κ_L
        rank: Numerical rank of the basis matrix
    """
    coefficients: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    rss: float
    tss: float
    degree: int
    knots: NDArray[np.floating[Any]]
    rank: int


@dataclass(frozen=True)
class SplineSolution:
    """User-facing results of a truncated-power spline regression."""
    _result: Result[SplineParams]
    _design: 'SmoothingDesign'

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def polynomial_coefficients(self) -> NDArray[np.floating[Any]]:
        """Coefficients of 1, x, …, x^(K−1)."""
        return self.coefficients[:self.degree]

    @property
    def knot_coefficients(self) -> NDArray[np.floating[Any]]:
        """Coefficients of the truncated powers (x − κ_ℓ)₊^K."""
        return self.coefficients[self.degree:]

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def r_squared(self) -> float:
        tss = self._result.params.tss
        if tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - self.rss / tss

    @property
    def degree(self) -> int:
        return self._result.params.degree

    @property
    def knots(self) -> NDArray[np.floating[Any]]:
        return self._result.params.knots

    @property
    def n_basis(self) -> int:
        return self.coefficients.shape[0]

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def condition_number(self) -> float:
        """Condition number of the (unscaled) basis matrix."""
        return self._result.info['condition_number']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def predict(self, x_new: ArrayLike) -> NDArray[np.floating[Any]] | float:
        """Evaluate the fitted spline at new points; a scalar gives a float."""
        x_arr = check_array(x_new, 'x_new')
        scalar = x_arr.ndim == 0
        x_arr = x_arr.reshape(-1)
        check_finite(x_arr, 'x_new')
        values = basis_matrix(x_arr, self.degree, self.knots) @ self.coefficients
        return float(values[0]) if scalar else values

    def summary(self) -> str:
        """Generate a plain-text summary."""
        lines = [
            "Truncated-Power Spline Regression",
            "=" * 60,
            f"Observations: {self._design.n}",
            f"Degree: {self.degree}    Interior knots: {len(self.knots)}",
            f"R-squared: {self.r_squared:.6f}",
            f"cond(B): {self.condition_number:.3e}",
            "",
            "Coefficients:",
            "-" * 60,
        ]
        for i, coef in enumerate(self.polynomial_coefficients):
            lines.append(f"  x^{i}: {coef:16.6g}")
        for knot, coef in zip(self.knots, self.knot_coefficients):
            lines.append(f"  (x - {knot:.4g})+^{self.degree}: {coef:16.6g}")
        lines.append("-" * 60)
        lines.append(f"Backend: {self.backend_name}")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"SplineSolution(degree={self.degree}, n_knots={len(self.knots)}, "
            f"n={self._design.n}, r_squared={self.r_squared:.4f})"
        )
