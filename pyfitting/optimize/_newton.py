"""
Newton-Raphson update steps.

Multivariate:  θₜ₊₁ = θₜ − H(θₜ)⁻¹ ∇f(θₜ)
Scalar root:   xₜ₊₁ = xₜ − f(xₜ) / f′(xₜ)

Both plug into the shared iterate() engine. The multivariate step also
serves plain root-finding of a system F(θ) = 0 when "gradient" is F and
"Hessian" is its (possibly non-symmetric) Jacobian.
"""

from __future__ import annotations

from typing import Any, Callable
import numpy as np
from numpy.typing import NDArray

from pyfitting.core.compute.linalg.solve import solve_general
from pyfitting.core.compute.optimization.iterative import OptimizerState, UpdateStep
from pyfitting.core.exceptions import (
    DimensionError,
    NonInvertibleHessianError,
    SingularMatrixError,
    ZeroDerivativeError,
)


class NewtonStep(UpdateStep):
    """Multivariate Newton step from user-supplied gradient and Hessian callables.

    When scalar=True the callables receive and return plain floats; the
    engine still works on length-1 vectors.
    """

    def __init__(
        self,
        grad_fn: Callable[[Any], Any],
        hess_fn: Callable[[Any], Any],
        p: int,
        scalar: bool = False,
    ):
        self._grad_fn = grad_fn
        self._hess_fn = hess_fn
        self._p = p
        self._scalar = scalar
        self.max_condition_number = 0.0

    @property
    def name(self) -> str:
        return 'newton_raphson'

    def _arg(self, theta: NDArray[np.floating[Any]]) -> Any:
        return float(theta[0]) if self._scalar else theta.copy()

    def gradient(self, theta: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        g = np.asarray(self._grad_fn(self._arg(theta)), dtype=np.float64).reshape(-1)
        if g.shape[0] != self._p:
            raise DimensionError(
                f"grad_fn returned {g.shape[0]} values, expected {self._p}"
            )
        return g

    def update(self, state: OptimizerState) -> NDArray[np.floating[Any]]:
        theta = state.theta
        g = self.gradient(theta)

        H = np.asarray(self._hess_fn(self._arg(theta)), dtype=np.float64)
        if H.size != self._p * self._p:
            raise DimensionError(
                f"hess_fn returned shape {H.shape}, expected ({self._p}, {self._p})"
            )
        H = H.reshape(self._p, self._p)

        state.gradient = g
        state.hessian = H

        try:
            sol = solve_general(
                H, -g,
                assume_symmetric=bool(np.allclose(H, H.T)),
                name='hessian',
            )
        except SingularMatrixError as e:
            raise NonInvertibleHessianError(
                f"Hessian is not invertible at iteration {state.iteration + 1} "
                f"(theta={theta.tolist()}); retry from a perturbed starting point",
                iteration=state.iteration + 1,
                theta=theta.copy(),
                condition_number=e.condition_number,
            ) from e

        self.max_condition_number = max(self.max_condition_number, sol.condition_number)
        return theta + sol.x


class ScalarNewtonStep(UpdateStep):
    """One-dimensional root-finding step xₜ₊₁ = xₜ − f(xₜ)/f′(xₜ)."""

    def __init__(
        self,
        f: Callable[[float], float],
        fprime: Callable[[float], float],
        zero_tol: float,
    ):
        self._f = f
        self._fprime = fprime
        self._zero_tol = zero_tol
        self.max_condition_number = 1.0

    @property
    def name(self) -> str:
        return 'newton_scalar'

    def gradient(self, theta: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        return np.array([float(self._f(float(theta[0])))])

    def update(self, state: OptimizerState) -> NDArray[np.floating[Any]]:
        x = float(state.theta[0])
        fx = float(self._f(x))
        d = float(self._fprime(x))

        state.gradient = np.array([fx])
        state.hessian = np.array([[d]])

        if not np.isfinite(d) or abs(d) <= self._zero_tol:
            raise ZeroDerivativeError(
                f"f'(x) = {d!r} at x = {x!r} (iteration {state.iteration + 1}); "
                f"the Newton step is undefined",
                iteration=state.iteration + 1,
                x=x,
                derivative=d,
            )

        return np.array([x - fx / d])
