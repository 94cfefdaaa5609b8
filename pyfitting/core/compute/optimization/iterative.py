"""
Shared iterative-update engine.

Newton-Raphson and IRLS have the same shape: at the current iterate,
compute derivative information, solve a linear system, move to the next
iterate, and stop once the step is small. The loop, the convergence test
and the diagnostics live here once; each algorithm supplies an
UpdateStep that knows how to produce the next iterate.

Algorithm:
    θ₀ given
    For t = 1..max_iter:
        θₜ = step.update(state)          # fills state.gradient / state.hessian
        Δ = ||θₜ - θₜ₋₁||₂
        Stop with converged=True once Δ < tol
    gradient_norm = ||step.gradient(θ_final)||₂

The engine never raises on an exhausted budget: it reports
converged=False and leaves the policy (warn or raise) to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyfitting.core.exceptions import NumericalError


@dataclass
class OptimizerState:
    """
    Mutable state owned by a single iterate() call.

    Attributes:
        theta: Current parameter vector
        gradient: Gradient at theta, as last computed by the step
        hessian: Hessian (or its Fisher-information analogue) at theta
        iteration: Number of completed updates
        step_size: ||θₜ - θₜ₋₁||₂ of the last update (inf before the first)
    """
    theta: NDArray[np.floating[Any]]
    gradient: NDArray[np.floating[Any]] | None = None
    hessian: NDArray[np.floating[Any]] | None = None
    iteration: int = 0
    step_size: float = float('inf')


@dataclass(frozen=True)
class IterationResult:
    """
    Frozen snapshot of an OptimizerState once the loop has terminated.

    Attributes:
        theta: Final iterate
        iterations: Updates performed
        converged: Whether the step-size criterion was met
        step_size: Size of the last update
        gradient_norm: ||gradient||₂ at the returned theta, or NaN if the
            step does not provide a gradient
        hessian: Hessian at the last iterate the step updated from, or None
    """
    theta: NDArray[np.floating[Any]]
    iterations: int
    converged: bool
    step_size: float
    gradient_norm: float
    hessian: NDArray[np.floating[Any]] | None


class UpdateStep(ABC):
    """Strategy producing the next iterate from the current state."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def update(self, state: OptimizerState) -> NDArray[np.floating[Any]]:
        """Compute θₜ₊₁ from state.theta.

        Implementations should record the derivative information they
        computed on state.gradient and state.hessian. They must not
        modify state.theta in place.
        """
        ...

    def gradient(self, theta: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]] | None:
        """Gradient at theta, or None if the step does not expose one.

        iterate() calls this once on the returned iterate.
        """
        return None


def iterate(
    step: UpdateStep,
    theta0: NDArray[np.floating[Any]],
    *,
    tol: float,
    max_iter: int,
) -> IterationResult:
    """
    Run an UpdateStep until the step size falls below tol.

    Args:
        step: Algorithm-specific update strategy
        theta0: Starting point (copied; never modified)
        tol: Convergence threshold on ||θₜ₊₁ - θₜ||₂
        max_iter: Maximum number of updates

    Returns:
        IterationResult

    Raises:
        NumericalError: If an update produces a non-finite iterate
        Any error raised by the step (e.g. SingularMatrixError)
    """
    state = OptimizerState(theta=np.array(theta0, dtype=np.float64, copy=True))
    converged = False

    for iteration in range(1, max_iter + 1):
        theta_next = np.asarray(step.update(state), dtype=np.float64)

        if not np.all(np.isfinite(theta_next)):
            raise NumericalError(
                f"{step.name}: non-finite iterate at iteration {iteration} "
                f"(previous iterate {state.theta.tolist()})"
            )

        state.step_size = float(np.linalg.norm(theta_next - state.theta))
        state.theta = theta_next
        state.iteration = iteration

        if state.step_size < tol:
            converged = True
            break

    final_gradient = step.gradient(state.theta)
    gradient_norm = (
        float(np.linalg.norm(final_gradient))
        if final_gradient is not None else float('nan')
    )

    return IterationResult(
        theta=state.theta,
        iterations=state.iteration,
        converged=converged,
        step_size=state.step_size,
        gradient_norm=gradient_norm,
        hessian=state.hessian,
    )
