"""
Newton-Raphson diagnostics.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NewtonDiagnostics:
    """
    Convergence diagnostics returned alongside a Newton-Raphson solution.

    Attributes:
        iterations: Number of Newton updates performed
        converged: Whether ||θₜ₊₁ - θₜ|| fell below the tolerance
        step_size: Size of the final update
        gradient_norm: ||∇f|| (or |f| for scalar root-finding) at the returned
            solution
        max_condition_number: Largest Hessian condition number seen
        method: 'newton_raphson' or 'newton_scalar'
    """
    iterations: int
    converged: bool
    step_size: float
    gradient_norm: float
    max_condition_number: float
    method: str

    def __repr__(self) -> str:
        return (
            f"NewtonDiagnostics(method={self.method!r}, iterations={self.iterations}, "
            f"converged={self.converged}, step_size={self.step_size:.3e})"
        )
