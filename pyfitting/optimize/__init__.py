"""
Newton-Raphson root and extremum finding.

Public API:
    newton_raphson(theta0, grad_fn, hess_fn, ...) -> (theta, NewtonDiagnostics)
    newton_scalar(f, fprime, x0, ...) -> (x, NewtonDiagnostics)

Example:
    >>> from pyfitting.optimize import newton_raphson
    >>> theta, diag = newton_raphson(1.1, fprime, fsecond, tolerance=1e-3)
    >>> diag.converged
    True
"""

from pyfitting.optimize.solution import NewtonDiagnostics
from pyfitting.optimize.solvers import newton_raphson, newton_scalar

__all__ = [
    "newton_raphson",
    "newton_scalar",
    "NewtonDiagnostics",
]
