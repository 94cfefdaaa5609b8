"""
Shared compute infrastructure for PyFitting.

This module provides timing utilities, default tolerances, linear algebra
kernels and the iterative-update engine shared by all domain packages.

IMPORTANT: This is NOT where domain-specific backends live. Those go in
{domain}/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numeric defaults and comparison tiers
    linalg: Linear algebra kernels (QR, Cholesky, conditioning)
    optimization: Iterative-update engine (Newton-Raphson, IRLS)
"""

from pyfitting.core.compute.timing import Timer

__all__ = [
    "Timer",
]
