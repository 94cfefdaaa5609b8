"""
Linear algebra kernels for PyFitting.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood)
    - Pure functions over array inputs; inputs are never modified
    - Structured result dataclasses carry conditioning diagnostics
    - Errors are raised immediately with clear messages

Submodules:
    qr: Column-pivoted QR decomposition and least squares
    solve: Cholesky / LU solves with condition-number checks
"""

from pyfitting.core.compute.linalg.qr import (
    QRResult,
    qr_decompose,
    qr_solve,
)
from pyfitting.core.compute.linalg.solve import (
    SolveResult,
    condition_number,
    cross,
    gram,
    min_eigenvalue,
    solve_general,
    solve_spd,
)

__all__ = [
    # QR decomposition
    "QRResult",
    "qr_decompose",
    "qr_solve",
    # Normal-equation solves
    "SolveResult",
    "condition_number",
    "cross",
    "gram",
    "min_eigenvalue",
    "solve_general",
    "solve_spd",
]
