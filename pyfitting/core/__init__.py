"""
Core infrastructure for PyFitting.

This module provides shared abstractions and utilities used by all
domain-specific submodules (optimize, regression, smoothing).

Key components:
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra, iterative engine
"""

from pyfitting.core.protocols import Backend
from pyfitting.core.result import Result
from pyfitting.core.exceptions import (
    PyFittingError,
    ValidationError,
    DimensionError,
    NumericalError,
    SingularMatrixError,
    NonInvertibleHessianError,
    ZeroDerivativeError,
    EmptyNeighborhoodError,
    ConvergenceError,
)

__all__ = [
    # Protocols
    "Backend",
    # Result
    "Result",
    # Exceptions
    "PyFittingError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "SingularMatrixError",
    "NonInvertibleHessianError",
    "ZeroDerivativeError",
    "EmptyNeighborhoodError",
    "ConvergenceError",
]
