"""
Optimization utilities for PyFitting.

Provides the iterative-update engine shared by Newton-Raphson and IRLS.
"""

from pyfitting.core.compute.optimization.iterative import (
    IterationResult,
    OptimizerState,
    UpdateStep,
    iterate,
)

__all__ = [
    "IterationResult",
    "OptimizerState",
    "UpdateStep",
    "iterate",
]
