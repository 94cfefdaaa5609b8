"""
Smoothing backends.

Available backends:
    CPUSplineBackend: Truncated-power spline least squares via pivoted QR
"""

from pyfitting.smoothing.backends.cpu_spline import CPUSplineBackend

__all__ = [
    "CPUSplineBackend",
]
