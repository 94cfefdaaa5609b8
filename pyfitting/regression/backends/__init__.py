"""
Regression backends.

Available backends:
    CPUQRBackend: OLS via pivoted QR decomposition (reference)
    CPURidgeBackend: Closed-form ridge via Cholesky
    CPULassoBackend: LASSO via cyclic coordinate descent
    CPUIRLSBackend: Poisson GLM via IRLS
"""

from pyfitting.regression.backends.cpu import CPUQRBackend, CPURidgeBackend
from pyfitting.regression.backends.cpu_lasso import CPULassoBackend
from pyfitting.regression.backends.cpu_glm import CPUIRLSBackend

__all__ = [
    "CPUQRBackend",
    "CPURidgeBackend",
    "CPULassoBackend",
    "CPUIRLSBackend",
]
