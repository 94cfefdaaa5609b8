"""
PyFitting: regularized regression, Newton-Raphson, Poisson GLMs and
nonparametric smoothers for Python.

Submodules:
    optimize: Newton-Raphson root and extremum finding
    regression: Ridge, LASSO, cross-validation, Poisson GLM
    smoothing: Kernel regression and truncated-power splines
"""

__version__ = "0.1.0"

from pyfitting import optimize
from pyfitting import regression
from pyfitting import smoothing

__all__ = [
    "__version__",
    "optimize",
    "regression",
    "smoothing",
]
