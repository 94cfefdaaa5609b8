"""
Exception hierarchy for PyFitting.

All exceptions inherit from PyFittingError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Sequence


class PyFittingError(Exception):
    """Base exception for all PyFitting errors."""
    pass


class ValidationError(PyFittingError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class NumericalError(PyFittingError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a linear solve requires invertibility but the matrix
    is singular or its condition number exceeds the configured threshold.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically min(n, p))
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class NonInvertibleHessianError(SingularMatrixError):
    """
    Newton-Raphson step is undefined because the Hessian is singular.

    Typical cause: the iterate sits on an inflection point. The caller
    may retry from a perturbed starting point.

    Attributes:
        iteration: Iteration at which the Hessian could not be inverted
        theta: Parameter vector at that iteration
    """

    def __init__(
        self,
        message: str,
        iteration: int,
        theta=None,
        condition_number: float | None = None,
    ):
        super().__init__(
            message, matrix_name='hessian', condition_number=condition_number
        )
        self.iteration = iteration
        self.theta = theta


class ZeroDerivativeError(NumericalError):
    """
    Scalar Newton step is undefined because f'(x) vanished.

    Attributes:
        iteration: Iteration at which the derivative vanished
        x: Point at which the derivative vanished
        derivative: The offending derivative value
    """

    def __init__(
        self,
        message: str,
        iteration: int,
        x: float | None = None,
        derivative: float | None = None,
    ):
        super().__init__(message)
        self.iteration = iteration
        self.x = x
        self.derivative = derivative


class EmptyNeighborhoodError(NumericalError):
    """
    Kernel smoothing has no training data within the radius of a query.

    Attributes:
        radius: Kernel radius used
        query_indices: Indices of the query points with no neighbours
    """

    def __init__(
        self,
        message: str,
        radius: float,
        query_indices: Sequence[int] = (),
    ):
        super().__init__(message)
        self.radius = radius
        self.query_indices = tuple(query_indices)


class ConvergenceError(PyFittingError):
    """
    Iterative algorithm failed to converge.

    Raised when an iterative optimization method (Newton-Raphson, IRLS,
    coordinate descent) fails to meet convergence criteria within the
    maximum number of iterations.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final parameter or objective change
        reason: Why convergence failed (e.g., 'max_iterations', 'diverging')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
