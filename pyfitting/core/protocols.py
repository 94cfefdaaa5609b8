"""
Core protocols for PyFitting.

These define structural interfaces that domain-specific implementations
must satisfy. We use Protocol (structural typing) rather than ABC
(nominal typing) to allow flexibility while maintaining type safety.

Design Principles:
    - Minimal contracts: prescribe only what's truly universal
    - Type-safe: use generics to preserve type information through pipelines
"""

from typing import Protocol, TypeVar, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from pyfitting.core.result import Result

# Type variables for generic payloads
P = TypeVar('P', covariant=True)  # Parameter payload type
D = TypeVar('D', contravariant=True)  # Design type


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    Protocol for computational backends.

    Each backend knows how to take a domain-specific Design and produce
    a domain-specific parameter payload wrapped in a Result.

    Backends are stateless: all hyperparameters are passed at construction
    time, never mutated afterwards. This makes them easy to test and to
    run concurrently (e.g., one backend per cross-validation fold).

    Type Parameters:
        D: The Design type this backend accepts
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_ridge', 'cpu_lasso_cd', 'cpu_irls', 'cpu_qr'
        """
        ...

    def solve(self, design: D) -> 'Result[P]':
        """
        Execute the computation.

        Args:
            design: Validated domain-specific design

        Returns:
            Result envelope containing parameter payload and metadata

        Raises:
            ConvergenceError: If iterative method fails to converge
            NumericalError: If numerical issues prevent solution (singularity, etc.)
            ValidationError: If design is invalid for this backend
        """
        ...
