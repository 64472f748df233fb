"""
Core protocols for mvstats.

Structural interfaces that backends must satisfy. Protocol (structural
typing) rather than ABC so that callers can plug in their own engines.
"""

from typing import Protocol, TypeVar, runtime_checkable

P = TypeVar('P')  # Parameter payload type
D = TypeVar('D')  # Design type


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    Protocol for computational backends.

    A backend takes a validated, immutable design and produces a Result
    envelope. Backends are stateless apart from construction-time options
    (e.g. the number of worker threads), which makes them easy to test
    and swap.

    Type Parameters:
        D: The design type this backend accepts
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{executor}_{algorithm}'
        Examples: 'cpu_binomial', 'cpu_permutation', 'parallel_permutation'
        """
        ...

    def solve(self, design: D) -> 'Result[P]':
        """
        Execute the statistical computation.

        Args:
            design: Validated design object

        Returns:
            Result envelope containing parameter payload and metadata

        Raises:
            ValidationError: If the design is invalid for this backend
            ShapeMismatchError: If the analysis callback misbehaves
        """
        ...
