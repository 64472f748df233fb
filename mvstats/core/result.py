"""
Generic result container for all mvstats computations.

The Result class is the standardized envelope every backend returns. Domain
code defines its own parameter payload P; the envelope carries the shared
metadata (timing, backend, warnings) used by the solution classes.

Design decisions:
    - Generic over parameter payload P
    - info dict for flexible metadata (n_permutations, correction, tail)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (p-values, masks, counts)
        info: Structured metadata (test, correction, tail, ...)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=StatParams(...),
        ...     info={'test': 'permutation', 'n_permutations': 1000},
        ...     timing={'total_seconds': 3.2, 'permutations': 3.1},
        ...     backend_name='cpu_permutation'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
